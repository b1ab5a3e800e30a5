"""
Classic ML - 선형 모델 검증 테스트
==================================

선형 연립방정식 풀이, 선형 회귀(정규 방정식 / 경사 하강), 규제 회귀,
로지스틱 회귀를 검증합니다.

Author: ML From Scratch Project
"""

import numpy as np
import pytest

from classic_ml import (
    ElasticNet,
    Lasso,
    LinearRegression,
    LogisticRegression,
    Ridge,
    solve_linear_system,
)


TRUE_COEF = np.array([1.5, -2.0, 0.5])
TRUE_INTERCEPT = 3.0


def _regression_data(n_samples=60, noise=0.0, seed=0):
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n_samples, 3))
    y = X @ TRUE_COEF + TRUE_INTERCEPT + noise * rng.normal(size=n_samples)
    return X, y


def test_solve_linear_system():
    """부분 피벗 가우스 소거"""
    print("=" * 50)
    print("Test: Solve Linear System")
    print("=" * 50)

    A = np.array([[2.0, 1.0, -1.0], [-3.0, -1.0, 2.0], [-2.0, 1.0, 2.0]])
    b = np.array([8.0, -11.0, -3.0])
    x = solve_linear_system(A, b)
    assert np.allclose(x, [2.0, 3.0, -1.0])

    # 첫 피벗이 0이어도 행 교환으로 풀림
    x = solve_linear_system(np.array([[0.0, 1.0], [1.0, 0.0]]), np.array([4.0, 7.0]))
    assert np.allclose(x, [7.0, 4.0])

    # 퇴화된 열의 미지수는 0
    x = solve_linear_system(np.array([[1.0, 1.0], [1.0, 1.0]]), np.array([2.0, 2.0]))
    assert np.allclose(x, [2.0, 0.0])

    with pytest.raises(ValueError):
        solve_linear_system(np.ones((2, 3)), np.ones(2))

    print("  ✓ 모든 테스트 통과!")


def test_ols_exact_recovery():
    """잡음 없는 데이터에서 정규 방정식이 계수를 정확히 복원"""
    print("\n" + "=" * 50)
    print("Test: OLS Exact Recovery")
    print("=" * 50)

    X, y = _regression_data()
    model = LinearRegression().fit(X, y)

    assert np.allclose(model.coef_, TRUE_COEF, atol=1e-8)
    assert model.intercept_ == pytest.approx(TRUE_INTERCEPT, abs=1e-8)
    assert model.score(X, y) == pytest.approx(1.0)
    assert model.mse(X, y) == pytest.approx(0.0, abs=1e-12)
    assert model.n_iter_ == 1
    assert model.predict_single([0.0, 0.0, 0.0]) == pytest.approx(TRUE_INTERCEPT)

    print(f"  ✓ coef: {np.round(model.coef_, 6).tolist()}")
    print(f"  ✓ intercept: {model.intercept_:.6f}")
    print("  ✓ 모든 테스트 통과!")


def test_gradient_solvers():
    """gd / sgd 해가 정규 방정식 해에 근접"""
    print("\n" + "=" * 50)
    print("Test: Gradient Solvers")
    print("=" * 50)

    X, y = _regression_data(200, noise=0.1, seed=1)
    exact = LinearRegression().fit(X, y)

    gd = LinearRegression(solver='gd', learning_rate=0.05, max_iter=5000, tol=1e-12).fit(X, y)
    assert np.allclose(gd.coef_, exact.coef_, atol=1e-3)
    assert gd.intercept_ == pytest.approx(exact.intercept_, abs=1e-3)
    assert gd.loss_history_[-1] < gd.loss_history_[0]
    print(f"  ✓ gd: {gd.n_iter_} 에폭")

    sgd1 = LinearRegression(solver='sgd', learning_rate=0.01, max_iter=200,
                            batch_size=16, random_state=3).fit(X, y)
    sgd2 = LinearRegression(solver='sgd', learning_rate=0.01, max_iter=200,
                            batch_size=16, random_state=3).fit(X, y)
    assert np.array_equal(sgd1.coef_, sgd2.coef_)
    assert sgd1.score(X, y) > 0.99
    print(f"  ✓ sgd R²: {sgd1.score(X, y):.4f}")

    print("  ✓ 모든 테스트 통과!")


def test_regularized_regression():
    """Ridge / Lasso / ElasticNet 계수 축소"""
    X, y = _regression_data(100, noise=0.1, seed=2)
    ols = LinearRegression().fit(X, y)

    ridge = Ridge(alpha=50.0).fit(X, y)
    assert np.linalg.norm(ridge.coef_) < np.linalg.norm(ols.coef_)
    # 편향은 규제하지 않으므로 평균 근처를 유지
    assert abs(ridge.intercept_ - TRUE_INTERCEPT) < 0.5

    lasso = Lasso(alpha=0.5, learning_rate=0.01, max_iter=3000).fit(X, y)
    assert np.sum(np.abs(lasso.coef_)) < np.sum(np.abs(ols.coef_))

    enet = ElasticNet(alpha=0.5, l1_ratio=0.5, learning_rate=0.01, max_iter=3000).fit(X, y)
    assert np.sum(np.abs(enet.coef_)) < np.sum(np.abs(ols.coef_))
    assert enet.score(X, y) > 0.8


def test_linear_regression_errors():
    X, y = _regression_data(10)

    with pytest.raises(ValueError):
        LinearRegression(penalty='l1', solver='normal').fit(X, y)
    with pytest.raises(ValueError):
        LinearRegression(penalty='elasticnet').fit(X, y)
    with pytest.raises(ValueError):
        LinearRegression(solver='lbfgs').fit(X, y)
    with pytest.raises(ValueError):
        LinearRegression(penalty='l3').fit(X, y)
    with pytest.raises(RuntimeError):
        LinearRegression().predict(X)


def test_gradient_divergence_stops():
    """발산하면 max_iter 전에 멈춤"""
    X, y = _regression_data(50, seed=3)
    with np.errstate(all='ignore'):
        model = LinearRegression(solver='gd', learning_rate=10.0, max_iter=1000).fit(X, y)

    assert model.n_iter_ < 1000
    assert not np.isfinite(model.loss_history_[-1])


def test_logistic_binary():
    """이진 로지스틱 회귀"""
    print("\n" + "=" * 50)
    print("Test: Logistic Regression Binary")
    print("=" * 50)

    rng = np.random.default_rng(4)
    X = np.vstack([rng.normal(-2, 1, (50, 2)), rng.normal(2, 1, (50, 2))])
    y = np.array(['neg'] * 50 + ['pos'] * 50)

    model = LogisticRegression(alpha=0.1, learning_rate=0.5, max_iter=500).fit(X, y)
    proba = model.predict_proba(X)

    assert model.coef_.shape == (2,)
    assert isinstance(model.intercept_, float)
    assert proba.shape == (100, 2)
    assert np.allclose(proba.sum(axis=1), 1.0)
    assert model.loss_history_[-1] < model.loss_history_[0]
    assert model.score(X, y) > 0.95
    assert model.predict_single([3.0, 3.0]) == 'pos'
    assert model.predict_proba_single([3.0, 3.0])[1] > 0.5

    cm = model.confusion_matrix(X, y)
    assert cm.shape == (2, 2) and cm.sum() == 100

    report = model.classification_report(X, y)
    assert 'neg' in report and 'pos' in report and 'weighted avg' in report

    print(f"  ✓ 정확도: {model.score(X, y):.3f}")
    print(f"  ✓ 반복 횟수: {model.n_iter_}, 수렴: {model.converged_}")
    print("  ✓ 모든 테스트 통과!")


def test_logistic_multiclass():
    """softmax 다중 클래스 로지스틱 회귀"""
    rng = np.random.default_rng(5)
    centers = np.array([[0.0, 4.0], [-4.0, -2.0], [4.0, -2.0]])
    X = np.vstack([rng.normal(c, 0.8, (30, 2)) for c in centers])
    y = np.repeat([0, 1, 2], 30)

    model = LogisticRegression(penalty=None, learning_rate=0.1, max_iter=1000, random_state=0)
    model.fit(X, y)

    assert model.coef_.shape == (2, 3)
    assert model.intercept_.shape == (3,)
    assert np.allclose(model.predict_proba(X).sum(axis=1), 1.0)
    assert model.score(X, y) > 0.95

    again = LogisticRegression(penalty=None, learning_rate=0.1, max_iter=1000, random_state=0).fit(X, y)
    assert np.allclose(model.coef_, again.coef_)

    with pytest.raises(ValueError):
        LogisticRegression().fit(X, np.zeros(len(y)))
    with pytest.raises(ValueError):
        LogisticRegression(penalty='elasticnet').fit(X, y)


def run_all_tests():
    """모든 테스트 실행"""
    print("\n" + "=" * 60)
    print("CLASSIC ML - 선형 모델 검증 테스트")
    print("=" * 60)

    tests = [
        test_solve_linear_system,
        test_ols_exact_recovery,
        test_gradient_solvers,
        test_regularized_regression,
        test_linear_regression_errors,
        test_gradient_divergence_stops,
        test_logistic_binary,
        test_logistic_multiclass,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"\n  ✗ 테스트 실패 ({test.__name__}): {e}")
            failed += 1

    print("\n" + "=" * 60)
    print(f"테스트 결과: {passed} 통과, {failed} 실패")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    raise SystemExit(0 if success else 1)
