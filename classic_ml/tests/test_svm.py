"""
Classic ML - 커널 / SVM 검증 테스트
===================================

커널 함수, SMO 기반 SVC, One-vs-Rest 다중 분류, ε-insensitive SVR을 검증합니다.

테스트 항목:
1. 커널 값과 gamma 해석
2. 자유 서포트 벡터의 결정 함수 부호
3. 비선형 경계 학습 (RBF)
4. 재현성

Author: ML From Scratch Project
"""

import numpy as np
import pytest

from classic_ml import (
    SVC,
    SVR,
    LinearKernel,
    OneVsRestSVC,
    PolynomialKernel,
    RBFKernel,
    SigmoidKernel,
    get_kernel,
)
from classic_ml.config import CONFIG
from classic_ml.kernels import resolve_gamma


def _two_blobs(n_per_class=30, seed=0):
    rng = np.random.default_rng(seed)
    X = np.vstack([
        rng.normal(-2.0, 0.5, (n_per_class, 2)),
        rng.normal(2.0, 0.5, (n_per_class, 2)),
    ])
    y = np.array([0] * n_per_class + [1] * n_per_class)
    return X, y


def test_kernel_values():
    """커널 함수 값 검증"""
    print("=" * 50)
    print("Test: Kernel Values")
    print("=" * 50)

    a = np.array([1.0, 2.0])
    b = np.array([3.0, -1.0])

    assert LinearKernel()(a, b) == pytest.approx(1.0)
    assert RBFKernel(gamma=0.5)(a, a) == pytest.approx(1.0)
    assert RBFKernel(gamma=0.5)(a, b) == pytest.approx(np.exp(-0.5 * 13.0))
    assert PolynomialKernel(degree=2, gamma=1.0, coef0=1.0)(a, b) == pytest.approx(4.0)
    assert SigmoidKernel(gamma=0.1, coef0=0.0)(a, b) == pytest.approx(np.tanh(0.1))

    A = np.array([[0.0, 0.0], [1.0, 1.0], [2.0, 0.0]])
    K = RBFKernel(gamma=1.0).matrix(A, A)
    assert K.shape == (3, 3)
    assert np.allclose(K, K.T)
    assert np.allclose(np.diag(K), 1.0)

    print("  ✓ linear / rbf / poly / sigmoid 값 일치")
    print("  ✓ 모든 테스트 통과!")


def test_get_kernel_and_gamma():
    X = np.array([[0.0, 2.0], [2.0, 0.0]])

    assert resolve_gamma('scale', X) == pytest.approx(1.0 / (2 * np.var(X)))
    assert resolve_gamma('scale', np.ones((3, 2))) == 1.0
    assert resolve_gamma(0.3) == 0.3

    assert isinstance(get_kernel('linear'), LinearKernel)
    assert isinstance(get_kernel('poly'), PolynomialKernel)
    assert isinstance(get_kernel('polynomial', degree=4), PolynomialKernel)
    assert get_kernel('rbf', gamma='scale', X=X).gamma == pytest.approx(0.5)

    custom = RBFKernel(gamma=2.0)
    assert get_kernel(custom) is custom

    with pytest.raises(ValueError):
        get_kernel('laplacian')
    with pytest.raises(ValueError):
        resolve_gamma(-1.0)
    with pytest.raises(ValueError):
        resolve_gamma('auto')
    with pytest.raises(ValueError):
        resolve_gamma('scale')


def test_svc_linear_separable():
    """선형 분리 가능한 데이터에서 SMO 결과 검증"""
    print("\n" + "=" * 50)
    print("Test: SVC Linear Separable")
    print("=" * 50)

    X, y = _two_blobs()
    svc = SVC(C=1.0, kernel='linear', random_state=0).fit(X, y)

    assert svc.score(X, y) == 1.0
    assert 0 < svc.n_support_ < len(y)
    assert np.all(svc.alpha_ >= 0) and np.all(svc.alpha_ <= svc.C + 1e-12)

    # Σ α_i y_i = 0
    y_signed = np.where(y == 1, 1.0, -1.0)
    assert abs(np.sum(svc.alpha_ * y_signed)) < 1e-8

    # 자유 서포트 벡터 (0 < α < C)는 결정 함수 부호가 레이블과 같음
    eps = CONFIG['sv_epsilon']
    free = (svc.alpha_ > eps) & (svc.alpha_ < svc.C - eps)
    scores = svc.decision_function(X[free])
    assert np.all(np.sign(scores) == y_signed[free])

    print(f"  ✓ 서포트 벡터 수: {svc.n_support_}")
    print(f"  ✓ 자유 서포트 벡터 수: {int(np.sum(free))}")
    print(f"  ✓ SMO 패스: {svc.n_iter_}, 수렴: {svc.converged_}")
    print("  ✓ 모든 테스트 통과!")


def test_svc_rbf_circles():
    """RBF 커널로 동심원 분리"""
    print("\n" + "=" * 50)
    print("Test: SVC RBF Circles")
    print("=" * 50)

    rng = np.random.default_rng(1)
    angles = rng.uniform(0, 2 * np.pi, 80)
    radius = np.concatenate([rng.uniform(0.0, 1.0, 40), rng.uniform(2.5, 3.5, 40)])
    X = np.column_stack([radius * np.cos(angles), radius * np.sin(angles)])
    y = np.array(['inner'] * 40 + ['outer'] * 40)

    svc = SVC(C=10.0, kernel='rbf', gamma=0.5, random_state=1).fit(X, y)
    acc = svc.score(X, y)

    assert acc > 0.9, f"정확도가 낮음: {acc}"
    assert np.all((svc.alpha_ >= 0.0) & (svc.alpha_ <= svc.C)), "승수가 [0, C] 범위를 벗어남"
    assert set(svc.predict(X)) <= {'inner', 'outer'}
    assert svc.predict_single(np.array([0.0, 0.0])) == 'inner'

    print(f"  ✓ 학습 정확도: {acc:.3f}")
    print("  ✓ 모든 테스트 통과!")


def test_svc_reproducibility_and_history():
    """
    SMO의 두 번째 승수는 최대 KKT 위반이 아니라 i를 제외한 인덱스 중
    균일하게 뽑으므로, 같은 random_state에서만 결과가 동일함
    """
    X, y = _two_blobs(seed=2)

    a = SVC(kernel='rbf', gamma='scale', random_state=5).fit(X, y)
    b = SVC(kernel='rbf', gamma='scale', random_state=5).fit(X, y)

    assert np.array_equal(a.alpha_, b.alpha_)
    assert a.intercept_ == b.intercept_
    assert len(a.training_history_) == a.n_iter_
    assert a.n_iter_ <= a.max_iter


def test_svc_errors():
    X, y = _two_blobs(5)

    with pytest.raises(ValueError):
        SVC().fit(np.vstack([X, [[0.0, 0.0]]]), np.append(y, 2))
    with pytest.raises(ValueError):
        SVC().fit(X, np.zeros(len(y)))
    with pytest.raises(ValueError):
        SVC(C=0).fit(X, y)
    with pytest.raises(RuntimeError):
        SVC().predict(X)


def test_one_vs_rest_svc():
    """세 군집 One-vs-Rest 분류"""
    print("\n" + "=" * 50)
    print("Test: One-vs-Rest SVC")
    print("=" * 50)

    rng = np.random.default_rng(3)
    centers = np.array([[0.0, 4.0], [-4.0, -2.0], [4.0, -2.0]])
    X = np.vstack([rng.normal(c, 0.6, (25, 2)) for c in centers])
    y = np.repeat([2, 5, 9], 25)

    ovr = OneVsRestSVC(C=1.0, kernel='rbf', gamma=0.5, random_state=0).fit(X, y)

    assert len(ovr.estimators_) == 3
    assert ovr.decision_function(X).shape == (75, 3)
    assert ovr.score(X, y) > 0.9
    assert ovr.predict_single(np.array([0.0, 4.0])) == 2

    with pytest.raises(ValueError):
        OneVsRestSVC().fit(X, np.zeros(len(y)))

    print(f"  ✓ 학습 정확도: {ovr.score(X, y):.3f}")
    print("  ✓ 모든 테스트 통과!")


def test_svr_fits_sine():
    """SVR ε-insensitive 손실 감소"""
    print("\n" + "=" * 50)
    print("Test: SVR Sine")
    print("=" * 50)

    X = np.linspace(0, 2 * np.pi, 30).reshape(-1, 1)
    y = np.sin(X).ravel()

    svr = SVR(C=10.0, epsilon=0.1, kernel='rbf', gamma=1.0, learning_rate=0.01, max_iter=100)
    svr.fit(X, y)

    assert len(svr.loss_history_) == 100
    assert svr.loss_history_[-1] < 0.5 * svr.loss_history_[0]
    assert len(svr.dual_coef_) == len(svr.support_) > 0

    pred = svr.predict(X)
    assert pred.shape == (30,)
    assert isinstance(svr.predict_single(X[0]), float)

    print(f"  ✓ 초기 ε-loss: {svr.loss_history_[0]:.4f}")
    print(f"  ✓ 최종 ε-loss: {svr.loss_history_[-1]:.4f}")
    print("  ✓ 모든 테스트 통과!")


def test_svr_errors():
    X = np.arange(4, dtype=float).reshape(-1, 1)
    with pytest.raises(ValueError):
        SVR(epsilon=-0.1).fit(X, X.ravel())
    with pytest.raises(ValueError):
        SVR(C=-1.0).fit(X, X.ravel())


def run_all_tests():
    """모든 테스트 실행"""
    print("\n" + "=" * 60)
    print("CLASSIC ML - 커널 / SVM 검증 테스트")
    print("=" * 60)

    tests = [
        test_kernel_values,
        test_get_kernel_and_gamma,
        test_svc_linear_separable,
        test_svc_rbf_circles,
        test_svc_reproducibility_and_history,
        test_svc_errors,
        test_one_vs_rest_svc,
        test_svr_fits_sine,
        test_svr_errors,
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
