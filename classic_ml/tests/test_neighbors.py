"""
Classic ML - 최근접 이웃 검증 테스트
====================================

거리 척도, KD-Tree, KNN 분류/회귀를 검증합니다.

테스트 항목:
1. 거리 척도 계산값
2. KD-Tree 탐색 결과 = 전수 탐색 결과
3. 탐색 알고리즘 자동 선택
4. 거리 가중 예측

Author: ML From Scratch Project
"""

import numpy as np
import pytest

from classic_ml import (
    CosineDistance,
    EuclideanDistance,
    KDTree,
    KNeighborsClassifier,
    KNeighborsRegressor,
    ManhattanDistance,
    MinkowskiDistance,
    get_metric,
)


def test_distance_metrics():
    """거리 척도 계산값 검증"""
    print("=" * 50)
    print("Test: Distance Metrics")
    print("=" * 50)

    a = np.array([0.0, 0.0])
    b = np.array([3.0, 4.0])

    assert EuclideanDistance()(a, b) == pytest.approx(5.0)
    assert ManhattanDistance()(a, b) == pytest.approx(7.0)
    assert MinkowskiDistance(p=3)(a, b) == pytest.approx((27 + 64) ** (1 / 3))
    assert MinkowskiDistance(p=1)(a, b) == pytest.approx(7.0)

    cosine = CosineDistance()
    assert cosine([1.0, 0.0], [0.0, 1.0]) == pytest.approx(1.0)
    assert cosine([1.0, 2.0], [2.0, 4.0]) == pytest.approx(0.0, abs=1e-8)
    # 영벡터는 유사도 0
    assert cosine([0.0, 0.0], [1.0, 1.0]) == pytest.approx(1.0)

    X = np.array([[0.0, 0.0], [1.0, 1.0], [3.0, 4.0]])
    assert np.allclose(EuclideanDistance().pairwise(X, a), [0.0, np.sqrt(2), 5.0])

    print("  ✓ Euclidean / Manhattan / Minkowski / Cosine 값 일치")
    print("  ✓ 모든 테스트 통과!")


def test_get_metric():
    assert isinstance(get_metric('euclidean'), EuclideanDistance)
    assert isinstance(get_metric('manhattan'), ManhattanDistance)
    assert get_metric('minkowski', p=4).p == 4
    assert isinstance(get_metric('cosine'), CosineDistance)

    custom = MinkowskiDistance(p=1.5)
    assert get_metric(custom) is custom

    with pytest.raises(ValueError):
        get_metric('chebyshev')
    with pytest.raises(ValueError):
        MinkowskiDistance(p=0)


def test_kd_tree_matches_brute_force():
    """KD-Tree k-NN 결과가 전수 탐색과 같은지 검증"""
    print("\n" + "=" * 50)
    print("Test: KD-Tree vs Brute Force")
    print("=" * 50)

    rng = np.random.default_rng(0)
    X = rng.uniform(-5, 5, size=(300, 3))
    queries = rng.uniform(-6, 6, size=(25, 3))

    for metric in (EuclideanDistance(), ManhattanDistance(), MinkowskiDistance(p=3)):
        tree = KDTree(X, metric=metric)

        for x in queries:
            indices, distances = tree.query(x, k=7)

            brute = metric.pairwise(X, x)
            expected = np.argsort(brute, kind='stable')[:7]

            assert set(indices) == set(expected), f"{metric}: 이웃 집합 불일치"
            assert np.allclose(distances, brute[expected])
            assert np.all(np.diff(distances) >= 0), "거리 오름차순이 아님"

        print(f"  ✓ {metric}: 25개 질의 모두 일치")

    print("  ✓ 모든 테스트 통과!")


def test_kd_tree_query_radius():
    rng = np.random.default_rng(1)
    X = rng.normal(size=(150, 2))
    tree = KDTree(X)

    x = np.array([0.2, -0.1])
    indices, distances = tree.query_radius(x, r=0.8)

    brute = EuclideanDistance().pairwise(X, x)
    assert set(indices) == set(np.nonzero(brute <= 0.8)[0])
    assert np.all(distances <= 0.8)


def test_kd_tree_structure_and_errors():
    X = np.arange(14, dtype=float).reshape(7, 2)
    tree = KDTree(X, labels=np.arange(7) * 10)

    assert len(tree) == 7
    assert tree.depth() == 2
    assert KDTree(np.array([[1.0, 2.0]])).depth() == 0

    indices, distances = tree.query([0.0, 1.0], k=1)
    assert indices[0] == 0 and distances[0] == 0.0

    with pytest.raises(ValueError):
        KDTree(X, metric='cosine')
    with pytest.raises(ValueError):
        tree.query([0.0, 0.0], k=8)
    with pytest.raises(ValueError):
        tree.query([0.0, 0.0], k=0)
    with pytest.raises(ValueError):
        tree.query([0.0, 0.0, 0.0], k=1)
    with pytest.raises(ValueError):
        KDTree(X, labels=[1, 2])


def test_knn_classifier_basic():
    """k=1 최근접 이웃 분류"""
    print("\n" + "=" * 50)
    print("Test: KNN Classifier Basic")
    print("=" * 50)

    knn = KNeighborsClassifier(n_neighbors=1).fit(
        np.array([[0, 0], [10, 10]]), np.array([0, 1])
    )

    assert knn.predict_single(np.array([0.1, 0.1])) == 0
    assert knn.predict_single(np.array([9.0, 9.5])) == 1
    assert knn.effective_algorithm_ == 'brute'

    print("  ✓ [0.1, 0.1] → 0")
    print("  ✓ 모든 테스트 통과!")


def test_knn_algorithm_selection():
    """auto 모드의 탐색 알고리즘 선택 규칙"""
    rng = np.random.default_rng(2)
    y_small = np.arange(30) % 2
    y_large = np.arange(60) % 2

    small = KNeighborsClassifier().fit(rng.normal(size=(30, 2)), y_small)
    large = KNeighborsClassifier().fit(rng.normal(size=(60, 2)), y_large)
    wide = KNeighborsClassifier().fit(rng.normal(size=(60, 21)), y_large)
    cosine = KNeighborsClassifier(metric='cosine').fit(rng.normal(size=(60, 2)), y_large)

    assert small.effective_algorithm_ == 'brute'
    assert large.effective_algorithm_ == 'kd_tree'
    assert large.tree_ is not None
    assert wide.effective_algorithm_ == 'brute'
    assert cosine.effective_algorithm_ == 'brute'

    with pytest.raises(ValueError):
        KNeighborsClassifier(metric='cosine', algorithm='kd_tree').fit(
            rng.normal(size=(60, 2)), y_large
        )


def test_knn_algorithms_agree():
    """kd_tree와 brute의 예측이 같은지"""
    print("\n" + "=" * 50)
    print("Test: KNN kd_tree == brute")
    print("=" * 50)

    rng = np.random.default_rng(3)
    X = np.vstack([rng.normal(0, 1, (60, 2)), rng.normal(3, 1, (60, 2))])
    y = np.array(['left'] * 60 + ['right'] * 60)
    X_test = rng.uniform(-2, 5, size=(40, 2))

    for weights in ('uniform', 'distance'):
        brute = KNeighborsClassifier(n_neighbors=5, weights=weights, algorithm='brute').fit(X, y)
        tree = KNeighborsClassifier(n_neighbors=5, weights=weights, algorithm='kd_tree').fit(X, y)

        assert np.allclose(brute.predict_proba(X_test), tree.predict_proba(X_test))
        assert np.array_equal(brute.predict(X_test), tree.predict(X_test))
        print(f"  ✓ weights={weights}: 예측 일치")

    acc = KNeighborsClassifier(n_neighbors=5).fit(X, y).score(X, y)
    assert acc > 0.85
    print(f"  ✓ 학습 정확도: {acc:.3f}")
    print("  ✓ 모든 테스트 통과!")


def test_knn_kneighbors_shapes():
    rng = np.random.default_rng(4)
    X = rng.normal(size=(40, 3))
    knn = KNeighborsRegressor(n_neighbors=4).fit(X, X[:, 0])

    distances, indices = knn.kneighbors(X[:5])
    assert distances.shape == (5, 4) and indices.shape == (5, 4)
    # 학습 샘플 자신이 가장 가까운 이웃
    assert np.array_equal(indices[:, 0], np.arange(5))
    assert np.allclose(distances[:, 0], 0.0)

    only_indices = knn.kneighbors(X[:2], n_neighbors=2, return_distance=False)
    assert only_indices.shape == (2, 2)

    with pytest.raises(ValueError):
        knn.kneighbors(X[:1], n_neighbors=41)


def test_knn_regressor_weighting():
    """uniform / distance 가중 평균"""
    X = np.array([[0.0], [1.0], [2.0]])
    y = np.array([0.0, 10.0, 20.0])

    uniform = KNeighborsRegressor(n_neighbors=2).fit(X, y)
    assert uniform.predict_single([0.4]) == pytest.approx(5.0)

    weighted = KNeighborsRegressor(n_neighbors=2, weights='distance').fit(X, y)
    # w = 1/0.25, 1/0.75
    assert weighted.predict_single([0.25]) == pytest.approx(2.5)
    # 거리 0인 이웃은 가중치 1
    assert weighted.predict_single([1.0]) == pytest.approx((10.0 + 0.0) / 2)


def test_knn_errors():
    X = np.zeros((3, 2))
    y = np.array([0, 1, 0])

    with pytest.raises(ValueError):
        KNeighborsClassifier(n_neighbors=4).fit(X, y)
    with pytest.raises(ValueError):
        KNeighborsClassifier(n_neighbors=0).fit(X, y)
    with pytest.raises(ValueError):
        KNeighborsClassifier(weights='gaussian').fit(X, y)
    with pytest.raises(ValueError):
        KNeighborsClassifier(algorithm='ball_tree', n_neighbors=1).fit(X, y)
    with pytest.raises(RuntimeError):
        KNeighborsClassifier().predict(X)


def run_all_tests():
    """모든 테스트 실행"""
    print("\n" + "=" * 60)
    print("CLASSIC ML - 최근접 이웃 검증 테스트")
    print("=" * 60)

    tests = [
        test_distance_metrics,
        test_get_metric,
        test_kd_tree_matches_brute_force,
        test_kd_tree_query_radius,
        test_kd_tree_structure_and_errors,
        test_knn_classifier_basic,
        test_knn_algorithm_selection,
        test_knn_algorithms_agree,
        test_knn_kneighbors_shapes,
        test_knn_regressor_weighting,
        test_knn_errors,
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
