"""
Classic ML - 군집화 검증 테스트
===============================

K-Means, Mini-Batch K-Means, DBSCAN의 정확성을 검증합니다.

테스트 항목:
1. 두 군집 데이터에서 중심 복원
2. inertia_ = 모든 실행 중 최솟값
3. 빈 군집 처리와 고정 초기 중심
4. DBSCAN 핵심점 / 경계점 / 노이즈 구분

Author: ML From Scratch Project
"""

import numpy as np
import pytest

from classic_ml import DBSCAN, KMeans, MiniBatchKMeans
from classic_ml.cluster import kmeans_plusplus


TRUE_CENTERS = np.array([[0.0, 0.0], [10.0, 10.0]])


def _two_blobs(seed=0):
    rng = np.random.default_rng(seed)
    return np.vstack([
        rng.normal(TRUE_CENTERS[0], 1.0, (50, 2)),
        rng.normal(TRUE_CENTERS[1], 1.0, (50, 2)),
    ])


def test_kmeans_two_blobs():
    """K-Means가 두 군집의 중심을 복원하는지 검증"""
    print("=" * 50)
    print("Test: K-Means Two Blobs")
    print("=" * 50)

    X = _two_blobs()
    km = KMeans(n_clusters=2, n_init=5, random_state=0).fit(X)

    # 중심 순서와 무관하게 비교
    order = np.argsort(km.cluster_centers_[:, 0])
    centers = km.cluster_centers_[order]
    assert np.allclose(centers, TRUE_CENTERS, atol=0.5), f"중심 오차가 큼: {centers}"

    # 각 군집은 하나의 레이블만 가짐
    assert len(set(km.labels_[:50])) == 1
    assert len(set(km.labels_[50:])) == 1
    assert km.labels_[0] != km.labels_[50]

    assert len(km.inertia_history_) == 5
    assert km.inertia_ == pytest.approx(min(km.inertia_history_))
    assert km.inertia_ <= min(km.inertia_history_)

    # 표준편차 1인 2차원 군집 100점: 기대 inertia는 약 200
    assert km.inertia_ < 300.0, f"inertia가 큼: {km.inertia_}"

    sil = km.silhouette_score(X)
    assert sil > 0.7

    print(f"  ✓ 중심: {np.round(centers, 3).tolist()}")
    print(f"  ✓ Inertia: {km.inertia_:.4f}")
    print(f"  ✓ Silhouette: {sil:.4f}")
    print("  ✓ 모든 테스트 통과!")


def test_kmeans_predict_transform_score():
    X = _two_blobs(1)
    km = KMeans(n_clusters=2, init='random', n_init=3, random_state=1).fit(X)

    assert np.array_equal(km.predict(X), km.labels_)
    assert km.transform(X).shape == (100, 2)
    assert km.score(X) == pytest.approx(-km.inertia_)
    assert km.predict_single(np.array([10.0, 10.0])) == km.labels_[50]
    assert np.array_equal(
        KMeans(n_clusters=2, n_init=3, random_state=1, init='random').fit_predict(X),
        km.labels_
    )


def test_kmeans_fixed_init_and_empty_cluster():
    """고정 초기 중심은 한 번만 실행, 빈 군집은 이전 중심 유지"""
    X = _two_blobs(2)
    init = np.array([[0.0, 0.0], [10.0, 10.0], [100.0, 100.0]])

    km = KMeans(n_clusters=3, init=init, n_init=10).fit(X)

    assert len(km.inertia_history_) == 1
    assert np.allclose(km.cluster_centers_[2], [100.0, 100.0])
    assert not np.any(km.labels_ == 2)


def test_kmeans_errors():
    X = _two_blobs()

    with pytest.raises(ValueError):
        KMeans(n_clusters=2, init=np.zeros((3, 2))).fit(X)
    with pytest.raises(ValueError):
        KMeans(n_clusters=101).fit(X)
    with pytest.raises(ValueError):
        KMeans(n_clusters=2, init='forgy').fit(X)
    with pytest.raises(ValueError):
        KMeans(n_clusters=0).fit(X)
    with pytest.raises(RuntimeError):
        KMeans().predict(X)


def test_kmeans_plusplus_duplicates():
    """모든 점이 같아도 k-means++ 초기화가 실패하지 않음"""
    X = np.ones((5, 2))
    centers = kmeans_plusplus(X, 3, np.random.default_rng(0))

    assert centers.shape == (3, 2)
    assert np.allclose(centers, 1.0)

    km = KMeans(n_clusters=3, n_init=2, random_state=0).fit(X)
    assert km.inertia_ == pytest.approx(0.0)


def test_minibatch_kmeans():
    """Mini-Batch K-Means 학습과 partial_fit"""
    print("\n" + "=" * 50)
    print("Test: Mini-Batch K-Means")
    print("=" * 50)

    X = _two_blobs(3)
    mbk = MiniBatchKMeans(n_clusters=2, batch_size=20, max_iter=50, random_state=0).fit(X)

    assert mbk.cluster_centers_.shape == (2, 2)
    assert mbk.counts_.sum() == 20 * 50
    assert len(mbk.labels_) == 100

    # 중심 하나일 때보다 inertia가 작아야 함
    single_inertia = np.sum((X - X.mean(axis=0)) ** 2)
    assert mbk.inertia_ < single_inertia

    stream = MiniBatchKMeans(n_clusters=2, random_state=0)
    stream.partial_fit(X[::2])
    first_counts = stream.counts_.sum()
    stream.partial_fit(X[1::2])

    assert first_counts == 50
    assert stream.counts_.sum() == 100
    assert stream.predict(X).shape == (100,)

    with pytest.raises(ValueError):
        MiniBatchKMeans(n_clusters=2, batch_size=0).fit(X)

    print(f"  ✓ Inertia: {mbk.inertia_:.4f} (단일 중심: {single_inertia:.4f})")
    print("  ✓ 모든 테스트 통과!")


def test_dbscan_core_border_noise():
    """DBSCAN 핵심점 / 경계점 / 노이즈 구분"""
    print("\n" + "=" * 50)
    print("Test: DBSCAN Core / Border / Noise")
    print("=" * 50)

    X = np.array([
        [0.0, 0.0],
        [0.4, 0.0],
        [0.8, 0.0],
        [1.2, 0.0],
        [10.0, 0.0],
    ])

    db = DBSCAN(eps=0.5, min_samples=3).fit(X)

    assert list(db.core_sample_indices_) == [1, 2]
    assert list(db.labels_) == [0, 0, 0, 0, -1]
    assert db.n_clusters_ == 1
    assert np.allclose(db.components_, X[[1, 2]])

    print(f"  ✓ 레이블: {db.labels_.tolist()}")
    print("  ✓ 모든 테스트 통과!")


def test_dbscan_two_clusters_with_outlier():
    rng = np.random.default_rng(4)
    X = np.vstack([
        rng.normal(0.0, 0.1, (15, 2)),
        rng.normal(5.0, 0.1, (15, 2)),
        [[20.0, 20.0]],
    ])

    labels = DBSCAN(eps=0.5, min_samples=3).fit_predict(X)

    assert labels[-1] == -1
    assert len(set(labels[:15])) == 1 and len(set(labels[15:30])) == 1
    assert labels[0] != labels[15]
    assert set(labels) == {-1, 0, 1}

    with pytest.raises(ValueError):
        DBSCAN(eps=0).fit(X)
    with pytest.raises(ValueError):
        DBSCAN(min_samples=0).fit(X)


def run_all_tests():
    """모든 테스트 실행"""
    print("\n" + "=" * 60)
    print("CLASSIC ML - 군집화 검증 테스트")
    print("=" * 60)

    tests = [
        test_kmeans_two_blobs,
        test_kmeans_predict_transform_score,
        test_kmeans_fixed_init_and_empty_cluster,
        test_kmeans_errors,
        test_kmeans_plusplus_duplicates,
        test_minibatch_kmeans,
        test_dbscan_core_border_noise,
        test_dbscan_two_clusters_with_outlier,
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
