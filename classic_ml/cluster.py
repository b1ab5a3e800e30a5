"""
Clustering - From Scratch Implementation
========================================

K-Means, Mini-Batch K-Means, DBSCAN

수학적 배경:
-----------
K-Means 목적 함수 (inertia):
    J = Σ_i min_k ||x_i - μ_k||²

Lloyd 알고리즘:
    1. 할당: c_i = argmin_k ||x_i - μ_k||²
    2. 갱신: μ_k = mean({x_i : c_i = k})  (빈 군집은 이전 중심 유지)
    3. 중심 이동량의 최대 제곱이 tol² 미만이면 종료

k-means++ 초기화:
    첫 중심은 균등 추출, 이후 중심은 가장 가까운 중심까지의
    거리 제곱 D(x)²에 비례하는 확률로 추출

Mini-Batch K-Means:
    미니배치의 각 점 x가 군집 k에 할당될 때
    count_k += 1, η = 1 / count_k, μ_k ← (1 - η) μ_k + η x

DBSCAN:
    N_eps(p) = {q : d(p, q) <= eps}  (자기 자신 포함)
    |N_eps(p)| >= min_samples이면 핵심점(core)
    핵심점에서 밀도 도달 가능한 점들을 BFS로 확장해 하나의 군집 구성
    어느 군집에도 도달하지 못한 점은 노이즈(-1)

Author: ML From Scratch Project
"""

import numpy as np
from collections import deque
from typing import Optional, List, Union, Any

from .distance import DistanceMetric, get_metric
from .metrics import silhouette_score as _silhouette_score
from .utils import (
    check_array,
    check_is_fitted,
    check_predict_input,
    check_random_state,
)


def _squared_distances(X: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """각 샘플과 각 중심 사이의 거리 제곱, shape (n_samples, n_clusters)"""
    d2 = (
        np.sum(X ** 2, axis=1)[:, None]
        + np.sum(centers ** 2, axis=1)[None, :]
        - 2 * X @ centers.T
    )
    return np.maximum(d2, 0.0)


def kmeans_plusplus(X: np.ndarray, n_clusters: int, rng: np.random.Generator) -> np.ndarray:
    """k-means++ 초기 중심 선택"""
    n_samples = X.shape[0]
    centers = np.empty((n_clusters, X.shape[1]))
    centers[0] = X[rng.integers(n_samples)]

    closest_d2 = _squared_distances(X, centers[:1]).ravel()
    for k in range(1, n_clusters):
        total = closest_d2.sum()
        if total > 0:
            idx = rng.choice(n_samples, p=closest_d2 / total)
        else:
            # 모든 점이 이미 선택된 중심과 겹침
            idx = rng.integers(n_samples)
        centers[k] = X[idx]
        closest_d2 = np.minimum(closest_d2, _squared_distances(X, centers[k:k + 1]).ravel())

    return centers


class KMeans:
    """
    K-Means 군집화 (Lloyd 알고리즘)

    Parameters
    ----------
    n_clusters : int, default=8
        군집 수

    init : {'k-means++', 'random'} or ndarray, default='k-means++'
        초기화 방식. ndarray이면 shape (n_clusters, n_features)의 고정 중심이며
        n_init과 무관하게 한 번만 실행

    n_init : int, default=10
        서로 다른 초기화로 반복 실행할 횟수 (inertia가 가장 낮은 결과 사용)

    max_iter : int, default=300
        실행당 최대 반복 횟수

    tol : float, default=1e-4
        중심 이동 허용 오차

    random_state : int or np.random.Generator, default=None
        랜덤 시드

    verbose : int, default=0
        출력 수준

    Attributes
    ----------
    cluster_centers_ : ndarray of shape (n_clusters, n_features)
    labels_ : ndarray of shape (n_samples,)
    inertia_ : float
        선택된 실행의 군집 내 거리 제곱합
    n_iter_ : int
        선택된 실행의 반복 횟수
    inertia_history_ : list of float
        모든 실행의 최종 inertia

    Examples
    --------
    >>> X = np.vstack([np.random.randn(50, 2), np.random.randn(50, 2) + 10])
    >>> km = KMeans(n_clusters=2, n_init=5, random_state=0).fit(X)
    >>> km.cluster_centers_.shape
    (2, 2)
    """

    def __init__(
        self,
        n_clusters: int = 8,
        init: Union[str, np.ndarray] = 'k-means++',
        n_init: int = 10,
        max_iter: int = 300,
        tol: float = 1e-4,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.n_clusters = n_clusters
        self.init = init
        self.n_init = n_init
        self.max_iter = max_iter
        self.tol = tol
        self.random_state = random_state
        self.verbose = verbose

        # 학습 후 설정되는 속성들
        self.cluster_centers_: Optional[np.ndarray] = None
        self.labels_: Optional[np.ndarray] = None
        self.inertia_: Optional[float] = None
        self.n_iter_: int = 0
        self.inertia_history_: List[float] = []
        self.n_features_: int = 0

    def _validate(self, X: np.ndarray) -> Optional[np.ndarray]:
        if self.n_clusters <= 0:
            raise ValueError(f"n_clusters는 1 이상이어야 합니다: {self.n_clusters}")
        if self.n_init < 1 or self.max_iter < 1:
            raise ValueError(f"n_init과 max_iter는 1 이상이어야 합니다: {self.n_init}, {self.max_iter}")
        if X.shape[0] < self.n_clusters:
            raise ValueError(
                f"샘플 수가 군집 수보다 적습니다: {X.shape[0]} < {self.n_clusters}"
            )

        if isinstance(self.init, str):
            if self.init not in ('k-means++', 'random'):
                raise ValueError(f"지원하지 않는 init 값입니다: {self.init!r}")
            return None

        fixed = np.asarray(self.init, dtype=float)
        if fixed.shape != (self.n_clusters, X.shape[1]):
            raise ValueError(
                f"고정 초기 중심의 shape이 맞지 않습니다: {fixed.shape} vs "
                f"({self.n_clusters}, {X.shape[1]})"
            )
        return fixed

    def _init_centers(self, X: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        if self.init == 'k-means++':
            return kmeans_plusplus(X, self.n_clusters, rng)
        indices = rng.choice(X.shape[0], self.n_clusters, replace=False)
        return X[indices].copy()

    def _lloyd(self, X: np.ndarray, centers: np.ndarray):
        """한 번의 Lloyd 실행: (centers, labels, inertia, n_iter)"""
        centers = centers.copy()
        tol_sq = self.tol ** 2
        n_iter = 0

        for n_iter in range(1, self.max_iter + 1):
            labels = np.argmin(_squared_distances(X, centers), axis=1)

            new_centers = centers.copy()
            for k in range(self.n_clusters):
                members = X[labels == k]
                if len(members) > 0:
                    new_centers[k] = members.mean(axis=0)

            max_shift = np.max(np.sum((new_centers - centers) ** 2, axis=1))
            centers = new_centers
            if max_shift < tol_sq:
                break

        d2 = _squared_distances(X, centers)
        labels = np.argmin(d2, axis=1)
        inertia = float(np.sum(d2[np.arange(len(X)), labels]))
        return centers, labels, inertia, n_iter

    def fit(self, X: np.ndarray, y: Any = None) -> 'KMeans':
        """
        K-Means 학습 (n_init번 실행 중 최저 inertia 선택)

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
        y : 무시됨

        Returns
        -------
        self : KMeans
        """
        X = check_array(X)
        fixed = self._validate(X)
        rng = check_random_state(self.random_state)
        self.n_features_ = X.shape[1]

        n_runs = 1 if fixed is not None else self.n_init
        best = None
        self.inertia_history_ = []

        for run in range(n_runs):
            start = fixed if fixed is not None else self._init_centers(X, rng)
            result = self._lloyd(X, start)
            self.inertia_history_.append(result[2])

            if self.verbose > 0:
                print(f"실행 {run + 1}/{n_runs}: inertia={result[2]:.4f}, 반복 {result[3]}회")

            if best is None or result[2] < best[2]:
                best = result

        self.cluster_centers_, self.labels_, self.inertia_, self.n_iter_ = best
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        """가장 가까운 중심의 인덱스"""
        check_is_fitted(self, 'cluster_centers_')
        X = check_predict_input(X, self.n_features_)
        return np.argmin(_squared_distances(X, self.cluster_centers_), axis=1)

    def predict_single(self, x: np.ndarray) -> int:
        return int(self.predict(x)[0])

    def fit_predict(self, X: np.ndarray, y: Any = None) -> np.ndarray:
        return self.fit(X).labels_

    def transform(self, X: np.ndarray) -> np.ndarray:
        """각 중심까지의 유클리드 거리, shape (n_samples, n_clusters)"""
        check_is_fitted(self, 'cluster_centers_')
        X = check_predict_input(X, self.n_features_)
        return np.sqrt(_squared_distances(X, self.cluster_centers_))

    def score(self, X: np.ndarray, y: Any = None) -> float:
        """음의 inertia (클수록 좋음)"""
        d2 = self.transform(X) ** 2
        return float(-np.sum(np.min(d2, axis=1)))

    def silhouette_score(self, X: np.ndarray) -> float:
        """X에 대한 평균 실루엣 점수"""
        return _silhouette_score(X, self.predict(X))

    def __repr__(self) -> str:
        if self.cluster_centers_ is None:
            return f"KMeans(n_clusters={self.n_clusters}, not fitted)"
        return f"KMeans(n_clusters={self.n_clusters}, inertia={self.inertia_:.4f})"


class MiniBatchKMeans:
    """
    Mini-Batch K-Means

    전체 데이터 대신 무작위 미니배치로 중심을 점진적으로 갱신합니다.
    군집별 누적 할당 수를 학습률의 역수로 사용합니다.

    Parameters
    ----------
    n_clusters : int, default=8
    batch_size : int, default=100
        미니배치 크기 (샘플 수를 넘으면 샘플 수로 제한)
    max_iter : int, default=100
        미니배치 반복 횟수
    random_state : int or np.random.Generator, default=None
    verbose : int, default=0

    Attributes
    ----------
    cluster_centers_, labels_, inertia_ : KMeans와 동일
    counts_ : ndarray of shape (n_clusters,)
        군집별 누적 할당 수
    """

    def __init__(
        self,
        n_clusters: int = 8,
        batch_size: int = 100,
        max_iter: int = 100,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.n_clusters = n_clusters
        self.batch_size = batch_size
        self.max_iter = max_iter
        self.random_state = random_state
        self.verbose = verbose

        self.cluster_centers_: Optional[np.ndarray] = None
        self.labels_: Optional[np.ndarray] = None
        self.inertia_: Optional[float] = None
        self.counts_: Optional[np.ndarray] = None
        self.n_features_: int = 0
        self._rng: Optional[np.random.Generator] = None

    def _validate(self, X: np.ndarray) -> None:
        if self.n_clusters <= 0:
            raise ValueError(f"n_clusters는 1 이상이어야 합니다: {self.n_clusters}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size는 1 이상이어야 합니다: {self.batch_size}")
        if X.shape[0] < self.n_clusters:
            raise ValueError(
                f"샘플 수가 군집 수보다 적습니다: {X.shape[0]} < {self.n_clusters}"
            )

    def _init_state(self, X: np.ndarray) -> None:
        self._rng = check_random_state(self.random_state)
        self.n_features_ = X.shape[1]
        indices = self._rng.choice(X.shape[0], self.n_clusters, replace=False)
        self.cluster_centers_ = X[indices].copy()
        self.counts_ = np.zeros(self.n_clusters, dtype=int)

    def _update(self, batch: np.ndarray) -> None:
        assignments = np.argmin(_squared_distances(batch, self.cluster_centers_), axis=1)
        for x, k in zip(batch, assignments):
            self.counts_[k] += 1
            eta = 1.0 / self.counts_[k]
            self.cluster_centers_[k] = (1 - eta) * self.cluster_centers_[k] + eta * x

    def _finalize(self, X: np.ndarray) -> None:
        d2 = _squared_distances(X, self.cluster_centers_)
        self.labels_ = np.argmin(d2, axis=1)
        self.inertia_ = float(np.sum(d2[np.arange(len(X)), self.labels_]))

    def fit(self, X: np.ndarray, y: Any = None) -> 'MiniBatchKMeans':
        X = check_array(X)
        self._validate(X)
        self._init_state(X)

        batch_size = min(self.batch_size, X.shape[0])
        for it in range(self.max_iter):
            batch = X[self._rng.choice(X.shape[0], batch_size, replace=False)]
            self._update(batch)

            if self.verbose > 0 and (it + 1) % max(1, self.max_iter // 10) == 0:
                print(f"반복 {it + 1}/{self.max_iter}")

        self._finalize(X)
        return self

    def partial_fit(self, X: np.ndarray, y: Any = None) -> 'MiniBatchKMeans':
        """
        주어진 배치 하나로 중심 갱신

        첫 호출에서는 배치에서 초기 중심을 뽑습니다.
        """
        if self.cluster_centers_ is None:
            X = check_array(X)
            self._validate(X)
            self._init_state(X)
        else:
            X = check_predict_input(X, self.n_features_)

        self._update(X)
        self._finalize(X)
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        check_is_fitted(self, 'cluster_centers_')
        X = check_predict_input(X, self.n_features_)
        return np.argmin(_squared_distances(X, self.cluster_centers_), axis=1)

    def fit_predict(self, X: np.ndarray, y: Any = None) -> np.ndarray:
        return self.fit(X).labels_

    def __repr__(self) -> str:
        return f"MiniBatchKMeans(n_clusters={self.n_clusters}, batch_size={self.batch_size})"


class DBSCAN:
    """
    DBSCAN (Density-Based Spatial Clustering of Applications with Noise)

    Parameters
    ----------
    eps : float, default=0.5
        이웃 반경
    min_samples : int, default=5
        핵심점이 되기 위한 최소 이웃 수 (자기 자신 포함)
    metric : str or DistanceMetric, default='euclidean'

    Attributes
    ----------
    labels_ : ndarray of shape (n_samples,)
        군집 번호, 노이즈는 -1
    core_sample_indices_ : ndarray
        핵심점 인덱스 (정렬됨)
    components_ : ndarray
        핵심점 좌표
    n_clusters_ : int
        발견된 군집 수
    """

    NOISE = -1

    def __init__(
        self,
        eps: float = 0.5,
        min_samples: int = 5,
        metric: Union[str, DistanceMetric] = 'euclidean'
    ):
        self.eps = eps
        self.min_samples = min_samples
        self.metric = metric

        self.labels_: Optional[np.ndarray] = None
        self.core_sample_indices_: Optional[np.ndarray] = None
        self.components_: Optional[np.ndarray] = None
        self.n_clusters_: int = 0

    def _region_queries(self, X: np.ndarray) -> List[np.ndarray]:
        metric = get_metric(self.metric)
        return [np.nonzero(metric.pairwise(X, x) <= self.eps)[0] for x in X]

    def fit(self, X: np.ndarray, y: Any = None) -> 'DBSCAN':
        X = check_array(X)
        if self.eps <= 0:
            raise ValueError(f"eps는 양수여야 합니다: {self.eps}")
        if self.min_samples < 1:
            raise ValueError(f"min_samples는 1 이상이어야 합니다: {self.min_samples}")

        n_samples = X.shape[0]
        neighborhoods = self._region_queries(X)
        is_core = np.array([len(nb) >= self.min_samples for nb in neighborhoods])

        labels = np.full(n_samples, self.NOISE, dtype=int)
        cluster_id = 0

        for i in range(n_samples):
            if labels[i] != self.NOISE or not is_core[i]:
                continue

            # 핵심점 i에서 BFS 확장
            labels[i] = cluster_id
            queue = deque([i])
            while queue:
                p = queue.popleft()
                if not is_core[p]:
                    continue
                for q in neighborhoods[p]:
                    if labels[q] == self.NOISE:
                        labels[q] = cluster_id
                        queue.append(q)

            cluster_id += 1

        self.labels_ = labels
        self.core_sample_indices_ = np.nonzero(is_core)[0]
        self.components_ = X[is_core]
        self.n_clusters_ = cluster_id
        return self

    def fit_predict(self, X: np.ndarray, y: Any = None) -> np.ndarray:
        return self.fit(X).labels_

    def __repr__(self) -> str:
        return f"DBSCAN(eps={self.eps}, min_samples={self.min_samples})"
