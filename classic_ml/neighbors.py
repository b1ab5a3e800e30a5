"""
K-Nearest Neighbors - From Scratch Implementation
=================================================

학습 단계에서는 데이터를 저장(필요하면 KD-Tree 구축)만 하고,
예측 시점에 가장 가까운 k개 이웃으로 결정하는 게으른(lazy) 학습기.

수학적 배경:
-----------
이웃 집합 N_k(x): x와의 거리가 가장 작은 k개의 학습 샘플

가중치:
    uniform:  w_i = 1
    distance: w_i = 1 / d(x, x_i)   (d = 0이면 w_i = 1)

분류:
    p(c|x) = Σ_{i∈N_k, y_i=c} w_i / Σ_{i∈N_k} w_i
    ŷ = argmax_c p(c|x)

회귀:
    ŷ = Σ w_i y_i / Σ w_i

탐색 알고리즘:
    brute   : 모든 거리 계산 후 안정 정렬 (동률은 인덱스 순)
    kd_tree : Minkowski 계열 거리에서 KD-Tree 가지치기
    auto    : 피처 수 <= 20 이고 샘플 수 > 30 이면 KD-Tree

Author: ML From Scratch Project
"""

import numpy as np
from typing import Optional, Tuple, Union, Any

from .config import CONFIG
from .distance import DistanceMetric, get_metric
from .kd_tree import KDTree
from .metrics import accuracy_score, r2_score
from .utils import check_X_y, check_is_fitted, check_predict_input


class BaseKNeighbors:
    """KNN 분류/회귀 공통 로직 (저장, 알고리즘 선택, 이웃 탐색)"""

    def __init__(
        self,
        n_neighbors: int = 5,
        weights: str = 'uniform',
        metric: Union[str, DistanceMetric] = 'euclidean',
        p: float = 2,
        algorithm: str = 'auto'
    ):
        self.n_neighbors = n_neighbors
        self.weights = weights
        self.metric = metric
        self.p = p
        self.algorithm = algorithm

        # 학습 후 설정되는 속성들
        self.X_train_: Optional[np.ndarray] = None
        self.y_train_: Optional[np.ndarray] = None
        self.metric_: Optional[DistanceMetric] = None
        self.effective_algorithm_: Optional[str] = None
        self.tree_: Optional[KDTree] = None
        self.n_features_: int = 0

    def _choose_algorithm(self, n_samples: int, n_features: int) -> str:
        if self.algorithm == 'brute':
            return 'brute'

        if self.algorithm == 'kd_tree':
            if not self.metric_.supports_kd_tree:
                raise ValueError(
                    f"algorithm='kd_tree'는 {self.metric_.name} 거리와 함께 사용할 수 없습니다."
                )
            return 'kd_tree'

        if self.algorithm == 'auto':
            use_tree = (
                self.metric_.supports_kd_tree
                and n_features <= CONFIG['kd_tree_max_features']
                and n_samples > CONFIG['kd_tree_min_samples']
            )
            return 'kd_tree' if use_tree else 'brute'

        raise ValueError(f"지원하지 않는 algorithm 값입니다: {self.algorithm!r}")

    def _fit(self, X: np.ndarray, y: np.ndarray) -> None:
        if self.n_neighbors <= 0:
            raise ValueError(f"n_neighbors는 1 이상이어야 합니다: {self.n_neighbors}")
        if self.weights not in ('uniform', 'distance'):
            raise ValueError(f"지원하지 않는 weights 값입니다: {self.weights!r}")

        n_samples, n_features = X.shape
        if n_samples < self.n_neighbors:
            raise ValueError(
                f"학습 샘플 수가 n_neighbors보다 적습니다: {n_samples} < {self.n_neighbors}"
            )

        self.metric_ = get_metric(self.metric, self.p)
        self.effective_algorithm_ = self._choose_algorithm(n_samples, n_features)

        self.X_train_ = X
        self.y_train_ = y
        self.n_features_ = n_features
        self.tree_ = KDTree(X, metric=self.metric_) if self.effective_algorithm_ == 'kd_tree' else None

    def _neighbors_of(self, x: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
        if self.tree_ is not None:
            return self.tree_.query(x, k)

        distances = self.metric_.pairwise(self.X_train_, x)
        order = np.argsort(distances, kind='stable')[:k]
        return order, distances[order]

    def kneighbors(
        self,
        X: np.ndarray,
        n_neighbors: Optional[int] = None,
        return_distance: bool = True
    ) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
        """
        각 질의점의 k-최근접 이웃

        Returns
        -------
        distances : ndarray of shape (n_queries, k)
            return_distance=True일 때만 반환
        indices : ndarray of shape (n_queries, k)
            학습 데이터 인덱스 (가까운 순)
        """
        check_is_fitted(self, 'X_train_')
        X = check_predict_input(X, self.n_features_)

        k = self.n_neighbors if n_neighbors is None else n_neighbors
        if k <= 0 or k > len(self.X_train_):
            raise ValueError(f"n_neighbors가 유효 범위를 벗어났습니다: {k}")

        results = [self._neighbors_of(x, k) for x in X]
        indices = np.array([idx for idx, _ in results], dtype=int)
        distances = np.array([dist for _, dist in results])

        if return_distance:
            return distances, indices
        return indices

    def _weights_for(self, distances: np.ndarray) -> np.ndarray:
        if self.weights == 'uniform':
            return np.ones_like(distances)

        # 질의점과 일치하는 이웃은 1/0 대신 가중치 1
        safe = np.where(distances > 0, distances, 1.0)
        return np.where(distances > 0, 1.0 / safe, 1.0)


class KNeighborsClassifier(BaseKNeighbors):
    """
    K-최근접 이웃 분류 모델 (From Scratch)

    Parameters
    ----------
    n_neighbors : int, default=5
        참조할 이웃 수

    weights : {'uniform', 'distance'}, default='uniform'
        이웃 가중 방식

    metric : str or DistanceMetric, default='euclidean'
        'euclidean', 'manhattan', 'minkowski', 'cosine'

    p : float, default=2
        metric='minkowski'일 때의 차수

    algorithm : {'auto', 'kd_tree', 'brute'}, default='auto'
        이웃 탐색 방식. 코사인 거리는 항상 brute

    Attributes
    ----------
    classes_ : ndarray
        정렬된 고유 클래스 레이블

    effective_algorithm_ : str
        실제로 선택된 탐색 방식

    Examples
    --------
    >>> knn = KNeighborsClassifier(n_neighbors=1).fit(
    ...     np.array([[0, 0], [10, 10]]), np.array([0, 1]))
    >>> knn.predict_single(np.array([0.1, 0.1]))
    0
    """

    def __init__(
        self,
        n_neighbors: int = 5,
        weights: str = 'uniform',
        metric: Union[str, DistanceMetric] = 'euclidean',
        p: float = 2,
        algorithm: str = 'auto'
    ):
        super().__init__(n_neighbors, weights, metric, p, algorithm)
        self.classes_: Optional[np.ndarray] = None

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'KNeighborsClassifier':
        X, y = check_X_y(X, y)
        self.classes_, y_encoded = np.unique(y, return_inverse=True)
        self._fit(X, y_encoded)
        return self

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """
        이웃 가중치의 클래스별 합을 정규화한 확률

        Returns
        -------
        proba : ndarray of shape (n_samples, n_classes)
        """
        distances, indices = self.kneighbors(X)
        w = self._weights_for(distances)

        proba = np.zeros((len(indices), len(self.classes_)))
        for i in range(len(indices)):
            np.add.at(proba[i], self.y_train_[indices[i]], w[i])

        return proba / proba.sum(axis=1, keepdims=True)

    def predict_proba_single(self, x: np.ndarray) -> np.ndarray:
        return self.predict_proba(x)[0]

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.classes_[np.argmax(self.predict_proba(X), axis=1)]

    def predict_single(self, x: np.ndarray) -> Any:
        return self.predict(x)[0]

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        return accuracy_score(y, self.predict(X))

    def __repr__(self) -> str:
        return (
            f"KNeighborsClassifier(n_neighbors={self.n_neighbors}, "
            f"weights='{self.weights}', algorithm={self.effective_algorithm_ or self.algorithm!r})"
        )


class KNeighborsRegressor(BaseKNeighbors):
    """
    K-최근접 이웃 회귀 모델 (From Scratch)

    이웃 타겟의 (가중) 평균으로 예측합니다. 파라미터는 KNeighborsClassifier와 동일.
    """

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'KNeighborsRegressor':
        X, y = check_X_y(X, y, y_numeric=True)
        self._fit(X, y)
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        distances, indices = self.kneighbors(X)
        w = self._weights_for(distances)
        return np.sum(w * self.y_train_[indices], axis=1) / np.sum(w, axis=1)

    def predict_single(self, x: np.ndarray) -> float:
        return float(self.predict(x)[0])

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        return r2_score(y, self.predict(X))

    def __repr__(self) -> str:
        return (
            f"KNeighborsRegressor(n_neighbors={self.n_neighbors}, "
            f"weights='{self.weights}', algorithm={self.effective_algorithm_ or self.algorithm!r})"
        )
