"""
거리 함수 전략
==============

KNN, KD-Tree, DBSCAN이 공유하는 거리 척도.

    Euclidean:  d(a, b) = sqrt(Σ (a_i - b_i)²)
    Manhattan:  d(a, b) = Σ |a_i - b_i|
    Minkowski:  d(a, b) = (Σ |a_i - b_i|^p)^(1/p)
    Cosine:     d(a, b) = 1 - a·b / (|a||b| + ε)

Minkowski 계열은 좌표 하나의 차이 |a_d - b_d|가 전체 거리의 하한이므로
KD-Tree 가지치기에 사용할 수 있습니다. 코사인 거리는 그렇지 않습니다.
"""

import numpy as np
from typing import Union

from .config import CONFIG


class DistanceMetric:
    """거리 척도 기본 클래스"""

    name = 'base'
    supports_kd_tree = False

    def __call__(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(self.pairwise(np.atleast_2d(a), b)[0])

    def pairwise(self, X: np.ndarray, x: np.ndarray) -> np.ndarray:
        """X의 각 행과 x 사이의 거리, shape (n_samples,)"""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MinkowskiDistance(DistanceMetric):
    name = 'minkowski'
    supports_kd_tree = True

    def __init__(self, p: float = 2):
        if p <= 0:
            raise ValueError(f"Minkowski p는 양수여야 합니다: {p}")
        self.p = p

    def pairwise(self, X: np.ndarray, x: np.ndarray) -> np.ndarray:
        diff = np.abs(np.asarray(X, dtype=float) - np.asarray(x, dtype=float))
        return np.sum(diff ** self.p, axis=1) ** (1.0 / self.p)

    def __repr__(self) -> str:
        return f"MinkowskiDistance(p={self.p})"


class EuclideanDistance(MinkowskiDistance):
    name = 'euclidean'

    def __init__(self):
        super().__init__(p=2)

    def pairwise(self, X: np.ndarray, x: np.ndarray) -> np.ndarray:
        diff = np.asarray(X, dtype=float) - np.asarray(x, dtype=float)
        return np.sqrt(np.sum(diff * diff, axis=1))

    def __repr__(self) -> str:
        return "EuclideanDistance()"


class ManhattanDistance(MinkowskiDistance):
    name = 'manhattan'

    def __init__(self):
        super().__init__(p=1)

    def pairwise(self, X: np.ndarray, x: np.ndarray) -> np.ndarray:
        return np.sum(np.abs(np.asarray(X, dtype=float) - np.asarray(x, dtype=float)), axis=1)

    def __repr__(self) -> str:
        return "ManhattanDistance()"


class CosineDistance(DistanceMetric):
    """1 - 코사인 유사도 (영벡터는 ε로 보호)"""

    name = 'cosine'
    supports_kd_tree = False

    def pairwise(self, X: np.ndarray, x: np.ndarray) -> np.ndarray:
        X = np.asarray(X, dtype=float)
        x = np.asarray(x, dtype=float)
        dot = X @ x
        norms = np.linalg.norm(X, axis=1) * np.linalg.norm(x)
        return 1.0 - dot / (norms + CONFIG['cosine_epsilon'])


def get_metric(metric: Union[str, DistanceMetric], p: float = 2) -> DistanceMetric:
    """
    이름 또는 인스턴스로부터 거리 척도 결정

    Parameters
    ----------
    metric : {'euclidean', 'manhattan', 'minkowski', 'cosine'} or DistanceMetric
    p : float
        metric='minkowski'일 때의 차수
    """
    if isinstance(metric, DistanceMetric):
        return metric

    if metric == 'euclidean':
        return EuclideanDistance()
    elif metric == 'manhattan':
        return ManhattanDistance()
    elif metric == 'minkowski':
        return MinkowskiDistance(p)
    elif metric == 'cosine':
        return CosineDistance()

    raise ValueError(f"지원하지 않는 거리 척도입니다: {metric!r}")
