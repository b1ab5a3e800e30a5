"""
KD-Tree - From Scratch Implementation
=====================================

k차원 공간을 축 정렬 초평면으로 재귀 분할하는 이진 탐색 트리.

구축:
    깊이 d의 노드는 split_dim = d % n_features 축을 기준으로
    현재 점들을 정렬하고 중앙값(인덱스 n // 2)을 노드에 저장,
    앞쪽 절반은 왼쪽, 뒤쪽 절반은 오른쪽 서브트리가 됩니다.

k-최근접 탐색:
    크기 k의 최대 힙(거리 부호 반전)에 후보를 유지합니다.
    질의점이 속한 쪽을 먼저 방문하고, 반대쪽은
      - 힙이 아직 k개 미만이거나
      - 분할면까지의 거리 |x[d] - node[d]|가 현재 k번째 거리보다 작을 때만
    탐색합니다. Minkowski 계열 거리에서만 이 가지치기가 유효합니다.

복잡도:
    구축 O(n log² n), 균형 트리에서 질의 평균 O(log n)
"""

import heapq
import numpy as np
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from .distance import DistanceMetric, get_metric
from .utils import check_array


@dataclass
class KDNode:
    """KD-Tree 노드 (None이 빈 서브트리)"""

    index: int                          # 학습 데이터에서의 행 인덱스
    point: np.ndarray                   # 저장된 점
    split_dim: int                      # 분할 축
    label: Any = None                   # 선택적 레이블
    left: Optional['KDNode'] = None
    right: Optional['KDNode'] = None


class KDTree:
    """
    KD-Tree 최근접 이웃 탐색

    Parameters
    ----------
    X : ndarray of shape (n_samples, n_features)
        색인할 점들
    labels : array-like of shape (n_samples,), optional
        각 점의 레이블 (노드에 함께 저장)
    metric : str or DistanceMetric, default='euclidean'
        Minkowski 계열만 허용 ('euclidean', 'manhattan', 'minkowski')
    p : float, default=2
        metric='minkowski'일 때의 차수

    Examples
    --------
    >>> tree = KDTree(np.array([[0.0, 0.0], [1.0, 1.0], [5.0, 5.0]]))
    >>> indices, distances = tree.query([0.9, 0.9], k=2)
    """

    def __init__(
        self,
        X: np.ndarray,
        labels: Optional[np.ndarray] = None,
        metric: Union[str, DistanceMetric] = 'euclidean',
        p: float = 2
    ):
        self.data = check_array(X)
        self.labels = None if labels is None else np.asarray(labels).ravel()

        if self.labels is not None and len(self.labels) != len(self.data):
            raise ValueError(
                f"X와 labels의 샘플 수가 일치하지 않습니다: {len(self.data)} vs {len(self.labels)}"
            )

        self.metric = get_metric(metric, p)
        if not self.metric.supports_kd_tree:
            raise ValueError(
                f"KD-Tree는 {self.metric.name} 거리를 지원하지 않습니다. "
                "Minkowski 계열 거리를 사용하세요."
            )

        self.n_features = self.data.shape[1]
        self.root = self._build(np.arange(len(self.data)), depth=0)

    def _build(self, indices: np.ndarray, depth: int) -> Optional[KDNode]:
        if len(indices) == 0:
            return None

        split_dim = depth % self.n_features
        order = np.argsort(self.data[indices, split_dim], kind='stable')
        indices = indices[order]
        median = len(indices) // 2
        index = int(indices[median])

        return KDNode(
            index=index,
            point=self.data[index],
            split_dim=split_dim,
            label=None if self.labels is None else self.labels[index],
            left=self._build(indices[:median], depth + 1),
            right=self._build(indices[median + 1:], depth + 1)
        )

    def _check_query(self, x: Any) -> np.ndarray:
        x = np.asarray(x, dtype=float).ravel()
        if len(x) != self.n_features:
            raise ValueError(
                f"피처 수가 학습 데이터와 다릅니다: {len(x)} vs {self.n_features}"
            )
        return x

    def query(self, x: Any, k: int = 1) -> Tuple[np.ndarray, np.ndarray]:
        """
        k-최근접 이웃 탐색

        Returns
        -------
        indices : ndarray of shape (k,)
            가까운 순서의 학습 데이터 인덱스
        distances : ndarray of shape (k,)
            해당 거리
        """
        x = self._check_query(x)
        if k <= 0:
            raise ValueError(f"k는 1 이상이어야 합니다: {k}")
        if k > len(self):
            raise ValueError(f"k가 저장된 점의 수보다 큽니다: {k} > {len(self)}")

        # (-거리, -인덱스): 같은 거리면 인덱스가 큰 후보부터 밀려남
        heap: List[Tuple[float, int]] = []

        def _search(node: Optional[KDNode]) -> None:
            if node is None:
                return

            dist = self.metric(node.point, x)
            item = (-dist, -node.index)
            if len(heap) < k:
                heapq.heappush(heap, item)
            elif item > heap[0]:
                heapq.heapreplace(heap, item)

            diff = x[node.split_dim] - node.point[node.split_dim]
            near, far = (node.left, node.right) if diff <= 0 else (node.right, node.left)

            _search(near)
            if len(heap) < k or abs(diff) <= -heap[0][0]:
                _search(far)

        _search(self.root)

        result = sorted((-d, -i) for d, i in heap)
        indices = np.array([i for _, i in result], dtype=int)
        distances = np.array([d for d, _ in result])
        return indices, distances

    def query_radius(self, x: Any, r: float) -> Tuple[np.ndarray, np.ndarray]:
        """거리 r 이내의 모든 점 (거리순 정렬)"""
        x = self._check_query(x)
        found: List[Tuple[float, int]] = []

        def _search(node: Optional[KDNode]) -> None:
            if node is None:
                return

            dist = self.metric(node.point, x)
            if dist <= r:
                found.append((dist, node.index))

            diff = x[node.split_dim] - node.point[node.split_dim]
            near, far = (node.left, node.right) if diff <= 0 else (node.right, node.left)

            _search(near)
            if abs(diff) <= r:
                _search(far)

        _search(self.root)
        found.sort()

        indices = np.array([i for _, i in found], dtype=int)
        distances = np.array([d for d, _ in found])
        return indices, distances

    def depth(self) -> int:
        """트리 깊이 (루트만 있으면 0)"""
        def _depth(node: Optional[KDNode]) -> int:
            if node is None:
                return -1
            return 1 + max(_depth(node.left), _depth(node.right))

        return max(_depth(self.root), 0)

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"KDTree(n_points={len(self)}, n_features={self.n_features}, metric={self.metric!r})"
