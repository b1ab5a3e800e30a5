"""
Decision Tree - From Scratch Implementation
===========================================

CART (Classification and Regression Trees) 알고리즘 기반 결정 트리 구현.
분류(Gini / Entropy)와 회귀(MSE / MAE)를 같은 재귀 분할 엔진으로 처리합니다.

수학적 배경:
-----------
분류 불순도:
    Gini    = 1 - Σ p_k²
    Entropy = -Σ p_k * log2(p_k)

회귀 불순도:
    MSE = (1/n) * Σ(y_i - ȳ)²
    MAE = (1/n) * Σ|y_i - ȳ|

분할 후 가중 불순도:
    I_split = (n_left/n) * I_left + (n_right/n) * I_right

정보 이득 (Information Gain):
    Gain = I_parent - I_split

최적 분할: Gain이 최대인 (feature, threshold) 선택
임계값 후보: 정렬된 고유값들의 인접 중간점

예측:
    분류: 리프의 다수 클래스 (확률 = 리프의 클래스 분포)
    회귀: 리프 샘플의 평균

Author: ML From Scratch Project
"""

import numpy as np
from typing import Optional, Tuple, Dict, List, Any
from dataclasses import dataclass

from .metrics import accuracy_score, r2_score
from .utils import (
    check_X_y,
    check_is_fitted,
    check_predict_input,
    check_random_state,
    resolve_max_features,
)


@dataclass
class TreeNode:
    """결정 트리의 노드를 표현하는 클래스"""

    # 분할 정보 (내부 노드용)
    feature_idx: Optional[int] = None    # 분할에 사용된 피처 인덱스
    threshold: Optional[float] = None    # 분할 임계값

    # 자식 노드
    left: Optional['TreeNode'] = None    # 왼쪽 자식 (값 <= threshold)
    right: Optional['TreeNode'] = None   # 오른쪽 자식 (값 > threshold)

    # 리프 노드 정보
    value: Any = None                    # 회귀: 평균값, 분류: 다수 클래스
    class_counts: Optional[np.ndarray] = None  # 분류: classes_ 순서의 클래스별 샘플 수
    n_samples: int = 0                   # 노드에 도달한 샘플 수
    impurity: float = 0.0                # 노드의 불순도
    depth: int = 0                       # 노드의 깊이

    def is_leaf(self) -> bool:
        """리프 노드인지 확인"""
        return self.left is None and self.right is None


class BaseDecisionTree:
    """
    분류/회귀 결정 트리의 공통 엔진

    하위 클래스는 불순도 계산(_impurity), 벡터화된 분할 점수(_split_impurities),
    리프 값 설정(_make_leaf)만 정의합니다.
    """

    _criteria: Tuple[str, ...] = ()

    def __init__(
        self,
        criterion: str,
        max_depth: Optional[int] = 10,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        min_impurity_decrease: float = 0.0,
        max_features: Optional[Any] = None,
        random_state: Optional[Any] = None
    ):
        self.criterion = criterion
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.min_impurity_decrease = min_impurity_decrease
        self.max_features = max_features
        self.random_state = random_state

        # 학습 후 설정되는 속성들
        self.root_: Optional[TreeNode] = None
        self.n_features_: int = 0
        self.feature_importances_: Optional[np.ndarray] = None
        self.tree_stats_: Dict = {}
        self._rng: Optional[np.random.Generator] = None
        self._importance_acc: Optional[np.ndarray] = None
        self._n_split_features: int = 0

        # 학습 과정 기록 (시각화용)
        self.training_history_: List[Dict] = []

    # ------------------------------------------------------------------
    # 하위 클래스 구현부
    # ------------------------------------------------------------------
    def _impurity(self, y: np.ndarray) -> float:
        raise NotImplementedError

    def _split_impurities(
        self,
        y_sorted: np.ndarray,
        split_pos: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        정렬된 타겟에서 split_pos 위치(왼쪽 크기 = pos + 1)로 나눌 때
        왼쪽/오른쪽 불순도 배열 반환
        """
        raise NotImplementedError

    def _make_leaf(self, node: TreeNode, y: np.ndarray) -> None:
        raise NotImplementedError

    def _is_pure(self, y: np.ndarray) -> bool:
        return bool(np.all(y == y[0]))

    # ------------------------------------------------------------------
    # 학습
    # ------------------------------------------------------------------
    def _validate_params(self) -> None:
        if self.criterion not in self._criteria:
            raise ValueError(
                f"지원하지 않는 criterion입니다: {self.criterion!r} "
                f"(가능: {', '.join(self._criteria)})"
            )
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth는 0 이상이어야 합니다: {self.max_depth}")
        if self.min_samples_split < 2:
            raise ValueError(f"min_samples_split은 2 이상이어야 합니다: {self.min_samples_split}")
        if self.min_samples_leaf < 1:
            raise ValueError(f"min_samples_leaf는 1 이상이어야 합니다: {self.min_samples_leaf}")

    def _candidate_features(self) -> np.ndarray:
        """이번 노드에서 탐색할 피처 인덱스 (피처 서브샘플링)"""
        if self._n_split_features < self.n_features_:
            return self._rng.choice(
                self.n_features_, self._n_split_features, replace=False
            )
        return np.arange(self.n_features_)

    def _find_best_split(
        self,
        X: np.ndarray,
        y: np.ndarray,
        parent_impurity: float
    ) -> Tuple[Optional[int], Optional[float], float]:
        """
        최적의 분할점 탐색

        각 후보 피처에 대해:
        1. 피처 값으로 샘플 정렬
        2. 값이 바뀌는 모든 위치(인접 고유값의 중간점)를 임계값 후보로 사용
        3. 양쪽 자식이 min_samples_leaf 이상인 후보만 평가
        4. 최대 정보 이득을 주는 (feature, threshold) 반환

        Returns
        -------
        best_feature : int or None
        best_threshold : float or None
        best_gain : float
        """
        n_samples = len(y)

        best_gain = 0.0
        best_feature = None
        best_threshold = None

        for feature_idx in self._candidate_features():
            feature_values = X[:, feature_idx]
            order = np.argsort(feature_values, kind='stable')
            x_sorted = feature_values[order]
            y_sorted = y[order]

            # 왼쪽 크기 = pos + 1, 값이 바뀌는 경계에서만 분할
            split_pos = np.nonzero(x_sorted[:-1] < x_sorted[1:])[0]
            if len(split_pos) == 0:
                continue

            n_left = split_pos + 1
            n_right = n_samples - n_left
            valid = (n_left >= self.min_samples_leaf) & (n_right >= self.min_samples_leaf)
            split_pos = split_pos[valid]
            if len(split_pos) == 0:
                continue

            n_left = (split_pos + 1).astype(float)
            n_right = n_samples - n_left

            imp_left, imp_right = self._split_impurities(y_sorted, split_pos)
            gains = parent_impurity - (
                (n_left / n_samples) * imp_left + (n_right / n_samples) * imp_right
            )

            i = int(np.argmax(gains))
            if gains[i] > best_gain:
                best_gain = float(gains[i])
                best_feature = int(feature_idx)
                best_threshold = float(
                    (x_sorted[split_pos[i]] + x_sorted[split_pos[i] + 1]) / 2
                )

        return best_feature, best_threshold, best_gain

    def _build_tree(
        self,
        X: np.ndarray,
        y: np.ndarray,
        depth: int = 0
    ) -> TreeNode:
        """
        재귀적으로 결정 트리 구축

        종료 조건:
        1. max_depth 도달
        2. 샘플 수 < min_samples_split
        3. 모든 타겟값이 동일
        4. 양의 정보 이득을 주는 유효한 분할 없음 (또는 < min_impurity_decrease)
        """
        n_samples = len(y)
        impurity = self._impurity(y)

        node = TreeNode(n_samples=n_samples, impurity=impurity, depth=depth)
        self._make_leaf(node, y)

        should_stop = (
            (self.max_depth is not None and depth >= self.max_depth) or
            n_samples < self.min_samples_split or
            self._is_pure(y)
        )

        if not should_stop:
            best_feature, best_threshold, best_gain = self._find_best_split(X, y, impurity)
            if best_feature is None or best_gain < self.min_impurity_decrease:
                should_stop = True

        if should_stop:
            self.training_history_.append({
                'depth': depth,
                'n_samples': n_samples,
                'impurity': impurity,
                'action': 'leaf',
                'value': node.value
            })
            return node

        left_mask = X[:, best_feature] <= best_threshold
        right_mask = ~left_mask

        self.training_history_.append({
            'depth': depth,
            'n_samples': n_samples,
            'impurity': impurity,
            'action': 'split',
            'feature': best_feature,
            'threshold': best_threshold,
            'gain': best_gain,
            'n_left': int(np.sum(left_mask)),
            'n_right': int(np.sum(right_mask))
        })

        # 피처 중요도: gain * 노드 샘플 수
        self._importance_acc[best_feature] += best_gain * n_samples

        node.feature_idx = best_feature
        node.threshold = best_threshold
        node.left = self._build_tree(X[left_mask], y[left_mask], depth + 1)
        node.right = self._build_tree(X[right_mask], y[right_mask], depth + 1)

        return node

    def _calculate_tree_stats(self, node: TreeNode) -> Dict:
        """트리 통계 계산"""
        stats = {
            'max_depth': 0,
            'n_nodes': 0,
            'n_leaves': 0,
            'n_internal': 0,
            'avg_leaf_depth': 0,
            'min_leaf_samples': np.inf,
            'leaf_depths': []
        }

        def _traverse(node: TreeNode, depth: int):
            stats['n_nodes'] += 1
            stats['max_depth'] = max(stats['max_depth'], depth)

            if node.is_leaf():
                stats['n_leaves'] += 1
                stats['leaf_depths'].append(depth)
                stats['min_leaf_samples'] = min(stats['min_leaf_samples'], node.n_samples)
            else:
                stats['n_internal'] += 1
                _traverse(node.left, depth + 1)
                _traverse(node.right, depth + 1)

        _traverse(node, 0)

        if stats['n_leaves'] > 0:
            stats['avg_leaf_depth'] = float(np.mean(stats['leaf_depths']))

        return stats

    def _fit(self, X: np.ndarray, y: np.ndarray) -> None:
        self._validate_params()

        self.n_features_ = X.shape[1]
        self._n_split_features = resolve_max_features(self.max_features, self.n_features_)
        self._rng = check_random_state(self.random_state)
        self._importance_acc = np.zeros(self.n_features_)
        self.training_history_ = []

        self.root_ = self._build_tree(X, y)

        # 피처 중요도 정규화 (분할이 없으면 0 벡터)
        total = np.sum(self._importance_acc)
        self.feature_importances_ = (
            self._importance_acc / total if total > 0 else np.zeros(self.n_features_)
        )

        self.tree_stats_ = self._calculate_tree_stats(self.root_)

    # ------------------------------------------------------------------
    # 예측
    # ------------------------------------------------------------------
    def _leaf_for(self, x: np.ndarray) -> TreeNode:
        """루트에서 리프까지 이동 (x[feature] <= threshold 이면 왼쪽)"""
        node = self.root_

        while not node.is_leaf():
            if x[node.feature_idx] <= node.threshold:
                node = node.left
            else:
                node = node.right

        return node

    def predict_single(self, x: np.ndarray) -> Any:
        """단일 샘플 예측"""
        check_is_fitted(self, 'root_')
        x = check_predict_input(x, self.n_features_)[0]
        return self._leaf_for(x).value

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        예측 수행

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            예측할 데이터

        Returns
        -------
        y_pred : ndarray of shape (n_samples,)
            예측값
        """
        check_is_fitted(self, 'root_')
        X = check_predict_input(X, self.n_features_)
        return np.array([self._leaf_for(x).value for x in X])

    # ------------------------------------------------------------------
    # 조회 / 내보내기
    # ------------------------------------------------------------------
    def get_depth(self) -> int:
        """트리의 최대 깊이 반환"""
        if self.root_ is None:
            return 0
        return self.tree_stats_.get('max_depth', 0)

    def get_n_leaves(self) -> int:
        """리프 노드 수 반환"""
        if self.root_ is None:
            return 0
        return self.tree_stats_.get('n_leaves', 0)

    def has_splits(self) -> bool:
        """분할이 한 번이라도 일어났는지 (False이면 feature_importances_는 0 벡터)"""
        return self.root_ is not None and not self.root_.is_leaf()

    def iter_leaves(self):
        """모든 리프 노드 순회 (왼쪽 우선)"""
        check_is_fitted(self, 'root_')
        stack = [self.root_]
        while stack:
            node = stack.pop()
            if node.is_leaf():
                yield node
            else:
                stack.append(node.right)
                stack.append(node.left)

    def export_tree_structure(self) -> Dict:
        """
        트리 구조를 딕셔너리로 내보내기 (시각화용)
        """
        def _node_to_dict(node: TreeNode) -> Dict:
            result = {
                'value': node.value,
                'n_samples': node.n_samples,
                'impurity': node.impurity,
                'depth': node.depth,
                'is_leaf': node.is_leaf()
            }
            if node.class_counts is not None:
                result['class_counts'] = node.class_counts.tolist()

            if not node.is_leaf():
                result['feature_idx'] = node.feature_idx
                result['threshold'] = node.threshold
                result['left'] = _node_to_dict(node.left)
                result['right'] = _node_to_dict(node.right)

            return result

        if self.root_ is None:
            return {}

        return _node_to_dict(self.root_)

    def _format_leaf(self, node: TreeNode) -> str:
        return f"value: {node.value:.4f}"

    def export_text(self, feature_names: Optional[List[str]] = None) -> str:
        """
        트리를 텍스트로 출력

        >>> print(tree.export_text(['x']))
        └── x <= 1.5000
            ├── class: 0 [0: 2]
            └── class: 1 [1: 2]
        """
        if self.root_ is None:
            return "Empty tree"

        lines: List[str] = []

        def _export(node: TreeNode, prefix: str, is_last: bool):
            branch = "└── " if is_last else "├── "
            if node.is_leaf():
                lines.append(prefix + branch + self._format_leaf(node))
            else:
                name = (feature_names[node.feature_idx] if feature_names
                        else f"feature_{node.feature_idx}")
                lines.append(prefix + branch + f"{name} <= {node.threshold:.4f}")
                child_prefix = prefix + ("    " if is_last else "│   ")
                _export(node.left, child_prefix, False)
                _export(node.right, child_prefix, True)

        _export(self.root_, "", True)
        return "\n".join(lines)

    def __repr__(self) -> str:
        name = type(self).__name__
        if self.root_ is None:
            return f"{name}(not fitted)"

        return (
            f"{name}("
            f"depth={self.get_depth()}, "
            f"n_leaves={self.get_n_leaves()}, "
            f"n_features={self.n_features_})"
        )


class DecisionTreeClassifier(BaseDecisionTree):
    """
    CART 기반 결정 트리 분류 모델 (From Scratch)

    Parameters
    ----------
    criterion : {'gini', 'entropy'}, default='gini'
        분할 품질 측정 기준.

    max_depth : int, default=10
        트리의 최대 깊이. None이면 제한 없음.

    min_samples_split : int, default=2
        내부 노드를 분할하기 위한 최소 샘플 수.

    min_samples_leaf : int, default=1
        리프 노드에 있어야 하는 최소 샘플 수.

    min_impurity_decrease : float, default=0.0
        분할을 수행하기 위한 최소 불순도 감소량.

    max_features : int or float or str, default=None
        각 분할에서 고려할 피처 수 (None, int, float, 'sqrt', 'log2').

    random_state : int or np.random.Generator, default=None
        랜덤 시드 (피처 서브샘플링용)

    Attributes
    ----------
    classes_ : ndarray
        정렬된 고유 클래스 레이블. predict_proba의 열 순서.

    root_ : TreeNode
        학습된 트리의 루트 노드

    feature_importances_ : ndarray of shape (n_features,)
        피처 중요도 (Σ gain * n_samples, 합이 1이 되도록 정규화)

    Examples
    --------
    >>> X = np.array([[0], [1], [2], [3]])
    >>> y = np.array([0, 0, 1, 1])
    >>> tree = DecisionTreeClassifier(max_depth=1).fit(X, y)
    >>> tree.root_.threshold
    1.5
    """

    _criteria = ('gini', 'entropy')

    def __init__(
        self,
        criterion: str = 'gini',
        max_depth: Optional[int] = 10,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        min_impurity_decrease: float = 0.0,
        max_features: Optional[Any] = None,
        random_state: Optional[Any] = None
    ):
        super().__init__(
            criterion=criterion,
            max_depth=max_depth,
            min_samples_split=min_samples_split,
            min_samples_leaf=min_samples_leaf,
            min_impurity_decrease=min_impurity_decrease,
            max_features=max_features,
            random_state=random_state
        )
        self.classes_: Optional[np.ndarray] = None
        self.n_classes_: int = 0

    def _impurity_from_counts(self, counts: np.ndarray, n: np.ndarray) -> np.ndarray:
        """
        클래스 카운트 행렬 (..., n_classes)에서 불순도 계산

        Gini    = 1 - Σ p²
        Entropy = -Σ p * log2(p)
        """
        p = counts / n[..., None]
        if self.criterion == 'gini':
            return 1.0 - np.sum(p ** 2, axis=-1)

        with np.errstate(divide='ignore', invalid='ignore'):
            logp = np.where(p > 0, np.log2(p), 0.0)
        return -np.sum(p * logp, axis=-1)

    def _impurity(self, y: np.ndarray) -> float:
        if len(y) == 0:
            return 0.0
        counts = np.bincount(y, minlength=self.n_classes_).astype(float)
        return float(self._impurity_from_counts(counts, np.array(len(y), dtype=float)))

    def _split_impurities(
        self,
        y_sorted: np.ndarray,
        split_pos: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        n = len(y_sorted)
        one_hot = np.zeros((n, self.n_classes_))
        one_hot[np.arange(n), y_sorted] = 1.0

        cumulative = np.cumsum(one_hot, axis=0)
        left_counts = cumulative[split_pos]
        right_counts = cumulative[-1] - left_counts

        n_left = (split_pos + 1).astype(float)
        n_right = n - n_left

        return (
            self._impurity_from_counts(left_counts, n_left),
            self._impurity_from_counts(right_counts, n_right)
        )

    def _make_leaf(self, node: TreeNode, y: np.ndarray) -> None:
        counts = np.bincount(y, minlength=self.n_classes_)
        node.class_counts = counts
        # 동률이면 가장 작은 레이블
        node.value = self.classes_[int(np.argmax(counts))]

    def _format_leaf(self, node: TreeNode) -> str:
        dist = ", ".join(
            f"{self.classes_[k]}: {c}" for k, c in enumerate(node.class_counts) if c > 0
        )
        return f"class: {node.value} [{dist}]"

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'DecisionTreeClassifier':
        """
        결정 트리 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            학습 데이터
        y : ndarray of shape (n_samples,)
            클래스 레이블

        Returns
        -------
        self : DecisionTreeClassifier
            학습된 모델
        """
        X, y = check_X_y(X, y)

        self.classes_, y_encoded = np.unique(y, return_inverse=True)
        self.n_classes_ = len(self.classes_)

        self._fit(X, y_encoded)
        return self

    def predict_proba_single(self, x: np.ndarray) -> np.ndarray:
        """단일 샘플의 클래스 확률 (classes_ 순서)"""
        check_is_fitted(self, 'root_')
        x = check_predict_input(x, self.n_features_)[0]
        counts = self._leaf_for(x).class_counts
        return counts / counts.sum()

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """
        클래스 확률 예측

        Returns
        -------
        proba : ndarray of shape (n_samples, n_classes)
            리프 노드의 클래스 분포
        """
        check_is_fitted(self, 'root_')
        X = check_predict_input(X, self.n_features_)

        proba = np.array([self._leaf_for(x).class_counts for x in X], dtype=float)
        return proba / proba.sum(axis=1, keepdims=True)

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """정확도"""
        return accuracy_score(y, self.predict(X))


class DecisionTreeRegressor(BaseDecisionTree):
    """
    CART 기반 결정 트리 회귀 모델 (From Scratch)

    Parameters
    ----------
    criterion : {'mse', 'mae'}, default='mse'
        'mse': 평균으로부터의 제곱 편차 평균 (분산)
        'mae': 평균으로부터의 절대 편차 평균

    max_depth : int, default=10
        트리의 최대 깊이. None이면 제한 없음.

    min_samples_split : int, default=2
        내부 노드를 분할하기 위한 최소 샘플 수.

    min_samples_leaf : int, default=1
        리프 노드에 있어야 하는 최소 샘플 수.

    min_impurity_decrease : float, default=0.0
        분할을 수행하기 위한 최소 불순도 감소량.

    max_features : int or float or str, default=None
        각 분할에서 고려할 피처 수.

    random_state : int or np.random.Generator, default=None
        랜덤 시드 (피처 서브샘플링용)

    Attributes
    ----------
    root_ : TreeNode
        학습된 트리의 루트 노드

    n_features_ : int
        학습에 사용된 피처 수

    feature_importances_ : ndarray of shape (n_features,)
        피처 중요도 (불순도 감소 기반)

    tree_stats_ : dict
        트리 통계 (깊이, 노드 수, 리프 수 등)

    Examples
    --------
    >>> X = np.array([[1], [2], [3], [4], [5]])
    >>> y = np.array([1.1, 2.0, 3.1, 3.9, 5.0])
    >>> tree = DecisionTreeRegressor(max_depth=2).fit(X, y)
    >>> y_pred = tree.predict(np.array([[2.5]]))
    """

    _criteria = ('mse', 'mae')

    def __init__(
        self,
        criterion: str = 'mse',
        max_depth: Optional[int] = 10,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        min_impurity_decrease: float = 0.0,
        max_features: Optional[Any] = None,
        random_state: Optional[Any] = None
    ):
        super().__init__(
            criterion=criterion,
            max_depth=max_depth,
            min_samples_split=min_samples_split,
            min_samples_leaf=min_samples_leaf,
            min_impurity_decrease=min_impurity_decrease,
            max_features=max_features,
            random_state=random_state
        )

    def _impurity(self, y: np.ndarray) -> float:
        """
        MSE = (1/n) * Σ(y_i - ȳ)²  (분산과 동일)
        MAE = (1/n) * Σ|y_i - ȳ|
        """
        if len(y) == 0:
            return 0.0
        if self.criterion == 'mse':
            return float(np.var(y))
        return float(np.mean(np.abs(y - np.mean(y))))

    def _split_impurities(
        self,
        y_sorted: np.ndarray,
        split_pos: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        n = len(y_sorted)
        n_left = (split_pos + 1).astype(float)
        n_right = n - n_left

        if self.criterion == 'mse':
            # Var = E[y²] - E[y]², 누적합으로 모든 분할을 한 번에 계산
            # 큰 오프셋에서 상쇄 오차가 나지 않도록 평균을 뺀 값으로 누적
            y_centered = y_sorted - np.mean(y_sorted)
            cum_sum = np.cumsum(y_centered)
            cum_sq = np.cumsum(y_centered ** 2)

            left_sum, left_sq = cum_sum[split_pos], cum_sq[split_pos]
            right_sum = cum_sum[-1] - left_sum
            right_sq = cum_sq[-1] - left_sq

            var_left = left_sq / n_left - (left_sum / n_left) ** 2
            var_right = right_sq / n_right - (right_sum / n_right) ** 2
            return np.maximum(var_left, 0.0), np.maximum(var_right, 0.0)

        imp_left = np.array([self._impurity(y_sorted[:p + 1]) for p in split_pos])
        imp_right = np.array([self._impurity(y_sorted[p + 1:]) for p in split_pos])
        return imp_left, imp_right

    def _make_leaf(self, node: TreeNode, y: np.ndarray) -> None:
        node.value = float(np.mean(y))

    def _is_pure(self, y: np.ndarray) -> bool:
        return bool(np.ptp(y) == 0)

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'DecisionTreeRegressor':
        """
        결정 트리 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            학습 데이터
        y : ndarray of shape (n_samples,)
            타겟 값

        Returns
        -------
        self : DecisionTreeRegressor
            학습된 모델
        """
        X, y = check_X_y(X, y, y_numeric=True)
        self._fit(X, y)
        return self

    def predict_single(self, x: np.ndarray) -> float:
        return float(super().predict_single(x))

    def predict(self, X: np.ndarray) -> np.ndarray:
        return super().predict(X).astype(float)

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """결정계수 R²"""
        return r2_score(y, self.predict(X))
