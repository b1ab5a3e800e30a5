"""
Random Forest - From Scratch Implementation
===========================================

배깅(Bootstrap Aggregating) + 랜덤 피처 선택을 결합한 앙상블 방법

수학적 배경:
-----------
1. 배깅 (Bootstrap Aggregating):
   - 원본 데이터에서 복원 추출로 n개의 부트스트랩 샘플 생성
   - 각 샘플로 독립적인 트리 학습
   - 분산 감소: Var(평균) = Var(개별) / n (독립인 경우)

2. 랜덤 피처 선택:
   - 각 분할에서 sqrt(n_features) 또는 일부 피처만 고려
   - 트리 간 상관관계 감소 → 앙상블 효과 증대

3. Out-of-Bag (OOB) 추정:
   - 각 트리 학습에 사용되지 않은 샘플(~37%)로 성능 추정
   - 별도의 검증 세트 없이 일반화 성능 추정 가능

   P(샘플이 선택되지 않음) = (1 - 1/n)^n ≈ e^{-1} ≈ 0.368

4. 최종 예측:
   분류: p(c|x) = (1/M) * Σ p_m(c|x), ŷ = argmax_c p(c|x)
   회귀: ŷ = (1/M) * Σ h_m(x)

병렬 학습:
---------
트리끼리는 서로의 상태를 읽지 않으므로 n_jobs > 1이면 스레드 풀에서 학습합니다.
부트스트랩 인덱스와 트리별 시드는 학습 전에 하나의 Generator에서 순서대로
뽑기 때문에, 결과는 n_jobs와 무관하게 동일합니다.

Author: ML From Scratch Project
"""

import os
import warnings
from concurrent.futures import ThreadPoolExecutor
import numpy as np
from typing import Optional, List, Dict, Tuple, Any

from .decision_tree import BaseDecisionTree, DecisionTreeClassifier, DecisionTreeRegressor
from .metrics import accuracy_score, r2_score
from .utils import (
    check_X_y,
    check_is_fitted,
    check_predict_input,
    check_random_state,
    spawn_seed,
)


class BaseForest:
    """분류/회귀 Random Forest의 공통 학습 루프"""

    def __init__(
        self,
        n_estimators: int,
        criterion: str,
        max_depth: Optional[int],
        min_samples_split: int,
        min_samples_leaf: int,
        max_features: Any,
        bootstrap: bool,
        oob_score: bool,
        random_state: Optional[Any],
        n_jobs: int,
        verbose: int
    ):
        self.n_estimators = n_estimators
        self.criterion = criterion
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.max_features = max_features
        self.bootstrap = bootstrap
        self.oob_score = oob_score
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.verbose = verbose

        # 학습 후 설정되는 속성들
        self.estimators_: Optional[List[BaseDecisionTree]] = None
        self.feature_importances_: Optional[np.ndarray] = None
        self.oob_score_: Optional[float] = None
        self.oob_sample_mask_: Optional[np.ndarray] = None
        self.n_features_: int = 0

        # 학습 과정 기록
        self.training_history_: List[Dict] = []

    def _make_tree(self, seed: int) -> BaseDecisionTree:
        raise NotImplementedError

    def _init_oob(self, n_samples: int) -> None:
        raise NotImplementedError

    def _accumulate_oob(self, tree: BaseDecisionTree, X_oob: np.ndarray, oob_idx: np.ndarray) -> None:
        raise NotImplementedError

    def _finalize_oob(self, y: np.ndarray, counts: np.ndarray) -> None:
        raise NotImplementedError

    def _resolve_n_jobs(self) -> int:
        if self.n_jobs is None or self.n_jobs == 0:
            return 1
        if self.n_jobs < 0:
            return os.cpu_count() or 1
        return self.n_jobs

    def _draw_samples(self, n_samples: int, rng: np.random.Generator) -> List[Tuple[np.ndarray, int]]:
        """트리별 (학습 인덱스, 시드) 계획을 순서대로 생성"""
        plans = []
        for _ in range(self.n_estimators):
            if self.bootstrap:
                sample_indices = rng.choice(n_samples, n_samples, replace=True)
            else:
                sample_indices = np.arange(n_samples)
            plans.append((sample_indices, spawn_seed(rng)))
        return plans

    def _fit_forest(self, X: np.ndarray, y: np.ndarray) -> None:
        if self.n_estimators < 1:
            raise ValueError(f"n_estimators는 1 이상이어야 합니다: {self.n_estimators}")
        if self.oob_score and not self.bootstrap:
            raise ValueError("oob_score=True는 bootstrap=True일 때만 사용할 수 있습니다.")

        n_samples, n_features = X.shape
        self.n_features_ = n_features

        rng = check_random_state(self.random_state)
        plans = self._draw_samples(n_samples, rng)

        if self.verbose > 0:
            print(f"Random Forest 학습 시작: {self.n_estimators}개 트리")

        def _train(plan: Tuple[np.ndarray, int]) -> BaseDecisionTree:
            sample_indices, seed = plan
            return self._make_tree(seed).fit(X[sample_indices], y[sample_indices])

        n_jobs = self._resolve_n_jobs()
        if n_jobs > 1:
            with ThreadPoolExecutor(max_workers=n_jobs) as executor:
                trees = list(executor.map(_train, plans))
        else:
            trees = [_train(plan) for plan in plans]

        self.estimators_ = []
        self.training_history_ = []
        oob_counts = np.zeros(n_samples, dtype=int)
        if self.oob_score:
            self._init_oob(n_samples)

        for m, (tree, (sample_indices, _)) in enumerate(zip(trees, plans)):
            self.estimators_.append(tree)

            n_oob = 0
            if self.oob_score:
                # OOB 인덱스 (한 번도 선택되지 않은 샘플)
                oob_mask = np.bincount(sample_indices, minlength=n_samples) == 0
                oob_idx = np.nonzero(oob_mask)[0]
                n_oob = len(oob_idx)
                if n_oob > 0:
                    self._accumulate_oob(tree, X[oob_idx], oob_idx)
                    oob_counts[oob_idx] += 1

            self.training_history_.append({
                'tree_idx': m + 1,
                'tree_depth': tree.get_depth(),
                'tree_n_leaves': tree.get_n_leaves(),
                'n_unique_samples': len(np.unique(sample_indices)),
                'n_oob_samples': n_oob
            })

            if self.verbose > 0 and (m + 1) % max(1, self.n_estimators // 10) == 0:
                print(f"트리 {m + 1}/{self.n_estimators} 완료")

        # 피처 중요도 계산 (평균)
        self.feature_importances_ = np.mean(
            [tree.feature_importances_ for tree in self.estimators_], axis=0
        )

        if self.oob_score:
            self.oob_sample_mask_ = oob_counts > 0
            if not np.any(self.oob_sample_mask_):
                warnings.warn(
                    "OOB 샘플이 없어 oob_score_를 계산할 수 없습니다. "
                    "n_estimators를 늘려 보세요.",
                    UserWarning
                )
                self.oob_score_ = None
            else:
                self._finalize_oob(y, oob_counts)
                if self.verbose > 0:
                    print(f"OOB Score: {self.oob_score_:.4f}")

    def get_oob_score(self) -> Optional[float]:
        """OOB 점수 반환"""
        return self.oob_score_

    def __repr__(self) -> str:
        name = type(self).__name__
        if not self.estimators_:
            return f"{name}(not fitted)"

        oob_str = f", oob_score={self.oob_score_:.4f}" if self.oob_score_ is not None else ""

        return (
            f"{name}("
            f"n_estimators={len(self.estimators_)}, "
            f"max_depth={self.max_depth}"
            f"{oob_str})"
        )


class RandomForestClassifier(BaseForest):
    """
    Random Forest 분류 모델 (From Scratch)

    Parameters
    ----------
    n_estimators : int, default=100
        트리 개수

    criterion : {'gini', 'entropy'}, default='gini'
        각 트리의 분할 기준

    max_depth : int, default=10
        각 트리의 최대 깊이. None이면 완전히 확장

    min_samples_split : int, default=2
        내부 노드를 분할하기 위한 최소 샘플 수

    min_samples_leaf : int, default=1
        리프 노드에 있어야 하는 최소 샘플 수

    max_features : str or int or float, default='sqrt'
        각 분할에서 고려할 피처 수
        - 'sqrt': sqrt(n_features)
        - 'log2': log2(n_features)
        - int: 해당 수
        - float: 비율
        - None 또는 'all': 모든 피처

    bootstrap : bool, default=True
        부트스트랩 샘플 사용 여부

    oob_score : bool, default=False
        Out-of-Bag 정확도 계산 여부 (bootstrap=True 필요)

    random_state : int or np.random.Generator, default=None
        랜덤 시드

    n_jobs : int, default=1
        트리 학습에 사용할 스레드 수 (-1이면 CPU 코어 수)

    verbose : int, default=0
        출력 수준

    Attributes
    ----------
    estimators_ : list of DecisionTreeClassifier
        학습된 트리들 (인코딩된 레이블 0..n_classes-1로 학습됨)

    classes_ : ndarray
        정렬된 고유 클래스 레이블

    feature_importances_ : ndarray of shape (n_features,)
        피처 중요도 (모든 트리의 평균)

    oob_score_ : float
        OOB 다수결 정확도 (oob_score=True인 경우)

    oob_decision_function_ : ndarray of shape (n_samples, n_classes)
        각 샘플의 OOB 평균 클래스 확률 (OOB가 된 적 없는 샘플은 0)

    oob_sample_mask_ : ndarray of bool
        최소 한 트리에서 OOB였던 샘플 표시
    """

    def __init__(
        self,
        n_estimators: int = 100,
        criterion: str = 'gini',
        max_depth: Optional[int] = 10,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        max_features: Any = 'sqrt',
        bootstrap: bool = True,
        oob_score: bool = False,
        random_state: Optional[Any] = None,
        n_jobs: int = 1,
        verbose: int = 0
    ):
        super().__init__(
            n_estimators=n_estimators,
            criterion=criterion,
            max_depth=max_depth,
            min_samples_split=min_samples_split,
            min_samples_leaf=min_samples_leaf,
            max_features=max_features,
            bootstrap=bootstrap,
            oob_score=oob_score,
            random_state=random_state,
            n_jobs=n_jobs,
            verbose=verbose
        )
        self.classes_: Optional[np.ndarray] = None
        self.n_classes_: int = 0
        self.oob_decision_function_: Optional[np.ndarray] = None
        self._oob_proba_sum: Optional[np.ndarray] = None

    def _make_tree(self, seed: int) -> DecisionTreeClassifier:
        return DecisionTreeClassifier(
            criterion=self.criterion,
            max_depth=self.max_depth,
            min_samples_split=self.min_samples_split,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            random_state=seed
        )

    def _tree_proba(self, tree: DecisionTreeClassifier, X: np.ndarray) -> np.ndarray:
        """
        트리의 확률을 포레스트의 classes_ 순서로 정렬

        부트스트랩 샘플에 일부 클래스가 빠진 트리는 해당 열이 0
        """
        proba = np.zeros((X.shape[0], self.n_classes_))
        proba[:, tree.classes_] = tree.predict_proba(X)
        return proba

    def _init_oob(self, n_samples: int) -> None:
        self._oob_proba_sum = np.zeros((n_samples, self.n_classes_))

    def _accumulate_oob(self, tree: DecisionTreeClassifier, X_oob: np.ndarray, oob_idx: np.ndarray) -> None:
        self._oob_proba_sum[oob_idx] += self._tree_proba(tree, X_oob)

    def _finalize_oob(self, y: np.ndarray, counts: np.ndarray) -> None:
        valid = counts > 0
        self.oob_decision_function_ = np.zeros_like(self._oob_proba_sum)
        self.oob_decision_function_[valid] = (
            self._oob_proba_sum[valid] / counts[valid, None]
        )

        oob_pred = np.argmax(self.oob_decision_function_[valid], axis=1)
        self.oob_score_ = accuracy_score(y[valid], oob_pred)
        self._oob_proba_sum = None

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'RandomForestClassifier':
        """
        Random Forest 모델 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            학습 데이터
        y : ndarray of shape (n_samples,)
            클래스 레이블

        Returns
        -------
        self : RandomForestClassifier
            학습된 모델
        """
        X, y = check_X_y(X, y)

        self.classes_, y_encoded = np.unique(y, return_inverse=True)
        self.n_classes_ = len(self.classes_)

        self._fit_forest(X, y_encoded)
        return self

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """
        클래스 확률 예측 (모든 트리 확률의 평균)

        Returns
        -------
        proba : ndarray of shape (n_samples, n_classes)
        """
        check_is_fitted(self, 'estimators_')
        X = check_predict_input(X, self.n_features_)

        proba = np.zeros((X.shape[0], self.n_classes_))
        for tree in self.estimators_:
            proba += self._tree_proba(tree, X)

        return proba / len(self.estimators_)

    def predict_proba_single(self, x: np.ndarray) -> np.ndarray:
        return self.predict_proba(x)[0]

    def predict(self, X: np.ndarray) -> np.ndarray:
        """다수결(평균 확률 최대) 클래스 예측"""
        proba = self.predict_proba(X)
        return self.classes_[np.argmax(proba, axis=1)]

    def predict_single(self, x: np.ndarray) -> Any:
        return self.predict(x)[0]

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """정확도"""
        return accuracy_score(y, self.predict(X))


class RandomForestRegressor(BaseForest):
    """
    Random Forest 회귀 모델 (From Scratch)

    Parameters
    ----------
    n_estimators : int, default=100
        트리 개수

    criterion : {'mse', 'mae'}, default='mse'
        각 트리의 분할 기준

    max_depth : int, default=10
        각 트리의 최대 깊이. None이면 완전히 확장

    min_samples_split : int, default=2
        내부 노드를 분할하기 위한 최소 샘플 수

    min_samples_leaf : int, default=1
        리프 노드에 있어야 하는 최소 샘플 수

    max_features : str or int or float, default='sqrt'
        각 분할에서 고려할 피처 수

    bootstrap : bool, default=True
        부트스트랩 샘플 사용 여부

    oob_score : bool, default=False
        Out-of-Bag R² 점수 계산 여부

    random_state : int or np.random.Generator, default=None
        랜덤 시드

    n_jobs : int, default=1
        트리 학습에 사용할 스레드 수

    verbose : int, default=0
        출력 수준

    Attributes
    ----------
    estimators_ : list of DecisionTreeRegressor
        학습된 트리들

    feature_importances_ : ndarray of shape (n_features,)
        피처 중요도 (모든 트리의 평균)

    oob_score_ : float
        Out-of-Bag R² 점수 (oob_score=True인 경우)

    oob_prediction_ : ndarray
        각 샘플의 OOB 예측값

    Examples
    --------
    >>> X = np.random.randn(100, 5)
    >>> y = X[:, 0] * 2 + X[:, 1] + np.random.randn(100) * 0.1
    >>> rf = RandomForestRegressor(n_estimators=50)
    >>> rf.fit(X, y)
    >>> predictions = rf.predict(X[:5])
    """

    def __init__(
        self,
        n_estimators: int = 100,
        criterion: str = 'mse',
        max_depth: Optional[int] = 10,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        max_features: Any = 'sqrt',
        bootstrap: bool = True,
        oob_score: bool = False,
        random_state: Optional[Any] = None,
        n_jobs: int = 1,
        verbose: int = 0
    ):
        super().__init__(
            n_estimators=n_estimators,
            criterion=criterion,
            max_depth=max_depth,
            min_samples_split=min_samples_split,
            min_samples_leaf=min_samples_leaf,
            max_features=max_features,
            bootstrap=bootstrap,
            oob_score=oob_score,
            random_state=random_state,
            n_jobs=n_jobs,
            verbose=verbose
        )
        self.oob_prediction_: Optional[np.ndarray] = None
        self._oob_sum: Optional[np.ndarray] = None

    def _make_tree(self, seed: int) -> DecisionTreeRegressor:
        return DecisionTreeRegressor(
            criterion=self.criterion,
            max_depth=self.max_depth,
            min_samples_split=self.min_samples_split,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            random_state=seed
        )

    def _init_oob(self, n_samples: int) -> None:
        self._oob_sum = np.zeros(n_samples)

    def _accumulate_oob(self, tree: DecisionTreeRegressor, X_oob: np.ndarray, oob_idx: np.ndarray) -> None:
        self._oob_sum[oob_idx] += tree.predict(X_oob)

    def _finalize_oob(self, y: np.ndarray, counts: np.ndarray) -> None:
        valid = counts > 0
        self.oob_prediction_ = np.zeros(len(y))
        self.oob_prediction_[valid] = self._oob_sum[valid] / counts[valid]

        # OOB 예측을 받은 샘플만으로 R² 계산
        self.oob_score_ = r2_score(y[valid], self.oob_prediction_[valid])
        self._oob_sum = None

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'RandomForestRegressor':
        """
        Random Forest 모델 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            학습 데이터
        y : ndarray of shape (n_samples,)
            타겟 값

        Returns
        -------
        self : RandomForestRegressor
            학습된 모델
        """
        X, y = check_X_y(X, y, y_numeric=True)
        self._fit_forest(X, y)
        return self

    def _all_predictions(self, X: np.ndarray) -> np.ndarray:
        check_is_fitted(self, 'estimators_')
        X = check_predict_input(X, self.n_features_)
        return np.array([tree.predict(X) for tree in self.estimators_])

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        예측 수행 (모든 트리 예측의 평균)

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            예측할 데이터

        Returns
        -------
        y_pred : ndarray of shape (n_samples,)
            예측값
        """
        return np.mean(self._all_predictions(X), axis=0)

    def predict_single(self, x: np.ndarray) -> float:
        return float(self.predict(x)[0])

    def predict_std(self, X: np.ndarray) -> np.ndarray:
        """
        예측의 표준편차 반환 (불확실성 추정)

        Returns
        -------
        std : ndarray of shape (n_samples,)
            각 샘플의 트리 간 예측 표준편차
        """
        return np.std(self._all_predictions(X), axis=0)

    def predict_with_uncertainty(
        self,
        X: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        예측과 함께 불확실성 구간 반환

        Returns
        -------
        y_pred : ndarray
            예측값 (평균)
        lower : ndarray
            2.5 백분위수
        upper : ndarray
            97.5 백분위수
        """
        predictions = self._all_predictions(X)

        y_pred = np.mean(predictions, axis=0)
        lower = np.percentile(predictions, 2.5, axis=0)
        upper = np.percentile(predictions, 97.5, axis=0)

        return y_pred, lower, upper

    def staged_predict(self, X: np.ndarray) -> np.ndarray:
        """
        각 트리 추가 후의 예측 반환 (수렴 분석용)

        Returns
        -------
        predictions : ndarray of shape (n_estimators, n_samples)
            각 단계에서의 누적 평균 예측값
        """
        predictions = self._all_predictions(X)
        cumulative = np.cumsum(predictions, axis=0)
        return cumulative / np.arange(1, len(predictions) + 1)[:, None]

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """결정계수 R²"""
        return r2_score(y, self.predict(X))
