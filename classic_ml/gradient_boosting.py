"""
Gradient Boosting - From Scratch Implementation
===============================================

Gradient Boosting은 음의 그래디언트(잔차)를 순차적으로 학습하는 앙상블 방법입니다.

수학적 배경 (회귀):
-----------------
손실 함수 (MSE):
    L(y, F) = (1/2) * (y - F(x))²

음의 그래디언트 (= 잔차):
    r = -∂L/∂F = y - F(x)

업데이트 규칙:
    F_m(x) = F_{m-1}(x) + η * h_m(x)

여기서:
    - F_m(x): m번째 반복 후의 예측
    - η: 학습률 (learning rate)
    - h_m(x): 잔차를 예측하도록 학습된 m번째 트리

수학적 배경 (다중 클래스 분류):
-----------------------------
클래스별 점수 F_k(x)와 softmax 확률:
    p_k(x) = exp(F_k(x)) / Σ_j exp(F_j(x))

교차 엔트로피 손실의 음의 그래디언트:
    r_ik = 1[y_i = k] - p_k(x_i)

초기 점수는 클래스 빈도의 로그 오즈:
    F_k^0 = log(π_k / (1 - π_k)),  π_k = n_k / n

매 라운드마다 클래스 수만큼 회귀 트리를 학습합니다.

알고리즘:
--------
1. 초기화: F_0(x) = mean(y)  (분류: 로그 오즈)
2. for m = 1 to M:
   a. 잔차 계산: r_i = y_i - F_{m-1}(x_i)
   b. 잔차에 대해 트리 h_m 학습 (subsample < 1이면 비복원 추출한 일부 행만 사용)
   c. 예측 업데이트: F_m(x) = F_{m-1}(x) + η * h_m(x)
3. 최종 예측: F_M(x)

Author: ML From Scratch Project
"""

import numpy as np
from typing import Optional, List, Dict, Tuple, Any

from .config import CONFIG
from .decision_tree import DecisionTreeRegressor
from .metrics import accuracy_score, log_loss, mean_squared_error, r2_score
from .utils import (
    check_X_y,
    check_is_fitted,
    check_predict_input,
    check_random_state,
    softmax,
    spawn_seed,
    one_hot,
)


def _subsample_indices(
    n_samples: int,
    subsample: float,
    rng: np.random.Generator
) -> Optional[np.ndarray]:
    """Stochastic GB용 비복원 행 추출 (subsample >= 1이면 None)"""
    if subsample >= 1.0:
        return None
    n_subsample = max(1, int(n_samples * subsample))
    return rng.choice(n_samples, n_subsample, replace=False)


def _validate_boosting_params(n_estimators: int, learning_rate: float, subsample: float) -> None:
    if n_estimators < 1:
        raise ValueError(f"n_estimators는 1 이상이어야 합니다: {n_estimators}")
    if learning_rate <= 0:
        raise ValueError(f"learning_rate는 양수여야 합니다: {learning_rate}")
    if not 0.0 < subsample <= 1.0:
        raise ValueError(f"subsample은 (0, 1] 범위여야 합니다: {subsample}")


class GradientBoostingClassifier:
    """
    Gradient Boosting 분류 모델 (From Scratch)

    이진/다중 클래스 모두 softmax 기반으로 처리하며,
    각 라운드마다 클래스별 회귀 트리를 하나씩 학습합니다.

    Parameters
    ----------
    n_estimators : int, default=100
        부스팅 라운드 수

    learning_rate : float, default=0.1
        각 트리의 기여도를 조절하는 축소 계수 (shrinkage)

    max_depth : int, default=3
        각 트리의 최대 깊이

    min_samples_split : int, default=2
        내부 노드를 분할하기 위한 최소 샘플 수

    min_samples_leaf : int, default=1
        리프 노드에 있어야 하는 최소 샘플 수

    subsample : float, default=1.0
        각 라운드에서 사용할 샘플 비율 (비복원 추출)

    max_features : int or float or str, default=None
        각 분할에서 고려할 피처 수

    random_state : int or np.random.Generator, default=None
        랜덤 시드

    verbose : int, default=0
        학습 과정 출력 수준

    Attributes
    ----------
    estimators_ : list of list of DecisionTreeRegressor
        estimators_[m][k]: m번째 라운드에서 클래스 k의 점수를 갱신한 트리

    classes_ : ndarray
        정렬된 고유 클래스 레이블

    init_scores_ : ndarray of shape (n_classes,)
        클래스별 초기 점수 (로그 오즈)

    train_scores_ : list of float
        초기 상태와 각 라운드 후의 학습 log-loss

    feature_importances_ : ndarray of shape (n_features,)
        피처 중요도 (모든 트리의 평균)

    Examples
    --------
    >>> X = np.random.randn(150, 4)
    >>> y = (X[:, 0] > 0).astype(int) + (X[:, 1] > 1).astype(int)
    >>> gb = GradientBoostingClassifier(n_estimators=30).fit(X, y)
    >>> proba = gb.predict_proba(X[:2])
    """

    def __init__(
        self,
        n_estimators: int = 100,
        learning_rate: float = 0.1,
        max_depth: int = 3,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        subsample: float = 1.0,
        max_features: Optional[Any] = None,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.n_estimators = n_estimators
        self.learning_rate = learning_rate
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.subsample = subsample
        self.max_features = max_features
        self.random_state = random_state
        self.verbose = verbose

        # 학습 후 설정되는 속성들
        self.estimators_: Optional[List[List[DecisionTreeRegressor]]] = None
        self.classes_: Optional[np.ndarray] = None
        self.n_classes_: int = 0
        self.init_scores_: Optional[np.ndarray] = None
        self.train_scores_: List[float] = []
        self.feature_importances_: Optional[np.ndarray] = None
        self.n_features_: int = 0

        self.training_history_: List[Dict] = []

    def _initial_scores(self, y_encoded: np.ndarray) -> np.ndarray:
        """클래스 빈도의 로그 오즈 (0, 1 확률은 clip)"""
        eps = CONFIG['log_odds_clip']
        prior = np.bincount(y_encoded, minlength=self.n_classes_) / len(y_encoded)
        prior = np.clip(prior, eps, 1 - eps)
        return np.log(prior / (1 - prior))

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'GradientBoostingClassifier':
        """
        Gradient Boosting 분류 모델 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            학습 데이터
        y : ndarray of shape (n_samples,)
            클래스 레이블

        Returns
        -------
        self : GradientBoostingClassifier
            학습된 모델
        """
        X, y = check_X_y(X, y)
        _validate_boosting_params(self.n_estimators, self.learning_rate, self.subsample)

        n_samples, n_features = X.shape
        self.n_features_ = n_features

        self.classes_, y_encoded = np.unique(y, return_inverse=True)
        self.n_classes_ = len(self.classes_)
        if self.n_classes_ < 2:
            raise ValueError(
                f"분류에는 2개 이상의 클래스가 필요합니다: {self.n_classes_}개"
            )

        rng = check_random_state(self.random_state)
        Y = one_hot(y_encoded, self.n_classes_)

        # 초기화: F_k^0 = log-odds
        self.init_scores_ = self._initial_scores(y_encoded)
        scores = np.tile(self.init_scores_, (n_samples, 1))

        self.estimators_ = []
        self.train_scores_ = [log_loss(y_encoded, softmax(scores), classes=np.arange(self.n_classes_))]
        self.training_history_ = []

        if self.verbose > 0:
            print(f"초기 Log-loss: {self.train_scores_[0]:.4f}")

        for m in range(self.n_estimators):
            proba = softmax(scores)

            # 음의 그래디언트: 1[y=k] - p_k
            residuals = Y - proba

            sample_indices = _subsample_indices(n_samples, self.subsample, rng)
            X_fit = X if sample_indices is None else X[sample_indices]

            round_trees = []
            for k in range(self.n_classes_):
                r_k = residuals[:, k] if sample_indices is None else residuals[sample_indices, k]

                tree = DecisionTreeRegressor(
                    criterion='mse',
                    max_depth=self.max_depth,
                    min_samples_split=self.min_samples_split,
                    min_samples_leaf=self.min_samples_leaf,
                    max_features=self.max_features,
                    random_state=spawn_seed(rng)
                )
                tree.fit(X_fit, r_k)

                scores[:, k] += self.learning_rate * tree.predict(X)
                round_trees.append(tree)

            self.estimators_.append(round_trees)

            train_loss = log_loss(y_encoded, softmax(scores), classes=np.arange(self.n_classes_))
            self.train_scores_.append(train_loss)

            self.training_history_.append({
                'iteration': m + 1,
                'train_log_loss': train_loss,
                'train_accuracy': accuracy_score(y_encoded, np.argmax(scores, axis=1)),
                'residual_abs_mean': float(np.mean(np.abs(residuals))),
                'tree_depths': [tree.get_depth() for tree in round_trees]
            })

            if self.verbose > 0 and (m + 1) % max(1, self.n_estimators // 10) == 0:
                print(f"라운드 {m + 1}/{self.n_estimators}, Train Log-loss: {train_loss:.4f}")

        self.feature_importances_ = np.mean(
            [tree.feature_importances_ for round_trees in self.estimators_ for tree in round_trees],
            axis=0
        )

        return self

    def _staged_scores(self, X: np.ndarray):
        check_is_fitted(self, 'estimators_')
        X = check_predict_input(X, self.n_features_)

        scores = np.tile(self.init_scores_, (X.shape[0], 1))
        for round_trees in self.estimators_:
            for k, tree in enumerate(round_trees):
                scores[:, k] += self.learning_rate * tree.predict(X)
            yield scores.copy()

    def decision_function(self, X: np.ndarray) -> np.ndarray:
        """클래스별 원점수 F_k(x), shape (n_samples, n_classes)"""
        scores = None
        for scores in self._staged_scores(X):
            pass
        return scores

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """softmax 클래스 확률, 열 순서는 classes_"""
        return softmax(self.decision_function(X))

    def predict_proba_single(self, x: np.ndarray) -> np.ndarray:
        return self.predict_proba(x)[0]

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.classes_[np.argmax(self.decision_function(X), axis=1)]

    def predict_single(self, x: np.ndarray) -> Any:
        return self.predict(x)[0]

    def staged_predict_proba(self, X: np.ndarray) -> np.ndarray:
        """
        각 라운드 후의 클래스 확률

        Returns
        -------
        proba : ndarray of shape (n_rounds, n_samples, n_classes)
        """
        return np.array([softmax(scores) for scores in self._staged_scores(X)])

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """정확도"""
        return accuracy_score(y, self.predict(X))

    def get_training_curve(self) -> Tuple[np.ndarray, np.ndarray]:
        """(반복 횟수, 학습 log-loss)"""
        iterations = np.arange(len(self.train_scores_))
        return iterations, np.array(self.train_scores_)

    def __repr__(self) -> str:
        if not self.estimators_:
            return "GradientBoostingClassifier(not fitted)"

        return (
            f"GradientBoostingClassifier("
            f"n_estimators={len(self.estimators_)}, "
            f"n_classes={self.n_classes_}, "
            f"learning_rate={self.learning_rate}, "
            f"max_depth={self.max_depth})"
        )


class GradientBoostingRegressor:
    """
    Gradient Boosting 회귀 모델 (From Scratch)

    Parameters
    ----------
    n_estimators : int, default=100
        부스팅 라운드 수 (트리 개수)

    learning_rate : float, default=0.1
        각 트리의 기여도를 조절하는 축소 계수 (shrinkage)
        작은 값일수록 더 많은 트리가 필요하지만 일반화 성능이 좋아질 수 있음

    max_depth : int, default=3
        각 트리의 최대 깊이
        Gradient Boosting에서는 보통 얕은 트리(stump 또는 depth 3-5)를 사용

    min_samples_split : int, default=2
        내부 노드를 분할하기 위한 최소 샘플 수

    min_samples_leaf : int, default=1
        리프 노드에 있어야 하는 최소 샘플 수

    subsample : float, default=1.0
        각 트리 학습에 사용할 샘플의 비율 (Stochastic GB)

    max_features : int or float or str, default=None
        각 분할에서 고려할 피처 수

    random_state : int or np.random.Generator, default=None
        랜덤 시드

    verbose : int, default=0
        학습 과정 출력 수준 (0: 없음, 1: 진행률)

    Attributes
    ----------
    estimators_ : list of DecisionTreeRegressor
        학습된 트리들

    train_scores_ : list of float
        초기 상태와 각 라운드 후의 학습 MSE

    feature_importances_ : ndarray of shape (n_features,)
        피처 중요도 (모든 트리의 평균)

    init_prediction_ : float
        초기 예측값 (타겟의 평균)
    """

    def __init__(
        self,
        n_estimators: int = 100,
        learning_rate: float = 0.1,
        max_depth: int = 3,
        min_samples_split: int = 2,
        min_samples_leaf: int = 1,
        subsample: float = 1.0,
        max_features: Optional[Any] = None,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.n_estimators = n_estimators
        self.learning_rate = learning_rate
        self.max_depth = max_depth
        self.min_samples_split = min_samples_split
        self.min_samples_leaf = min_samples_leaf
        self.subsample = subsample
        self.max_features = max_features
        self.random_state = random_state
        self.verbose = verbose

        self.estimators_: Optional[List[DecisionTreeRegressor]] = None
        self.train_scores_: List[float] = []
        self.val_scores_: List[float] = []
        self.feature_importances_: Optional[np.ndarray] = None
        self.init_prediction_: float = 0.0
        self.n_features_: int = 0

        self.training_history_: List[Dict] = []

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        X_val: Optional[np.ndarray] = None,
        y_val: Optional[np.ndarray] = None
    ) -> 'GradientBoostingRegressor':
        """
        Gradient Boosting 모델 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
            학습 데이터
        y : ndarray of shape (n_samples,)
            타겟 값
        X_val : ndarray, optional
            검증 데이터 (모니터링용)
        y_val : ndarray, optional
            검증 타겟

        Returns
        -------
        self : GradientBoostingRegressor
            학습된 모델
        """
        X, y = check_X_y(X, y, y_numeric=True)
        _validate_boosting_params(self.n_estimators, self.learning_rate, self.subsample)

        n_samples, n_features = X.shape
        self.n_features_ = n_features

        rng = check_random_state(self.random_state)

        # 초기화: F_0(x) = mean(y)
        self.init_prediction_ = float(np.mean(y))
        y_pred = np.full(n_samples, self.init_prediction_)

        monitor = X_val is not None and y_val is not None
        if monitor:
            X_val, y_val = check_X_y(X_val, y_val, y_numeric=True)
            y_val_pred = np.full(len(y_val), self.init_prediction_)

        self.estimators_ = []
        self.train_scores_ = [mean_squared_error(y, y_pred)]
        self.val_scores_ = []
        self.training_history_ = []

        if self.verbose > 0:
            print(f"초기 MSE: {self.train_scores_[0]:.4f}")

        for m in range(self.n_estimators):
            # 1. 음의 그래디언트(잔차) 계산
            residuals = y - y_pred

            # 2. 서브샘플링 (Stochastic GB)
            sample_indices = _subsample_indices(n_samples, self.subsample, rng)
            if sample_indices is None:
                X_fit, r_fit = X, residuals
            else:
                X_fit, r_fit = X[sample_indices], residuals[sample_indices]

            # 3. 잔차에 대해 트리 학습
            tree = DecisionTreeRegressor(
                max_depth=self.max_depth,
                min_samples_split=self.min_samples_split,
                min_samples_leaf=self.min_samples_leaf,
                max_features=self.max_features,
                random_state=spawn_seed(rng)
            )
            tree.fit(X_fit, r_fit)

            # 4. 예측 업데이트: F_m(x) = F_{m-1}(x) + η * h_m(x)
            y_pred = y_pred + self.learning_rate * tree.predict(X)
            self.estimators_.append(tree)

            train_mse = mean_squared_error(y, y_pred)
            self.train_scores_.append(train_mse)

            val_mse = None
            if monitor:
                y_val_pred = y_val_pred + self.learning_rate * tree.predict(X_val)
                val_mse = mean_squared_error(y_val, y_val_pred)
                self.val_scores_.append(val_mse)

            history_entry = {
                'iteration': m + 1,
                'train_mse': train_mse,
                'train_rmse': np.sqrt(train_mse),
                'residual_mean': float(np.mean(residuals)),
                'residual_std': float(np.std(residuals)),
                'tree_depth': tree.get_depth(),
                'tree_n_leaves': tree.get_n_leaves()
            }
            if val_mse is not None:
                history_entry['val_mse'] = val_mse
                history_entry['val_rmse'] = np.sqrt(val_mse)

            self.training_history_.append(history_entry)

            if self.verbose > 0 and (m + 1) % max(1, self.n_estimators // 10) == 0:
                msg = f"라운드 {m + 1}/{self.n_estimators}, Train MSE: {train_mse:.4f}"
                if val_mse is not None:
                    msg += f", Val MSE: {val_mse:.4f}"
                print(msg)

        self.feature_importances_ = np.mean(
            [tree.feature_importances_ for tree in self.estimators_],
            axis=0
        )

        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        """
        예측 수행

        F_M(x) = F_0(x) + η * Σ h_m(x)
        """
        check_is_fitted(self, 'estimators_')
        X = check_predict_input(X, self.n_features_)

        y_pred = np.full(X.shape[0], self.init_prediction_)
        for tree in self.estimators_:
            y_pred = y_pred + self.learning_rate * tree.predict(X)

        return y_pred

    def predict_single(self, x: np.ndarray) -> float:
        return float(self.predict(x)[0])

    def staged_predict(self, X: np.ndarray) -> np.ndarray:
        """
        각 부스팅 라운드별 예측 반환 (시각화용)

        Returns
        -------
        predictions : ndarray of shape (n_estimators + 1, n_samples)
            각 라운드 후의 예측값들 (0행은 초기 예측)
        """
        check_is_fitted(self, 'estimators_')
        X = check_predict_input(X, self.n_features_)

        n_samples = X.shape[0]
        predictions = np.zeros((len(self.estimators_) + 1, n_samples))
        predictions[0] = self.init_prediction_

        y_pred = np.full(n_samples, self.init_prediction_)
        for i, tree in enumerate(self.estimators_):
            y_pred = y_pred + self.learning_rate * tree.predict(X)
            predictions[i + 1] = y_pred

        return predictions

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """결정계수 R²"""
        return r2_score(y, self.predict(X))

    def get_training_curve(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        학습 곡선 데이터 반환

        Returns
        -------
        iterations : ndarray
            반복 횟수
        train_mse : ndarray
            각 반복에서의 학습 MSE
        """
        iterations = np.arange(len(self.train_scores_))
        return iterations, np.array(self.train_scores_)

    def __repr__(self) -> str:
        if not self.estimators_:
            return "GradientBoostingRegressor(not fitted)"

        return (
            f"GradientBoostingRegressor("
            f"n_estimators={len(self.estimators_)}, "
            f"learning_rate={self.learning_rate}, "
            f"max_depth={self.max_depth})"
        )
