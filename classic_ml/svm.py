"""
Support Vector Machine - From Scratch Implementation
====================================================

커널 SVM 분류(SVC, 단순화된 SMO)와 ε-insensitive 회귀(SVR).

수학적 배경:
-----------
쌍대 문제 (분류):
    max_α  Σ α_i - (1/2) Σ_i Σ_j α_i α_j y_i y_j K(x_i, x_j)
    s.t.   0 <= α_i <= C,  Σ α_i y_i = 0

결정 함수:
    f(x) = Σ α_i y_i K(x_i, x) - b
    ŷ = +1 if f(x) >= 0 else -1

단순화된 SMO (Sequential Minimal Optimization):
    KKT 조건을 위반하는 α_i를 찾고, 임의의 j ≠ i와 함께 두 변수만 해석적으로 갱신

    E_k = f(x_k) - y_k
    η = 2K_ij - K_ii - K_jj                     (η >= 0이면 건너뜀)
    α_j ← clip(α_j - y_j (E_i - E_j) / η, L, H)
    α_i ← α_i + y_i y_j (α_j^old - α_j)

    y_i ≠ y_j: L = max(0, α_j - α_i),     H = min(C, C + α_j - α_i)
    y_i = y_j: L = max(0, α_i + α_j - C), H = min(C, α_i + α_j)

    b는 0 < α < C인 승수에서 계산한 b1 또는 b2, 둘 다 경계면 평균

종료:
    변화 없는 패스가 max_passes번 연속되거나 전체 패스가 max_iter에 도달

SVR (ε-insensitive):
    f(x) = Σ (α_i - α*_i) K(x_i, x) + b
    오차가 ε을 넘는 샘플에 대해 α 또는 α*를 학습률만큼 증가 (C로 제한)

Author: ML From Scratch Project
"""

import numpy as np
from typing import Optional, List, Dict, Union, Any

from .config import CONFIG
from .kernels import Kernel, get_kernel
from .metrics import accuracy_score, r2_score
from .utils import (
    check_X_y,
    check_is_fitted,
    check_predict_input,
    check_random_state,
    spawn_seed,
)


class SVC:
    """
    Support Vector Classifier (이진 분류, 단순화된 SMO)

    Parameters
    ----------
    C : float, default=1.0
        규제 파라미터 (오분류 허용 정도의 역수)

    kernel : str or Kernel, default='rbf'
        'linear', 'rbf', 'poly', 'sigmoid'

    gamma : float or 'scale', default=0.1
        rbf/poly/sigmoid 커널 계수

    degree : int, default=3
        다항 커널 차수

    coef0 : float, default=0.0
        poly/sigmoid 커널 상수항

    tol : float, default=1e-3
        KKT 위반 허용 오차

    max_passes : int, default=5
        변화 없는 연속 패스가 이 값에 도달하면 종료

    max_iter : int, default=1000
        전체 패스 상한

    random_state : int or np.random.Generator, default=None
        두 번째 승수 선택용 랜덤 시드

    verbose : int, default=0
        출력 수준

    Attributes
    ----------
    classes_ : ndarray of shape (2,)
        classes_[1]이 +1, classes_[0]이 -1에 대응

    support_ : ndarray
        서포트 벡터의 학습 데이터 인덱스

    support_vectors_ : ndarray of shape (n_SV, n_features)

    dual_coef_ : ndarray of shape (n_SV,)
        α_i * y_i

    intercept_ : float
        편향 b (f(x) = Σ dual_coef_ K - b)

    n_iter_ : int
        수행한 전체 패스 수

    converged_ : bool
        max_passes 조건으로 종료했는지 여부
    """

    def __init__(
        self,
        C: float = 1.0,
        kernel: Union[str, Kernel] = 'rbf',
        gamma: Union[str, float] = 0.1,
        degree: int = 3,
        coef0: float = 0.0,
        tol: float = 1e-3,
        max_passes: int = 5,
        max_iter: int = 1000,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.C = C
        self.kernel = kernel
        self.gamma = gamma
        self.degree = degree
        self.coef0 = coef0
        self.tol = tol
        self.max_passes = max_passes
        self.max_iter = max_iter
        self.random_state = random_state
        self.verbose = verbose

        # 학습 후 설정되는 속성들
        self.kernel_: Optional[Kernel] = None
        self.classes_: Optional[np.ndarray] = None
        self.alpha_: Optional[np.ndarray] = None
        self.support_: Optional[np.ndarray] = None
        self.support_vectors_: Optional[np.ndarray] = None
        self.dual_coef_: Optional[np.ndarray] = None
        self.intercept_: float = 0.0
        self.n_iter_: int = 0
        self.converged_: bool = False
        self.n_features_: int = 0

        self.training_history_: List[Dict] = []

    def _validate_params(self) -> None:
        if self.C <= 0:
            raise ValueError(f"C는 양수여야 합니다: {self.C}")
        if self.max_passes < 1 or self.max_iter < 1:
            raise ValueError(
                f"max_passes와 max_iter는 1 이상이어야 합니다: {self.max_passes}, {self.max_iter}"
            )

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'SVC':
        """
        SMO로 쌍대 문제를 풀어 서포트 벡터 결정

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
        y : ndarray of shape (n_samples,)
            정확히 2개의 클래스

        Returns
        -------
        self : SVC
        """
        X, y = check_X_y(X, y)
        self._validate_params()

        self.classes_ = np.unique(y)
        if len(self.classes_) != 2:
            raise ValueError(
                f"SVC는 이진 분류만 지원합니다 (클래스 {len(self.classes_)}개). "
                "다중 클래스는 OneVsRestSVC를 사용하세요."
            )

        y_signed = np.where(y == self.classes_[1], 1.0, -1.0)
        n_samples, self.n_features_ = X.shape

        self.kernel_ = get_kernel(self.kernel, self.gamma, self.degree, self.coef0, X)
        rng = check_random_state(self.random_state)

        alpha, b = self._smo(self.kernel_.matrix(X, X), y_signed, rng)

        sv = alpha > CONFIG['sv_epsilon']
        self.alpha_ = alpha
        self.support_ = np.nonzero(sv)[0]
        self.support_vectors_ = X[sv]
        self.dual_coef_ = alpha[sv] * y_signed[sv]
        self.intercept_ = float(b)

        if self.verbose > 0:
            status = "수렴" if self.converged_ else "max_iter 도달"
            print(f"SMO {status}: {self.n_iter_}회 패스, 서포트 벡터 {len(self.support_)}개")

        return self

    def _smo(self, K: np.ndarray, y: np.ndarray, rng: np.random.Generator):
        n = len(y)
        C, tol = self.C, self.tol
        min_step = CONFIG['smo_min_step']

        alpha = np.zeros(n)
        b = 0.0
        passes = 0
        self.n_iter_ = 0
        self.converged_ = False
        self.training_history_ = []

        def error(k: int) -> float:
            return float((alpha * y) @ K[k] - b - y[k])

        while passes < self.max_passes and self.n_iter_ < self.max_iter:
            num_changed = 0

            for i in range(n):
                E_i = error(i)
                r_i = E_i * y[i]

                if not ((r_i < -tol and alpha[i] < C) or (r_i > tol and alpha[i] > 0)):
                    continue

                # i를 제외한 균등 추출
                j = int(rng.integers(0, n - 1))
                if j >= i:
                    j += 1
                E_j = error(j)

                alpha_i_old, alpha_j_old = alpha[i], alpha[j]

                if y[i] != y[j]:
                    L = max(0.0, alpha[j] - alpha[i])
                    H = min(C, C + alpha[j] - alpha[i])
                else:
                    L = max(0.0, alpha[i] + alpha[j] - C)
                    H = min(C, alpha[i] + alpha[j])
                if L == H:
                    continue

                eta = 2 * K[i, j] - K[i, i] - K[j, j]
                if eta >= 0:
                    continue

                alpha[j] = np.clip(alpha[j] - y[j] * (E_i - E_j) / eta, L, H)
                if abs(alpha[j] - alpha_j_old) < min_step:
                    alpha[j] = alpha_j_old
                    continue

                alpha[i] += y[i] * y[j] * (alpha_j_old - alpha[j])
                alpha[i] = min(C, max(0.0, alpha[i]))

                d_i = alpha[i] - alpha_i_old
                d_j = alpha[j] - alpha_j_old
                b1 = b + E_i + y[i] * d_i * K[i, i] + y[j] * d_j * K[i, j]
                b2 = b + E_j + y[i] * d_i * K[i, j] + y[j] * d_j * K[j, j]

                if 0 < alpha[i] < C:
                    b = b1
                elif 0 < alpha[j] < C:
                    b = b2
                else:
                    b = (b1 + b2) / 2

                num_changed += 1

            self.n_iter_ += 1
            passes = passes + 1 if num_changed == 0 else 0

            self.training_history_.append({
                'iteration': self.n_iter_,
                'n_changed': num_changed,
                'n_nonzero_alpha': int(np.sum(alpha > CONFIG['sv_epsilon']))
            })

            if self.verbose > 1:
                print(f"패스 {self.n_iter_}: 변경된 승수 {num_changed}개")

        self.converged_ = passes >= self.max_passes
        return alpha, b

    def decision_function(self, X: np.ndarray) -> np.ndarray:
        """
        f(x) = Σ α_i y_i K(x_i, x) - b

        양수면 classes_[1], 음수면 classes_[0]
        """
        check_is_fitted(self, 'dual_coef_')
        X = check_predict_input(X, self.n_features_)

        if len(self.support_) == 0:
            return np.full(X.shape[0], -self.intercept_)

        return self.kernel_.matrix(X, self.support_vectors_) @ self.dual_coef_ - self.intercept_

    def predict(self, X: np.ndarray) -> np.ndarray:
        scores = self.decision_function(X)
        return np.where(scores >= 0, self.classes_[1], self.classes_[0])

    def predict_single(self, x: np.ndarray) -> Any:
        return self.predict(x)[0]

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        return accuracy_score(y, self.predict(X))

    @property
    def n_support_(self) -> int:
        """서포트 벡터 개수"""
        check_is_fitted(self, 'support_')
        return len(self.support_)

    def __repr__(self) -> str:
        if self.support_ is None:
            return "SVC(not fitted)"
        return f"SVC(C={self.C}, kernel={self.kernel_!r}, n_support={len(self.support_)})"


class SVR:
    """
    Support Vector Regression (ε-insensitive, 샘플 단위 갱신)

    Parameters
    ----------
    C : float, default=1.0
        승수 상한

    epsilon : float, default=0.1
        손실을 주지 않는 오차 폭

    kernel, gamma, degree, coef0 :
        SVC와 동일

    learning_rate : float, default=0.01
        승수 및 편향 갱신 크기

    max_iter : int, default=1000
        전체 데이터 반복 횟수

    Attributes
    ----------
    support_ : ndarray
        α 또는 α*가 sv_epsilon을 넘는 샘플 인덱스

    dual_coef_ : ndarray of shape (n_SV,)
        α_i - α*_i

    intercept_ : float
        b (f(x) = Σ dual_coef_ K + b)
    """

    def __init__(
        self,
        C: float = 1.0,
        epsilon: float = 0.1,
        kernel: Union[str, Kernel] = 'rbf',
        gamma: Union[str, float] = 0.1,
        degree: int = 3,
        coef0: float = 0.0,
        learning_rate: float = 0.01,
        max_iter: int = 1000,
        verbose: int = 0
    ):
        self.C = C
        self.epsilon = epsilon
        self.kernel = kernel
        self.gamma = gamma
        self.degree = degree
        self.coef0 = coef0
        self.learning_rate = learning_rate
        self.max_iter = max_iter
        self.verbose = verbose

        self.kernel_: Optional[Kernel] = None
        self.support_: Optional[np.ndarray] = None
        self.support_vectors_: Optional[np.ndarray] = None
        self.dual_coef_: Optional[np.ndarray] = None
        self.intercept_: float = 0.0
        self.n_features_: int = 0

        self.loss_history_: List[float] = []

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'SVR':
        X, y = check_X_y(X, y, y_numeric=True)
        if self.C <= 0:
            raise ValueError(f"C는 양수여야 합니다: {self.C}")
        if self.epsilon < 0:
            raise ValueError(f"epsilon은 0 이상이어야 합니다: {self.epsilon}")

        n_samples, self.n_features_ = X.shape
        self.kernel_ = get_kernel(self.kernel, self.gamma, self.degree, self.coef0, X)
        K = self.kernel_.matrix(X, X)

        alpha = np.zeros(n_samples)
        alpha_star = np.zeros(n_samples)
        b = 0.0
        lr = self.learning_rate
        self.loss_history_ = []

        for it in range(self.max_iter):
            for i in range(n_samples):
                error = K[i] @ (alpha - alpha_star) + b - y[i]

                if error > self.epsilon:
                    alpha_star[i] = min(self.C, alpha_star[i] + lr)
                elif error < -self.epsilon:
                    alpha[i] = min(self.C, alpha[i] + lr)

                b -= lr * error * 0.1

            # ε-insensitive 평균 손실
            residual = np.abs(K @ (alpha - alpha_star) + b - y)
            self.loss_history_.append(float(np.mean(np.maximum(residual - self.epsilon, 0.0))))

            if self.verbose > 0 and (it + 1) % max(1, self.max_iter // 10) == 0:
                print(f"반복 {it + 1}/{self.max_iter}, ε-loss: {self.loss_history_[-1]:.4f}")

        eps = CONFIG['sv_epsilon']
        sv = (alpha > eps) | (alpha_star > eps)
        self.support_ = np.nonzero(sv)[0]
        self.support_vectors_ = X[sv]
        self.dual_coef_ = alpha[sv] - alpha_star[sv]
        self.intercept_ = float(b)

        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        check_is_fitted(self, 'dual_coef_')
        X = check_predict_input(X, self.n_features_)

        if len(self.support_) == 0:
            return np.full(X.shape[0], self.intercept_)

        return self.kernel_.matrix(X, self.support_vectors_) @ self.dual_coef_ + self.intercept_

    def predict_single(self, x: np.ndarray) -> float:
        return float(self.predict(x)[0])

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        return r2_score(y, self.predict(X))

    def __repr__(self) -> str:
        if self.support_ is None:
            return "SVR(not fitted)"
        return f"SVR(C={self.C}, epsilon={self.epsilon}, n_support={len(self.support_)})"


class OneVsRestSVC:
    """
    One-vs-Rest 다중 클래스 SVM

    클래스마다 '해당 클래스 vs 나머지' 이진 SVC를 학습하고,
    결정 함수 값이 가장 큰 클래스를 예측합니다.
    SVC 파라미터는 그대로 각 이진 분류기에 전달됩니다.
    """

    def __init__(
        self,
        C: float = 1.0,
        kernel: Union[str, Kernel] = 'rbf',
        gamma: Union[str, float] = 0.1,
        degree: int = 3,
        coef0: float = 0.0,
        tol: float = 1e-3,
        max_passes: int = 5,
        max_iter: int = 1000,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.C = C
        self.kernel = kernel
        self.gamma = gamma
        self.degree = degree
        self.coef0 = coef0
        self.tol = tol
        self.max_passes = max_passes
        self.max_iter = max_iter
        self.random_state = random_state
        self.verbose = verbose

        self.classes_: Optional[np.ndarray] = None
        self.estimators_: Optional[List[SVC]] = None

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'OneVsRestSVC':
        X, y = check_X_y(X, y)
        self.classes_ = np.unique(y)
        if len(self.classes_) < 2:
            raise ValueError(
                f"분류에는 2개 이상의 클래스가 필요합니다: {len(self.classes_)}개"
            )

        rng = check_random_state(self.random_state)
        self.estimators_ = []

        for c in self.classes_:
            # 1: 해당 클래스, 0: 나머지 → classes_[1]이 +1
            binary_y = (y == c).astype(int)
            svc = SVC(
                C=self.C,
                kernel=self.kernel,
                gamma=self.gamma,
                degree=self.degree,
                coef0=self.coef0,
                tol=self.tol,
                max_passes=self.max_passes,
                max_iter=self.max_iter,
                random_state=spawn_seed(rng),
                verbose=self.verbose
            )
            self.estimators_.append(svc.fit(X, binary_y))

            if self.verbose > 0:
                print(f"클래스 {c} vs rest 학습 완료")

        return self

    def decision_function(self, X: np.ndarray) -> np.ndarray:
        """클래스별 점수, shape (n_samples, n_classes)"""
        check_is_fitted(self, 'estimators_')
        return np.column_stack([svc.decision_function(X) for svc in self.estimators_])

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.classes_[np.argmax(self.decision_function(X), axis=1)]

    def predict_single(self, x: np.ndarray) -> Any:
        return self.predict(x)[0]

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        return accuracy_score(y, self.predict(X))

    def __repr__(self) -> str:
        if self.estimators_ is None:
            return "OneVsRestSVC(not fitted)"
        return f"OneVsRestSVC(n_classes={len(self.classes_)}, kernel={self.kernel!r})"
