"""
Linear Models - From Scratch Implementation
===========================================

선형 회귀(OLS / Ridge / Lasso / ElasticNet)와 로지스틱 회귀

수학적 배경:
-----------
선형 회귀:
    ŷ = X w + b

정규 방정식 (L2 포함, 편향은 규제하지 않음):
    (X̃ᵀ X̃ + λ I') w̃ = X̃ᵀ y,    X̃ = [X, 1],  I' = diag(1, ..., 1, 0)

경사 하강 (MSE + 규제):
    L = (1/n) Σ (ŷ_i - y_i)² + R(w)
    ∂L/∂w = (2/n) Xᵀ (ŷ - y) + ∂R/∂w
        L2:         ∂R/∂w = 2 α w
        L1:         ∂R/∂w = α sign(w)       (subgradient)
        ElasticNet: ∂R/∂w = α (ρ sign(w) + (1 - ρ) 2 w)

로지스틱 회귀:
    이진:   p = σ(Xw + b),       BCE = -(1/n) Σ [y log p + (1 - y) log(1 - p)]
    다중:   P = softmax(XW + b), CE = -(1/n) Σ log P[i, y_i]
    L2 항:  α |w|² / (2n),  그래디언트 α w / n
    L1 항:  그래디언트 α sign(w) / n

Author: ML From Scratch Project
"""

import numpy as np
from typing import Optional, List, Dict, Any

from .config import CONFIG
from .metrics import (
    accuracy_score,
    confusion_matrix as _confusion_matrix,
    mean_squared_error,
    r2_score,
)
from .utils import (
    check_X_y,
    check_is_fitted,
    check_predict_input,
    check_random_state,
    one_hot,
    sigmoid,
    softmax,
)


def solve_linear_system(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    부분 피벗 가우스 소거로 A x = b 풀기

    피벗 절댓값이 CONFIG['pivot_epsilon'] 미만인 열은 퇴화된 것으로 보고
    해당 미지수를 0으로 둡니다 (예외를 발생시키지 않음).

    Parameters
    ----------
    A : ndarray of shape (n, n)
    b : ndarray of shape (n,)

    Returns
    -------
    x : ndarray of shape (n,)
    """
    A = np.array(A, dtype=float)
    b = np.array(b, dtype=float).ravel()
    n = A.shape[0]
    if A.shape != (n, n) or len(b) != n:
        raise ValueError(f"A는 정방 행렬, b는 길이 n이어야 합니다: {A.shape}, {b.shape}")

    eps = CONFIG['pivot_epsilon']
    pivot_cols = []
    row = 0

    # 전진 소거
    for col in range(n):
        if row >= n:
            break
        pivot = row + int(np.argmax(np.abs(A[row:, col])))
        if abs(A[pivot, col]) < eps:
            continue

        if pivot != row:
            A[[row, pivot]] = A[[pivot, row]]
            b[[row, pivot]] = b[[pivot, row]]

        factors = A[row + 1:, col] / A[row, col]
        A[row + 1:] -= factors[:, None] * A[row]
        b[row + 1:] -= factors * b[row]

        pivot_cols.append(col)
        row += 1

    # 후진 대입 (피벗이 없는 열은 0)
    x = np.zeros(n)
    for r in range(len(pivot_cols) - 1, -1, -1):
        col = pivot_cols[r]
        x[col] = (b[r] - A[r, col + 1:] @ x[col + 1:]) / A[r, col]

    return x


class LinearRegression:
    """
    선형 회귀 (From Scratch)

    Parameters
    ----------
    penalty : {None, 'l1', 'l2', 'elasticnet'}, default=None
        규제 종류

    alpha : float, default=0.01
        규제 강도

    l1_ratio : float, default=0.5
        ElasticNet에서 L1 비중 ρ

    solver : {'normal', 'gd', 'sgd'}, default='normal'
        - normal: 정규 방정식 (L1 / ElasticNet 불가)
        - gd: 전체 배치 경사 하강
        - sgd: 셔플된 미니배치 경사 하강

    learning_rate : float, default=0.01
    max_iter : int, default=1000
        에폭 수 상한
    batch_size : int, default=32
        sgd 미니배치 크기
    tol : float, default=1e-6
        에폭 손실 변화가 이보다 작으면 종료
    random_state : int or np.random.Generator, default=None
        sgd 셔플용 시드
    verbose : int, default=0

    Attributes
    ----------
    coef_ : ndarray of shape (n_features,)
    intercept_ : float
    n_iter_ : int
        수행한 에폭 수 (normal은 1)
    loss_history_ : list of float
        에폭별 학습 손실 (MSE + 규제)

    Examples
    --------
    >>> X = np.array([[1.0], [2.0], [3.0]])
    >>> model = LinearRegression().fit(X, np.array([3.0, 5.0, 7.0]))
    >>> y_new = model.predict_single([4.0])
    """

    _penalties = (None, 'none', 'l1', 'l2', 'elasticnet')
    _solvers = ('normal', 'gd', 'sgd')

    def __init__(
        self,
        penalty: Optional[str] = None,
        alpha: float = 0.01,
        l1_ratio: float = 0.5,
        solver: str = 'normal',
        learning_rate: float = 0.01,
        max_iter: int = 1000,
        batch_size: int = 32,
        tol: float = 1e-6,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.penalty = penalty
        self.alpha = alpha
        self.l1_ratio = l1_ratio
        self.solver = solver
        self.learning_rate = learning_rate
        self.max_iter = max_iter
        self.batch_size = batch_size
        self.tol = tol
        self.random_state = random_state
        self.verbose = verbose

        # 학습 후 설정되는 속성들
        self.coef_: Optional[np.ndarray] = None
        self.intercept_: float = 0.0
        self.n_iter_: int = 0
        self.loss_history_: List[float] = []
        self.n_features_: int = 0

    def _validate_params(self) -> None:
        if self.penalty not in self._penalties:
            raise ValueError(f"지원하지 않는 penalty 값입니다: {self.penalty!r}")
        if self.solver not in self._solvers:
            raise ValueError(f"지원하지 않는 solver 값입니다: {self.solver!r}")
        if self.alpha < 0:
            raise ValueError(f"alpha는 0 이상이어야 합니다: {self.alpha}")
        if not 0.0 <= self.l1_ratio <= 1.0:
            raise ValueError(f"l1_ratio는 [0, 1] 범위여야 합니다: {self.l1_ratio}")
        if self.solver == 'normal' and self.penalty in ('l1', 'elasticnet'):
            raise ValueError(
                f"penalty='{self.penalty}'는 정규 방정식으로 풀 수 없습니다. solver='gd' 또는 'sgd'를 사용하세요."
            )

    def _penalty_value(self, w: np.ndarray) -> float:
        if self.penalty == 'l2':
            return self.alpha * float(w @ w)
        if self.penalty == 'l1':
            return self.alpha * float(np.sum(np.abs(w)))
        if self.penalty == 'elasticnet':
            return self.alpha * (
                self.l1_ratio * float(np.sum(np.abs(w)))
                + (1 - self.l1_ratio) * float(w @ w)
            )
        return 0.0

    def _penalty_grad(self, w: np.ndarray) -> np.ndarray:
        if self.penalty == 'l2':
            return 2 * self.alpha * w
        if self.penalty == 'l1':
            return self.alpha * np.sign(w)
        if self.penalty == 'elasticnet':
            return self.alpha * (self.l1_ratio * np.sign(w) + (1 - self.l1_ratio) * 2 * w)
        return np.zeros_like(w)

    def _loss(self, X: np.ndarray, y: np.ndarray, w: np.ndarray, b: float) -> float:
        return mean_squared_error(y, X @ w + b) + self._penalty_value(w)

    def _fit_normal(self, X: np.ndarray, y: np.ndarray) -> None:
        n_samples, n_features = X.shape
        X_aug = np.hstack([X, np.ones((n_samples, 1))])

        A = X_aug.T @ X_aug
        if self.penalty == 'l2':
            # 편향 열은 규제하지 않음
            A[:n_features, :n_features] += self.alpha * np.eye(n_features)

        theta = solve_linear_system(A, X_aug.T @ y)
        self.coef_ = theta[:n_features]
        self.intercept_ = float(theta[n_features])
        self.n_iter_ = 1
        self.loss_history_ = [self._loss(X, y, self.coef_, self.intercept_)]

    def _fit_gradient(self, X: np.ndarray, y: np.ndarray) -> None:
        n_samples, n_features = X.shape
        rng = check_random_state(self.random_state)

        w = np.zeros(n_features)
        b = 0.0
        prev_loss = np.inf
        self.loss_history_ = []
        self.n_iter_ = 0

        batch_size = n_samples if self.solver == 'gd' else max(1, min(self.batch_size, n_samples))

        for epoch in range(self.max_iter):
            order = np.arange(n_samples) if self.solver == 'gd' else rng.permutation(n_samples)

            for start in range(0, n_samples, batch_size):
                idx = order[start:start + batch_size]
                X_b, y_b = X[idx], y[idx]

                error = X_b @ w + b - y_b
                grad_w = 2 * X_b.T @ error / len(idx) + self._penalty_grad(w)
                grad_b = 2 * np.mean(error)

                w -= self.learning_rate * grad_w
                b -= self.learning_rate * grad_b

            loss = self._loss(X, y, w, b)
            self.loss_history_.append(loss)
            self.n_iter_ = epoch + 1

            if not np.isfinite(loss):
                if self.verbose > 0:
                    print(f"에폭 {epoch + 1}: 손실이 발산했습니다. learning_rate를 줄여 보세요.")
                break

            if abs(prev_loss - loss) < self.tol:
                if self.verbose > 0:
                    print(f"에폭 {epoch + 1}에서 수렴 (loss={loss:.6f})")
                break
            prev_loss = loss

            if self.verbose > 0 and (epoch + 1) % max(1, self.max_iter // 10) == 0:
                print(f"에폭 {epoch + 1}/{self.max_iter}, Loss: {loss:.6f}")

        self.coef_ = w
        self.intercept_ = float(b)

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'LinearRegression':
        """
        선형 회귀 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
        y : ndarray of shape (n_samples,)

        Returns
        -------
        self : LinearRegression
        """
        X, y = check_X_y(X, y, y_numeric=True)
        self._validate_params()
        self.n_features_ = X.shape[1]

        if self.solver == 'normal':
            self._fit_normal(X, y)
        else:
            self._fit_gradient(X, y)

        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        check_is_fitted(self, 'coef_')
        X = check_predict_input(X, self.n_features_)
        return X @ self.coef_ + self.intercept_

    def predict_single(self, x: np.ndarray) -> float:
        return float(self.predict(x)[0])

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        """결정계수 R²"""
        return r2_score(y, self.predict(X))

    def mse(self, X: np.ndarray, y: np.ndarray) -> float:
        return mean_squared_error(y, self.predict(X))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(penalty={self.penalty!r}, alpha={self.alpha}, "
            f"solver='{self.solver}')"
        )


class Ridge(LinearRegression):
    """L2 규제 선형 회귀 (정규 방정식)"""

    def __init__(self, alpha: float = 1.0, verbose: int = 0):
        super().__init__(penalty='l2', alpha=alpha, solver='normal', verbose=verbose)


class Lasso(LinearRegression):
    """L1 규제 선형 회귀 (경사 하강)"""

    def __init__(
        self,
        alpha: float = 1.0,
        learning_rate: float = 0.01,
        max_iter: int = 1000,
        tol: float = 1e-4,
        verbose: int = 0
    ):
        super().__init__(
            penalty='l1', alpha=alpha, solver='gd',
            learning_rate=learning_rate, max_iter=max_iter, tol=tol, verbose=verbose
        )


class ElasticNet(LinearRegression):
    """L1 + L2 규제 선형 회귀 (경사 하강)"""

    def __init__(
        self,
        alpha: float = 1.0,
        l1_ratio: float = 0.5,
        learning_rate: float = 0.01,
        max_iter: int = 1000,
        tol: float = 1e-4,
        verbose: int = 0
    ):
        super().__init__(
            penalty='elasticnet', alpha=alpha, l1_ratio=l1_ratio, solver='gd',
            learning_rate=learning_rate, max_iter=max_iter, tol=tol, verbose=verbose
        )


class LogisticRegression:
    """
    로지스틱 회귀 (From Scratch)

    클래스가 2개면 시그모이드 + BCE, 3개 이상이면 softmax + 교차 엔트로피로
    전체 배치 경사 하강 학습을 수행합니다.

    Parameters
    ----------
    penalty : {None, 'l2', 'l1'}, default='l2'
    alpha : float, default=1.0
        규제 강도
    learning_rate : float, default=0.1
    max_iter : int, default=1000
    tol : float, default=1e-4
        |이전 손실 - 현재 손실| < tol이면 종료
    random_state : int or np.random.Generator, default=None
        다중 클래스 가중치 초기화 시드
    verbose : int, default=0

    Attributes
    ----------
    classes_ : ndarray
        정렬된 고유 클래스 (이진이면 classes_[1]이 양성)
    coef_ : ndarray
        이진: (n_features,), 다중: (n_features, n_classes)
    intercept_ : float or ndarray of shape (n_classes,)
    n_iter_ : int
    loss_history_ : list of float
    converged_ : bool
    """

    def __init__(
        self,
        penalty: Optional[str] = 'l2',
        alpha: float = 1.0,
        learning_rate: float = 0.1,
        max_iter: int = 1000,
        tol: float = 1e-4,
        random_state: Optional[Any] = None,
        verbose: int = 0
    ):
        self.penalty = penalty
        self.alpha = alpha
        self.learning_rate = learning_rate
        self.max_iter = max_iter
        self.tol = tol
        self.random_state = random_state
        self.verbose = verbose

        self.classes_: Optional[np.ndarray] = None
        self.coef_: Optional[np.ndarray] = None
        self.intercept_: Any = 0.0
        self.n_iter_: int = 0
        self.loss_history_: List[float] = []
        self.converged_: bool = False
        self.n_features_: int = 0

    def _penalty_terms(self, w: np.ndarray, n: int):
        """(손실 항, 그래디언트 항)"""
        if self.penalty == 'l2':
            return self.alpha * float(np.sum(w ** 2)) / (2 * n), self.alpha * w / n
        if self.penalty == 'l1':
            return self.alpha * float(np.sum(np.abs(w))) / n, self.alpha * np.sign(w) / n
        return 0.0, np.zeros_like(w)

    def fit(self, X: np.ndarray, y: np.ndarray) -> 'LogisticRegression':
        """
        경사 하강으로 로지스틱 회귀 학습

        Parameters
        ----------
        X : ndarray of shape (n_samples, n_features)
        y : ndarray of shape (n_samples,)
            2개 이상의 클래스 레이블

        Returns
        -------
        self : LogisticRegression
        """
        X, y = check_X_y(X, y)
        if self.penalty not in (None, 'none', 'l1', 'l2'):
            raise ValueError(f"지원하지 않는 penalty 값입니다: {self.penalty!r}")

        self.classes_, y_encoded = np.unique(y, return_inverse=True)
        n_classes = len(self.classes_)
        if n_classes < 2:
            raise ValueError(
                f"분류에는 2개 이상의 클래스가 필요합니다: {n_classes}개"
            )

        n_samples, n_features = X.shape
        self.n_features_ = n_features
        rng = check_random_state(self.random_state)
        clip = CONFIG['prob_clip']

        if n_classes == 2:
            w = np.zeros(n_features)
            b = 0.0
            target = y_encoded.astype(float)
        else:
            w = rng.normal(0.0, 0.01, size=(n_features, n_classes))
            b = np.zeros(n_classes)
            target = one_hot(y_encoded, n_classes)

        prev_loss = np.inf
        self.loss_history_ = []
        self.converged_ = False
        self.n_iter_ = 0

        for iteration in range(self.max_iter):
            if n_classes == 2:
                p = np.clip(sigmoid(X @ w + b), clip, 1 - clip)
                loss = -np.mean(target * np.log(p) + (1 - target) * np.log(1 - p))
            else:
                p = softmax(X @ w + b)
                loss = -np.mean(np.log(np.maximum(p[np.arange(n_samples), y_encoded], clip)))

            penalty_loss, penalty_grad = self._penalty_terms(w, n_samples)
            loss = float(loss + penalty_loss)
            self.loss_history_.append(loss)
            self.n_iter_ = iteration + 1

            if abs(prev_loss - loss) < self.tol:
                self.converged_ = True
                if self.verbose > 0:
                    print(f"반복 {iteration}에서 수렴 (loss={loss:.6f})")
                break
            prev_loss = loss

            error = p - target
            grad_w = X.T @ error / n_samples + penalty_grad
            grad_b = np.mean(error, axis=0)

            w = w - self.learning_rate * grad_w
            b = b - self.learning_rate * grad_b

            if self.verbose > 0 and iteration % 100 == 0:
                print(f"반복 {iteration}: Loss = {loss:.6f}")

        self.coef_ = w
        self.intercept_ = float(b) if n_classes == 2 else b
        return self

    def decision_function(self, X: np.ndarray) -> np.ndarray:
        """로짓: 이진은 (n_samples,), 다중은 (n_samples, n_classes)"""
        check_is_fitted(self, 'coef_')
        X = check_predict_input(X, self.n_features_)
        return X @ self.coef_ + self.intercept_

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """클래스 확률, 열 순서는 classes_"""
        logits = self.decision_function(X)
        if logits.ndim == 1:
            p = sigmoid(logits)
            return np.column_stack([1 - p, p])
        return softmax(logits)

    def predict_proba_single(self, x: np.ndarray) -> np.ndarray:
        return self.predict_proba(x)[0]

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.classes_[np.argmax(self.predict_proba(X), axis=1)]

    def predict_single(self, x: np.ndarray) -> Any:
        return self.predict(x)[0]

    def score(self, X: np.ndarray, y: np.ndarray) -> float:
        return accuracy_score(y, self.predict(X))

    def confusion_matrix(self, X: np.ndarray, y: np.ndarray) -> np.ndarray:
        """행: 실제 클래스, 열: 예측 클래스 (classes_ 순서)"""
        return _confusion_matrix(y, self.predict(X), labels=self.classes_)

    def classification_report(self, X: np.ndarray, y: np.ndarray) -> str:
        """클래스별 precision / recall / f1 / support 표"""
        cm = self.confusion_matrix(X, y)
        tp = np.diag(cm).astype(float)
        predicted = cm.sum(axis=0)
        support = cm.sum(axis=1)

        lines = [f"{'':>12}  {'precision':>9}  {'recall':>6}  {'f1-score':>8}  {'support':>7}", ""]
        rows: List[Dict[str, float]] = []

        for i, cls in enumerate(self.classes_):
            precision = tp[i] / predicted[i] if predicted[i] > 0 else 0.0
            recall = tp[i] / support[i] if support[i] > 0 else 0.0
            f1 = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0.0
            rows.append({'precision': precision, 'recall': recall, 'f1': f1})
            lines.append(
                f"{str(cls):>12}  {precision:>9.2f}  {recall:>6.2f}  {f1:>8.2f}  {support[i]:>7d}"
            )

        total = int(support.sum())
        weights = support / total if total > 0 else np.zeros(len(support))
        avg = {key: float(sum(r[key] * wt for r, wt in zip(rows, weights))) for key in ('precision', 'recall', 'f1')}

        lines.append("")
        lines.append(
            f"{'weighted avg':>12}  {avg['precision']:>9.2f}  {avg['recall']:>6.2f}  "
            f"{avg['f1']:>8.2f}  {total:>7d}"
        )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"LogisticRegression(penalty={self.penalty!r}, alpha={self.alpha}, "
            f"learning_rate={self.learning_rate})"
        )
