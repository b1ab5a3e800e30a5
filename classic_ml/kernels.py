"""
커널 함수
=========

SVM의 쌍대 문제에서 내적 <x, x'>를 대체하는 양의 (준)정부호 함수.

    Linear:     K(a, b) = a·b
    RBF:        K(a, b) = exp(-γ |a - b|²)
    Polynomial: K(a, b) = (γ a·b + c0)^d
    Sigmoid:    K(a, b) = tanh(γ a·b + c0)

gamma='scale'이면 학습 데이터로부터 γ = 1 / (n_features * Var(X))로 결정합니다.
"""

import numpy as np
from typing import Optional, Union


class Kernel:
    """커널 기본 클래스: __call__(a, b)와 그램 행렬 matrix(A, B)"""

    name = 'base'

    def __call__(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(self.matrix(np.atleast_2d(a), np.atleast_2d(b))[0, 0])

    def matrix(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class LinearKernel(Kernel):
    name = 'linear'

    def matrix(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        return np.asarray(A, dtype=float) @ np.asarray(B, dtype=float).T

    def __repr__(self) -> str:
        return "LinearKernel()"


class RBFKernel(Kernel):
    name = 'rbf'

    def __init__(self, gamma: float = 0.1):
        self.gamma = gamma

    def matrix(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        A = np.asarray(A, dtype=float)
        B = np.asarray(B, dtype=float)
        sq = (
            np.sum(A ** 2, axis=1)[:, None]
            + np.sum(B ** 2, axis=1)[None, :]
            - 2 * A @ B.T
        )
        return np.exp(-self.gamma * np.maximum(sq, 0.0))

    def __repr__(self) -> str:
        return f"RBFKernel(gamma={self.gamma})"


class PolynomialKernel(Kernel):
    name = 'poly'

    def __init__(self, degree: int = 3, gamma: float = 0.1, coef0: float = 0.0):
        self.degree = degree
        self.gamma = gamma
        self.coef0 = coef0

    def matrix(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        dot = np.asarray(A, dtype=float) @ np.asarray(B, dtype=float).T
        return (self.gamma * dot + self.coef0) ** self.degree

    def __repr__(self) -> str:
        return f"PolynomialKernel(degree={self.degree}, gamma={self.gamma}, coef0={self.coef0})"


class SigmoidKernel(Kernel):
    name = 'sigmoid'

    def __init__(self, gamma: float = 0.1, coef0: float = 0.0):
        self.gamma = gamma
        self.coef0 = coef0

    def matrix(self, A: np.ndarray, B: np.ndarray) -> np.ndarray:
        dot = np.asarray(A, dtype=float) @ np.asarray(B, dtype=float).T
        return np.tanh(self.gamma * dot + self.coef0)

    def __repr__(self) -> str:
        return f"SigmoidKernel(gamma={self.gamma}, coef0={self.coef0})"


def resolve_gamma(gamma: Union[str, float], X: Optional[np.ndarray] = None) -> float:
    """gamma='scale'을 1 / (n_features * X.var())로 변환"""
    if gamma == 'scale':
        if X is None:
            raise ValueError("gamma='scale'에는 학습 데이터가 필요합니다.")
        var = float(np.var(X))
        return 1.0 / (X.shape[1] * var) if var > 0 else 1.0
    if not isinstance(gamma, (int, float, np.floating)) or isinstance(gamma, bool):
        raise ValueError(f"지원하지 않는 gamma 값입니다: {gamma!r}")
    if gamma <= 0:
        raise ValueError(f"gamma는 양수여야 합니다: {gamma}")
    return float(gamma)


def get_kernel(
    kernel: Union[str, Kernel],
    gamma: Union[str, float] = 0.1,
    degree: int = 3,
    coef0: float = 0.0,
    X: Optional[np.ndarray] = None
) -> Kernel:
    """
    이름 또는 인스턴스로부터 커널 결정

    Parameters
    ----------
    kernel : {'linear', 'rbf', 'poly', 'polynomial', 'sigmoid'} or Kernel
    gamma : float or 'scale'
    X : ndarray, optional
        gamma='scale'일 때 사용할 학습 데이터
    """
    if isinstance(kernel, Kernel):
        return kernel

    if kernel == 'linear':
        return LinearKernel()
    elif kernel == 'rbf':
        return RBFKernel(resolve_gamma(gamma, X))
    elif kernel in ('poly', 'polynomial'):
        return PolynomialKernel(degree, resolve_gamma(gamma, X), coef0)
    elif kernel == 'sigmoid':
        return SigmoidKernel(resolve_gamma(gamma, X), coef0)

    raise ValueError(f"지원하지 않는 커널입니다: {kernel!r}")
