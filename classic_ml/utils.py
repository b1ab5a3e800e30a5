"""
공통 유틸리티
=============

입력 검증, 난수 생성기 관리, 활성화 함수 등 여러 알고리즘이 함께 쓰는
보조 함수 모음.
"""

import numpy as np
from typing import Any, Optional, Tuple, Union


RandomState = Union[None, int, np.random.Generator]


def check_random_state(random_state: RandomState) -> np.random.Generator:
    """
    random_state를 np.random.Generator로 변환

    - None: 시드 없는 새 Generator
    - int: 해당 시드의 Generator
    - Generator: 그대로 반환 (호출자와 상태 공유)
    """
    if random_state is None or isinstance(random_state, (int, np.integer)):
        return np.random.default_rng(random_state)
    if isinstance(random_state, np.random.Generator):
        return random_state
    raise ValueError(
        f"random_state는 None, int, np.random.Generator 중 하나여야 합니다: {random_state!r}"
    )


def spawn_seed(rng: np.random.Generator) -> int:
    """부모 Generator에서 자식 모델용 시드 추출"""
    return int(rng.integers(0, 2**31))


def check_array(X: Any, name: str = "X") -> np.ndarray:
    """2차원 실수 행렬로 변환하고 기본 조건 검증"""
    X = np.asarray(X, dtype=float)

    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if X.ndim != 2:
        raise ValueError(f"{name}는 2차원 배열이어야 합니다: ndim={X.ndim}")
    if X.shape[0] == 0:
        raise ValueError(f"{name}가 비어 있습니다.")
    if X.shape[1] == 0:
        raise ValueError(f"{name}에 피처가 없습니다.")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name}에 NaN 또는 무한대 값이 포함되어 있습니다.")

    return X


def check_X_y(
    X: Any,
    y: Any,
    y_numeric: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """
    학습 데이터 검증

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
    y : array-like of shape (n_samples,)
    y_numeric : bool
        True이면 y를 float로 변환 (회귀용)

    Raises
    ------
    ValueError
        X와 y의 샘플 수가 다르거나, 데이터가 비어 있거나, 유한하지 않은 값이 있는 경우
    """
    X = check_array(X)
    y = np.asarray(y).ravel()

    if X.shape[0] != len(y):
        raise ValueError(
            f"X와 y의 샘플 수가 일치하지 않습니다: {X.shape[0]} vs {len(y)}"
        )

    if y_numeric:
        y = y.astype(float)
        if not np.all(np.isfinite(y)):
            raise ValueError("y에 NaN 또는 무한대 값이 포함되어 있습니다.")

    return X, y


def check_predict_input(X: Any, n_features: int) -> np.ndarray:
    """예측 입력 검증 (1차원 입력은 단일 샘플로 취급)"""
    X = np.asarray(X, dtype=float)

    if X.ndim == 1:
        X = X.reshape(1, -1)

    if X.shape[1] != n_features:
        raise ValueError(
            f"피처 수가 학습 데이터와 다릅니다: {X.shape[1]} vs {n_features}"
        )

    return X


def check_is_fitted(estimator: Any, attribute: str) -> None:
    """학습 여부 확인"""
    if getattr(estimator, attribute, None) is None:
        raise RuntimeError("모델이 학습되지 않았습니다. fit()을 먼저 호출하세요.")


def resolve_max_features(max_features: Optional[Any], n_features: int) -> int:
    """
    각 분할에서 고려할 피처 수 결정

    - None / 'all': 모든 피처
    - int: 해당 수 (n_features로 제한)
    - float: 비율
    - 'sqrt': sqrt(n_features)
    - 'log2': log2(n_features)
    """
    if max_features is None or max_features == 'all':
        return n_features
    elif isinstance(max_features, (bool, np.bool_)):
        raise ValueError(f"지원하지 않는 max_features 값입니다: {max_features!r}")
    elif isinstance(max_features, (int, np.integer)):
        if max_features <= 0:
            raise ValueError(f"max_features는 양수여야 합니다: {max_features}")
        return min(int(max_features), n_features)
    elif isinstance(max_features, float):
        if not 0.0 < max_features <= 1.0:
            raise ValueError(f"max_features 비율은 (0, 1] 범위여야 합니다: {max_features}")
        return max(1, int(max_features * n_features))
    elif max_features == 'sqrt':
        return max(1, int(np.sqrt(n_features)))
    elif max_features == 'log2':
        return max(1, int(np.log2(n_features)))

    raise ValueError(f"지원하지 않는 max_features 값입니다: {max_features!r}")


def sigmoid(z: np.ndarray) -> np.ndarray:
    """수치적으로 안정한 시그모이드"""
    z = np.asarray(z, dtype=float)
    out = np.empty_like(z)
    positive = z >= 0
    out[positive] = 1.0 / (1.0 + np.exp(-z[positive]))
    exp_z = np.exp(z[~positive])
    out[~positive] = exp_z / (1.0 + exp_z)
    return out


def softmax(z: np.ndarray) -> np.ndarray:
    """행 단위 softmax (최대값을 빼서 overflow 방지)"""
    z = np.asarray(z, dtype=float)
    if z.ndim == 1:
        z = z - np.max(z)
        e = np.exp(z)
        return e / np.sum(e)

    z = z - np.max(z, axis=1, keepdims=True)
    e = np.exp(z)
    return e / np.sum(e, axis=1, keepdims=True)


def one_hot(y_encoded: np.ndarray, n_classes: int) -> np.ndarray:
    """정수 인코딩된 레이블을 원-핫 행렬로 변환"""
    Y = np.zeros((len(y_encoded), n_classes))
    Y[np.arange(len(y_encoded)), y_encoded] = 1.0
    return Y
