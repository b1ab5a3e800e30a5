"""
평가 지표 - From Scratch Implementation
=======================================

분류, 회귀, 군집 모델의 성능 지표.

분류:
    accuracy = (정답 수) / n
    precision = TP / (TP + FP), recall = TP / (TP + FN)
    F1 = 2 * precision * recall / (precision + recall)

회귀:
    MSE = (1/n) * Σ(y_i - ŷ_i)²
    R² = 1 - SS_res / SS_tot

군집:
    silhouette s(i) = (b(i) - a(i)) / max(a(i), b(i))
        a(i): 같은 군집 내 평균 거리
        b(i): 가장 가까운 다른 군집까지의 평균 거리

Author: ML From Scratch Project
"""

import numpy as np
from typing import Dict, Optional, Sequence


def accuracy_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """정확도"""
    y_true = np.asarray(y_true).ravel()
    y_pred = np.asarray(y_pred).ravel()
    if len(y_true) == 0:
        return 0.0
    return float(np.mean(y_true == y_pred))


def mean_squared_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    return float(np.mean((y_true - y_pred) ** 2))


def root_mean_squared_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def mean_absolute_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    return float(np.mean(np.abs(y_true - y_pred)))


def r2_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    결정계수 R²

    R² = 1 - SS_res / SS_tot
    타겟이 상수(SS_tot = 0)이면 0.0 반환
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()

    ss_res = np.sum((y_true - y_pred) ** 2)
    ss_tot = np.sum((y_true - np.mean(y_true)) ** 2)

    return float(1 - ss_res / ss_tot) if ss_tot > 0 else 0.0


def confusion_matrix(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    labels: Optional[Sequence] = None
) -> np.ndarray:
    """
    혼동 행렬

    matrix[i, j] = 실제 클래스가 labels[i]이고 예측이 labels[j]인 샘플 수
    """
    y_true = np.asarray(y_true).ravel()
    y_pred = np.asarray(y_pred).ravel()

    if labels is None:
        labels = np.unique(np.concatenate([y_true, y_pred]))
    labels = list(labels)
    index = {label: i for i, label in enumerate(labels)}

    matrix = np.zeros((len(labels), len(labels)), dtype=int)
    for t, p in zip(y_true, y_pred):
        if t in index and p in index:
            matrix[index[t], index[p]] += 1

    return matrix


def precision_recall_f1(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    average: str = 'macro'
) -> Dict[str, float]:
    """
    정밀도, 재현율, F1 점수

    Parameters
    ----------
    average : {'macro', 'micro', 'weighted'}
        - macro: 클래스별 지표의 단순 평균
        - micro: 전체 TP/FP/FN 합산 후 계산
        - weighted: 클래스별 support로 가중 평균
    """
    labels = np.unique(np.concatenate([np.asarray(y_true).ravel(),
                                       np.asarray(y_pred).ravel()]))
    cm = confusion_matrix(y_true, y_pred, labels)

    tp = np.diag(cm).astype(float)
    fp = cm.sum(axis=0) - tp
    fn = cm.sum(axis=1) - tp
    support = cm.sum(axis=1)

    if average == 'micro':
        tp_sum, fp_sum, fn_sum = tp.sum(), fp.sum(), fn.sum()
        precision = tp_sum / (tp_sum + fp_sum) if tp_sum + fp_sum > 0 else 0.0
        recall = tp_sum / (tp_sum + fn_sum) if tp_sum + fn_sum > 0 else 0.0
        f1 = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0.0
        return {'precision': float(precision), 'recall': float(recall), 'f1': float(f1)}

    with np.errstate(divide='ignore', invalid='ignore'):
        precision = np.where(tp + fp > 0, tp / (tp + fp), 0.0)
        recall = np.where(tp + fn > 0, tp / (tp + fn), 0.0)
        f1 = np.where(precision + recall > 0,
                      2 * precision * recall / (precision + recall), 0.0)

    if average == 'macro':
        weights = np.ones(len(labels)) / len(labels)
    elif average == 'weighted':
        weights = support / support.sum() if support.sum() > 0 else np.zeros(len(labels))
    else:
        raise ValueError(f"지원하지 않는 average 값입니다: {average!r}")

    return {
        'precision': float(np.sum(precision * weights)),
        'recall': float(np.sum(recall * weights)),
        'f1': float(np.sum(f1 * weights)),
    }


def log_loss(
    y_true: np.ndarray,
    y_proba: np.ndarray,
    classes: Optional[Sequence] = None,
    eps: float = 1e-15
) -> float:
    """
    교차 엔트로피 손실

    L = -(1/n) * Σ log p(y_i)
    y_proba의 열 순서는 classes (기본: 정렬된 고유 레이블)를 따름
    """
    y_true = np.asarray(y_true).ravel()
    y_proba = np.clip(np.asarray(y_proba, dtype=float), eps, 1 - eps)

    if classes is None:
        classes = np.unique(y_true)
    index = {c: i for i, c in enumerate(classes)}
    cols = np.array([index[label] for label in y_true])

    return float(-np.mean(np.log(y_proba[np.arange(len(y_true)), cols])))


def _pairwise_euclidean(X: np.ndarray) -> np.ndarray:
    sq = np.sum(X ** 2, axis=1)
    d2 = sq[:, None] + sq[None, :] - 2 * X @ X.T
    return np.sqrt(np.maximum(d2, 0.0))


def silhouette_score(X: np.ndarray, labels: np.ndarray) -> float:
    """
    실루엣 점수 (평균)

    노이즈 레이블(-1)은 제외. 유효 군집이 2개 미만이면 0.0.
    단독 군집에 속한 샘플의 s(i)는 0으로 둠.
    """
    X = np.asarray(X, dtype=float)
    labels = np.asarray(labels).ravel()

    mask = labels != -1
    X = X[mask]
    labels = labels[mask]

    unique_labels = np.unique(labels)
    if len(unique_labels) < 2 or len(labels) <= len(unique_labels):
        return 0.0

    distances = _pairwise_euclidean(X)
    scores = np.zeros(len(labels))

    for i in range(len(labels)):
        same = labels == labels[i]
        n_same = np.sum(same) - 1
        if n_same == 0:
            continue

        a = np.sum(distances[i, same]) / n_same

        b = np.inf
        for label in unique_labels:
            if label == labels[i]:
                continue
            b = min(b, np.mean(distances[i, labels == label]))

        scores[i] = (b - a) / max(a, b) if max(a, b) > 0 else 0.0

    return float(np.mean(scores))


def davies_bouldin_score(X: np.ndarray, labels: np.ndarray) -> float:
    """
    Davies-Bouldin 지수 (낮을수록 좋음)

    DB = (1/k) * Σ_i max_{j≠i} (s_i + s_j) / d(c_i, c_j)
    """
    X = np.asarray(X, dtype=float)
    labels = np.asarray(labels).ravel()
    unique_labels = np.unique(labels[labels != -1])

    if len(unique_labels) < 2:
        return 0.0

    centroids = np.array([X[labels == k].mean(axis=0) for k in unique_labels])
    scatter = np.array([
        np.mean(np.linalg.norm(X[labels == k] - centroids[i], axis=1))
        for i, k in enumerate(unique_labels)
    ])

    ratios = np.zeros(len(unique_labels))
    for i in range(len(unique_labels)):
        worst = 0.0
        for j in range(len(unique_labels)):
            if i == j:
                continue
            dist = np.linalg.norm(centroids[i] - centroids[j])
            if dist > 0:
                worst = max(worst, (scatter[i] + scatter[j]) / dist)
        ratios[i] = worst

    return float(np.mean(ratios))


def adjusted_rand_score(labels_true: np.ndarray, labels_pred: np.ndarray) -> float:
    """
    조정 랜드 지수 (Adjusted Rand Index)

    ARI = (RI - E[RI]) / (max(RI) - E[RI]), 레이블 번호 순열에 불변
    """
    labels_true = np.asarray(labels_true).ravel()
    labels_pred = np.asarray(labels_pred).ravel()
    n = len(labels_true)

    if n < 2:
        return 1.0

    contingency = _contingency(labels_true, labels_pred)

    def comb2(x):
        return x * (x - 1) / 2.0

    sum_comb = np.sum(comb2(contingency))
    sum_a = np.sum(comb2(contingency.sum(axis=1)))
    sum_b = np.sum(comb2(contingency.sum(axis=0)))
    expected = sum_a * sum_b / comb2(n)
    max_index = (sum_a + sum_b) / 2.0

    if max_index == expected:
        return 1.0

    return float((sum_comb - expected) / (max_index - expected))


def _contingency(labels_true: np.ndarray, labels_pred: np.ndarray) -> np.ndarray:
    true_classes, true_idx = np.unique(labels_true, return_inverse=True)
    pred_classes, pred_idx = np.unique(labels_pred, return_inverse=True)
    table = np.zeros((len(true_classes), len(pred_classes)), dtype=float)
    np.add.at(table, (true_idx, pred_idx), 1)
    return table
