"""
Classic ML - 시각화 도구 테스트
===============================

각 plot 함수가 학습된 모델로부터 Figure를 만드는지 확인합니다.

Author: ML From Scratch Project
"""

import numpy as np
import pytest

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from classic_ml import (  # noqa: E402
    DBSCAN,
    DecisionTreeClassifier,
    GradientBoostingRegressor,
    KMeans,
    KNeighborsClassifier,
    LogisticRegression,
    RandomForestClassifier,
)
from classic_ml.visualizer import MLVisualizer  # noqa: E402


def _blobs(seed=0):
    rng = np.random.default_rng(seed)
    X = np.vstack([rng.normal(0, 1, (30, 2)), rng.normal(5, 1, (30, 2))])
    y = np.array([0] * 30 + [1] * 30)
    return X, y


def test_plot_decision_tree():
    X, y = _blobs()
    tree = DecisionTreeClassifier(max_depth=3).fit(X, y)
    viz = MLVisualizer()

    fig = viz.plot_decision_tree(tree, feature_names=['x0', 'x1'])
    assert isinstance(fig, plt.Figure)
    plt.close(fig)

    with pytest.raises(RuntimeError):
        viz.plot_decision_tree(DecisionTreeClassifier())


def test_plot_learning_curves():
    X, y = _blobs(1)
    viz = MLVisualizer()

    gb = GradientBoostingRegressor(n_estimators=10, random_state=0)
    gb.fit(X[:40], X[:40, 0], X_val=X[40:], y_val=X[40:, 0])
    logistic = LogisticRegression(max_iter=50).fit(X, y)
    km = KMeans(n_clusters=2, n_init=3, random_state=0).fit(X)

    for model in (gb, logistic, km):
        fig = viz.plot_learning_curve(model)
        assert isinstance(fig, plt.Figure)
        plt.close(fig)

    with pytest.raises(ValueError):
        viz.plot_learning_curve(DecisionTreeClassifier())


def test_plot_feature_importance_and_clusters(tmp_path):
    X, y = _blobs(2)
    viz = MLVisualizer()

    models = {
        'Tree': DecisionTreeClassifier(max_depth=3).fit(X, y),
        'Forest': RandomForestClassifier(n_estimators=5, random_state=0).fit(X, y),
    }
    fig = viz.plot_feature_importance(models, feature_names=['x0', 'x1'])
    assert isinstance(fig, plt.Figure)
    plt.close(fig)

    km = KMeans(n_clusters=2, n_init=2, random_state=0).fit(X)
    fig = viz.plot_clusters(X, km.labels_, centers=km.cluster_centers_)
    assert isinstance(fig, plt.Figure)

    path = tmp_path / "clusters.png"
    viz.save_figure(fig, str(path))
    assert path.exists()
    plt.close(fig)

    db = DBSCAN(eps=1.5, min_samples=3).fit(np.vstack([X, [[30.0, 30.0]]]))
    fig = viz.plot_clusters(np.vstack([X, [[30.0, 30.0]]]), db.labels_)
    plt.close(fig)

    with pytest.raises(ValueError):
        viz.plot_clusters(np.zeros((5, 3)), np.zeros(5))


def test_plot_decision_boundary():
    X, y = _blobs(3)
    knn = KNeighborsClassifier(n_neighbors=3).fit(X, y)

    fig = MLVisualizer().plot_decision_boundary(knn, X, y, resolution=30)
    assert isinstance(fig, plt.Figure)
    plt.close(fig)
