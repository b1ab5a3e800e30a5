"""
ML Visualizer - 머신러닝 알고리즘 시각화 도구
=============================================

각 알고리즘의 학습 과정과 내부 동작을 시각화합니다.

주요 기능:
- 결정 트리 구조 시각화
- 학습 곡선 (부스팅 손실, 경사 하강 손실, K-Means inertia)
- 피처 중요도 비교
- 군집 산점도 (중심 / 노이즈 표시)
- 2차원 분류 결정 경계

Author: ML From Scratch Project
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, List, Dict, Tuple, Any


class MLVisualizer:
    """
    머신러닝 알고리즘 시각화 클래스

    Parameters
    ----------
    figsize : tuple, default=(12, 8)
        기본 Figure 크기

    style : str, optional
        Matplotlib 스타일

    dpi : int, default=100
        Figure DPI
    """

    def __init__(
        self,
        figsize: Tuple[int, int] = (12, 8),
        style: Optional[str] = None,
        dpi: int = 100
    ):
        self.figsize = figsize
        self.style = style
        self.dpi = dpi

        if self.style:
            plt.style.use(self.style)

        # 색상 팔레트
        self.colors = {
            'primary': '#2E86AB',
            'secondary': '#A23B72',
            'accent': '#F18F01',
            'neutral': '#3B3B3B',
            'train': '#2E86AB',
            'val': '#F18F01',
            'noise': '#9E9E9E'
        }

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, (float, np.floating)):
            return f"{value:.2f}"
        return str(value)

    def plot_decision_tree(
        self,
        tree,
        feature_names: Optional[List[str]] = None,
        max_depth: int = 4,
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Decision Tree Structure"
    ) -> plt.Figure:
        """
        결정 트리 구조 시각화

        Parameters
        ----------
        tree : DecisionTreeClassifier or DecisionTreeRegressor
            학습된 트리
        feature_names : list, optional
            피처 이름 리스트
        max_depth : int
            표시할 최대 깊이

        Returns
        -------
        fig : matplotlib.Figure
        """
        if getattr(tree, 'root_', None) is None:
            raise RuntimeError("모델이 학습되지 않았습니다. fit()을 먼저 호출하세요.")

        fig, ax = plt.subplots(figsize=figsize or (14, 10), dpi=self.dpi)

        tree_dict = tree.export_tree_structure()
        positions = self._calculate_tree_positions(tree_dict, max_depth)
        self._draw_tree_nodes(ax, tree_dict, positions, feature_names, max_depth)

        ax.set_xlim(-0.1, 1.1)
        ax.set_ylim(-0.1, 1.1)
        ax.axis('off')
        ax.set_title(title, fontsize=14, fontweight='bold', pad=20)

        fig.tight_layout()
        return fig

    def _calculate_tree_positions(
        self,
        node: Dict,
        max_depth: int,
        x: float = 0.5,
        y: float = 0.95,
        x_offset: float = 0.25,
        depth: int = 0,
        positions: Optional[Dict] = None
    ) -> Dict:
        """트리 노드 위치 계산"""
        if positions is None:
            positions = {}

        positions[id(node)] = (x, y)

        if depth >= max_depth or node['is_leaf']:
            return positions

        y_child = y - 0.15
        self._calculate_tree_positions(
            node['left'], max_depth, x - x_offset, y_child, x_offset / 2, depth + 1, positions
        )
        self._calculate_tree_positions(
            node['right'], max_depth, x + x_offset, y_child, x_offset / 2, depth + 1, positions
        )

        return positions

    def _draw_tree_nodes(
        self,
        ax: plt.Axes,
        node: Dict,
        positions: Dict,
        feature_names: Optional[List[str]],
        max_depth: int,
        depth: int = 0
    ):
        """트리 노드와 엣지 그리기"""
        if id(node) not in positions:
            return

        x, y = positions[id(node)]

        if node['is_leaf']:
            color = plt.cm.Greens(0.6)
            text = f"값: {self._format_value(node['value'])}\n샘플: {node['n_samples']}"
        else:
            color = plt.cm.Blues(0.3 + 0.5 * (1 - depth / max(max_depth, 1)))
            feat_idx = node['feature_idx']
            feat_name = feature_names[feat_idx] if feature_names else f"X{feat_idx}"
            text = f"{feat_name}\n≤ {node['threshold']:.2f}\n샘플: {node['n_samples']}"

        bbox = dict(boxstyle='round,pad=0.3', facecolor=color, edgecolor='gray', alpha=0.9)
        ax.text(x, y, text, ha='center', va='center', fontsize=8, bbox=bbox)

        if node['is_leaf']:
            return

        for child_key, label, label_color, dx in (('left', 'T', 'green', -0.02),
                                                   ('right', 'F', 'red', 0.02)):
            child = node[child_key]
            if id(child) not in positions:
                continue
            x_child, y_child = positions[id(child)]
            ax.plot([x, x_child], [y - 0.03, y_child + 0.03], 'k-', linewidth=1, alpha=0.7)
            ax.text((x + x_child) / 2 + dx, (y + y_child) / 2, label,
                    fontsize=7, color=label_color)
            self._draw_tree_nodes(ax, child, positions, feature_names, max_depth, depth + 1)

    def plot_learning_curve(
        self,
        model,
        title: str = "Learning Curve",
        figsize: Optional[Tuple[int, int]] = None,
        show_validation: bool = True
    ) -> plt.Figure:
        """
        반복별 학습 손실 곡선

        지원하는 모델 속성 (먼저 발견된 것 사용):
        - train_scores_ (Gradient Boosting: MSE 또는 log-loss)
        - loss_history_ (선형/로지스틱 회귀, SVR)
        - inertia_history_ (K-Means: 실행별 inertia)

        Returns
        -------
        fig : matplotlib.Figure
        """
        for attr, ylabel in (('train_scores_', 'Train Loss'),
                             ('loss_history_', 'Loss'),
                             ('inertia_history_', 'Inertia')):
            curve = getattr(model, attr, None)
            if curve:
                break
        else:
            raise ValueError("학습 이력이 없습니다.")

        fig, ax = plt.subplots(figsize=figsize or (10, 5), dpi=self.dpi)

        if attr == 'inertia_history_':
            runs = np.arange(1, len(curve) + 1)
            ax.bar(runs, curve, color=self.colors['primary'], alpha=0.7, label='Inertia per run')
            ax.axhline(y=model.inertia_, color=self.colors['accent'], linestyle='--',
                       label=f'Best: {model.inertia_:.2f}')
            ax.set_xlabel('Run', fontsize=11)
        else:
            ax.plot(np.arange(len(curve)), curve, label=ylabel,
                    color=self.colors['train'], linewidth=2)

            val_scores = getattr(model, 'val_scores_', None)
            if show_validation and val_scores:
                ax.plot(np.arange(1, len(val_scores) + 1), val_scores, label='Val Loss',
                        color=self.colors['val'], linewidth=2, linestyle='--')
            ax.set_xlabel('Iteration', fontsize=11)

        ax.set_ylabel(ylabel, fontsize=11)
        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.legend(loc='upper right')
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        return fig

    def plot_feature_importance(
        self,
        models: Dict[str, Any],
        feature_names: Optional[List[str]] = None,
        top_k: int = 15,
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Feature Importance Comparison"
    ) -> plt.Figure:
        """
        여러 모델의 피처 중요도 비교

        Parameters
        ----------
        models : dict
            {모델명: 모델객체} 딕셔너리 (feature_importances_ 필요)
        feature_names : list, optional
            피처 이름 리스트
        top_k : int
            표시할 상위 피처 수

        Returns
        -------
        fig : matplotlib.Figure
        """
        n_models = len(models)
        if n_models == 0:
            raise ValueError("비교할 모델이 없습니다.")

        fig, axes = plt.subplots(1, n_models, figsize=figsize or (5 * n_models, 8),
                                 dpi=self.dpi, squeeze=False)
        colors = plt.cm.Set2(np.linspace(0, 1, n_models))

        for idx, (name, model) in enumerate(models.items()):
            ax = axes[0, idx]
            importances = getattr(model, 'feature_importances_', None)

            if importances is None:
                ax.text(0.5, 0.5, 'Not fitted', ha='center', va='center')
                continue

            names = feature_names or [f'Feature {i}' for i in range(len(importances))]
            indices = np.argsort(importances)[::-1][:top_k]

            ax.barh(range(len(indices)), importances[indices], color=colors[idx], alpha=0.8)
            ax.set_yticks(range(len(indices)))
            ax.set_yticklabels([names[i] for i in indices])
            ax.invert_yaxis()
            ax.set_xlabel('Importance', fontsize=10)
            ax.set_title(name, fontsize=11, fontweight='bold')
            ax.grid(True, alpha=0.3, axis='x')

        fig.suptitle(title, fontsize=14, fontweight='bold', y=1.02)
        fig.tight_layout()
        return fig

    def plot_clusters(
        self,
        X: np.ndarray,
        labels: np.ndarray,
        centers: Optional[np.ndarray] = None,
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Clusters"
    ) -> plt.Figure:
        """
        2차원 군집 산점도

        레이블 -1(DBSCAN 노이즈)은 회색 x로 표시하고,
        centers가 주어지면 별표로 중심을 그립니다.
        """
        X = np.asarray(X, dtype=float)
        labels = np.asarray(labels)
        if X.ndim != 2 or X.shape[1] != 2:
            raise ValueError(f"2차원 데이터만 그릴 수 있습니다: shape={X.shape}")

        fig, ax = plt.subplots(figsize=figsize or (8, 6), dpi=self.dpi)

        cluster_ids = [k for k in np.unique(labels) if k != -1]
        palette = plt.cm.tab10(np.linspace(0, 1, max(len(cluster_ids), 1)))

        for color, k in zip(palette, cluster_ids):
            members = X[labels == k]
            ax.scatter(members[:, 0], members[:, 1], s=25, color=color, alpha=0.8,
                       label=f'Cluster {k}')

        noise = labels == -1
        if np.any(noise):
            ax.scatter(X[noise, 0], X[noise, 1], s=25, marker='x',
                       color=self.colors['noise'], label='Noise')

        if centers is not None:
            centers = np.asarray(centers)
            ax.scatter(centers[:, 0], centers[:, 1], s=250, marker='*',
                       color=self.colors['accent'], edgecolor='black', label='Centers')

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.legend(loc='best', fontsize=9)
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        return fig

    def plot_decision_boundary(
        self,
        model,
        X: np.ndarray,
        y: np.ndarray,
        resolution: int = 200,
        figsize: Optional[Tuple[int, int]] = None,
        title: str = "Decision Boundary"
    ) -> plt.Figure:
        """
        2차원 분류 모델의 결정 경계

        격자점 전체를 model.predict로 분류해 영역을 칠하고
        학습 데이터를 그 위에 표시합니다.
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y).ravel()
        if X.ndim != 2 or X.shape[1] != 2:
            raise ValueError(f"2차원 데이터만 그릴 수 있습니다: shape={X.shape}")

        margin_x = 0.1 * (np.ptp(X[:, 0]) or 1.0)
        margin_y = 0.1 * (np.ptp(X[:, 1]) or 1.0)
        xx, yy = np.meshgrid(
            np.linspace(X[:, 0].min() - margin_x, X[:, 0].max() + margin_x, resolution),
            np.linspace(X[:, 1].min() - margin_y, X[:, 1].max() + margin_y, resolution)
        )
        grid = np.column_stack([xx.ravel(), yy.ravel()])

        classes = np.unique(y)
        predicted = model.predict(grid)
        zz = np.searchsorted(classes, predicted).reshape(xx.shape)

        fig, ax = plt.subplots(figsize=figsize or (8, 6), dpi=self.dpi)
        ax.contourf(xx, yy, zz, alpha=0.25, cmap=plt.cm.coolwarm,
                    levels=np.arange(len(classes) + 1) - 0.5)

        y_idx = np.searchsorted(classes, y)
        scatter = ax.scatter(X[:, 0], X[:, 1], c=y_idx, cmap=plt.cm.coolwarm,
                             edgecolor='black', s=30, vmin=0, vmax=max(len(classes) - 1, 1))
        handles, _ = scatter.legend_elements()
        ax.legend(handles, [str(c) for c in classes], title='Class', loc='best')

        ax.set_title(title, fontsize=14, fontweight='bold')
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        return fig

    def save_figure(
        self,
        fig: plt.Figure,
        filepath: str,
        dpi: Optional[int] = None
    ):
        """Figure 저장"""
        fig.savefig(filepath, dpi=dpi or self.dpi, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
        print(f"Figure saved: {filepath}")
