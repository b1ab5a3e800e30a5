"""
Classic ML - 고전 머신러닝 알고리즘 직접 구현
=============================================

결정 트리, 앙상블, 최근접 이웃, 커널 SVM, 군집화, 선형 모델을
NumPy만 사용하여 직접 구현합니다.

구현된 알고리즘:
- DecisionTreeClassifier / DecisionTreeRegressor: CART 기반 결정 트리
- RandomForestClassifier / RandomForestRegressor: 배깅 + OOB 추정
- GradientBoostingClassifier / GradientBoostingRegressor: 잔차 학습 부스팅
- KNeighborsClassifier / KNeighborsRegressor: KD-Tree 가속 k-최근접 이웃
- SVC / SVR / OneVsRestSVC: 커널 SVM (단순화된 SMO)
- KMeans / MiniBatchKMeans / DBSCAN: 군집화
- LinearRegression / Ridge / Lasso / ElasticNet / LogisticRegression: 선형 모델

Author: ML From Scratch Project
"""

from .config import CONFIG
from .decision_tree import DecisionTreeClassifier, DecisionTreeRegressor, TreeNode
from .random_forest import RandomForestClassifier, RandomForestRegressor
from .gradient_boosting import GradientBoostingClassifier, GradientBoostingRegressor
from .distance import (
    CosineDistance,
    EuclideanDistance,
    ManhattanDistance,
    MinkowskiDistance,
    get_metric,
)
from .kd_tree import KDTree, KDNode
from .neighbors import KNeighborsClassifier, KNeighborsRegressor
from .kernels import LinearKernel, PolynomialKernel, RBFKernel, SigmoidKernel, get_kernel
from .svm import SVC, SVR, OneVsRestSVC
from .cluster import DBSCAN, KMeans, MiniBatchKMeans
from .linear_model import (
    ElasticNet,
    Lasso,
    LinearRegression,
    LogisticRegression,
    Ridge,
    solve_linear_system,
)

__all__ = [
    'CONFIG',
    'DecisionTreeClassifier',
    'DecisionTreeRegressor',
    'TreeNode',
    'RandomForestClassifier',
    'RandomForestRegressor',
    'GradientBoostingClassifier',
    'GradientBoostingRegressor',
    'EuclideanDistance',
    'ManhattanDistance',
    'MinkowskiDistance',
    'CosineDistance',
    'get_metric',
    'KDTree',
    'KDNode',
    'KNeighborsClassifier',
    'KNeighborsRegressor',
    'LinearKernel',
    'RBFKernel',
    'PolynomialKernel',
    'SigmoidKernel',
    'get_kernel',
    'SVC',
    'SVR',
    'OneVsRestSVC',
    'KMeans',
    'MiniBatchKMeans',
    'DBSCAN',
    'LinearRegression',
    'Ridge',
    'Lasso',
    'ElasticNet',
    'LogisticRegression',
    'solve_linear_system',
]

__version__ = '1.0.0'
