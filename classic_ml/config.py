"""
라이브러리 전역 설정
====================

모든 알고리즘이 공유하는 수치 상수와 자동 선택 기준.
각 모델은 fit() 시점에 이 값을 읽으므로, 실험 도중에 값을 바꾸면
이후에 학습되는 모델부터 반영됩니다.

>>> from classic_ml.config import CONFIG
>>> CONFIG['kd_tree_max_features'] = 10
"""

CONFIG = {
    # KNN 'auto' 알고리즘 선택 기준
    'kd_tree_max_features': 20,   # 피처 수가 이 값 이하일 때만 KD-Tree 사용
    'kd_tree_min_samples': 30,    # 샘플 수가 이 값보다 많을 때만 KD-Tree 사용

    # SVM
    'sv_epsilon': 1e-5,           # 서포트 벡터로 유지할 최소 승수
    'smo_min_step': 1e-5,         # 이보다 작은 alpha_j 변화는 무시

    # 선형 모델
    'pivot_epsilon': 1e-10,       # 가우스 소거에서 0으로 간주할 피벗 크기

    # 확률/로그 계산 안정화
    'prob_clip': 1e-7,
    'log_odds_clip': 1e-10,
    'cosine_epsilon': 1e-10,
}
