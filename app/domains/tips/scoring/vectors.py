"""벡터 연산 유틸리티 (numpy)

모든 유사도는 코사인 유사도만 사용합니다.
한 계산 안의 벡터는 모두 같은 차원이어야 합니다.
"""

from typing import Optional, Sequence

import numpy as np

from app.domains.tips.exceptions import EmbeddingDimensionMismatchException


def ensure_same_dimension(
    reference: Sequence[float], *others: Optional[Sequence[float]]
) -> None:
    expected = len(reference)
    for other in others:
        if other is not None and len(other) != expected:
            raise EmbeddingDimensionMismatchException(
                expected=expected, actual=len(other)
            )


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """코사인 유사도 계산

    Args:
        vec1: 벡터 1
        vec2: 벡터 2

    Returns:
        코사인 유사도 (-1.0~1.0). 영벡터가 포함되면 0.0

    Raises:
        EmbeddingDimensionMismatchException: 차원이 다른 경우
    """
    ensure_same_dimension(vec1, vec2)

    vec1_arr = np.asarray(vec1, dtype=float)
    vec2_arr = np.asarray(vec2, dtype=float)

    norm1 = np.linalg.norm(vec1_arr)
    norm2 = np.linalg.norm(vec2_arr)
    if norm1 == 0 or norm2 == 0:
        return 0.0

    return float(np.dot(vec1_arr, vec2_arr) / (norm1 * norm2))


def mean_vector(vectors: Sequence[Sequence[float]]) -> Optional[list[float]]:
    """벡터 평균 (빈 목록이면 None)"""
    if not vectors:
        return None
    ensure_same_dimension(vectors[0], *vectors[1:])
    return [float(x) for x in np.mean(np.asarray(vectors, dtype=float), axis=0)]


def normalize_vector(vector: Sequence[float]) -> list[float]:
    """단위 벡터로 정규화 (영벡터는 그대로 반환)"""
    arr = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(arr)
    if norm == 0:
        return [float(x) for x in arr]
    return [float(x) for x in arr / norm]
