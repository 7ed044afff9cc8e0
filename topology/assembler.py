"""
topology/assembler.py - 관계 병합/중복 제거/범위 필터

후보 관계를 입력 순서대로 이어 붙인 뒤 (source, target, type) 키로 중복을 제거합니다.
같은 키가 여러 번 나오면 처음 나온 관계(메타데이터 포함)가 남습니다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .types import Relationship

logger = logging.getLogger(__name__)


def assemble(
    candidates: Iterable[Relationship],
    focus_ids: Iterable[str] | None = None,
    known_ids: Iterable[str] | None = None,
) -> list[Relationship]:
    """후보 관계를 최종 관계 목록으로 정리

    Args:
        candidates: 추출기 출력 (리소스 입력 순서 → 추출기 출력 순서)
        focus_ids: 지정 시 양 끝점 중 하나 이상이 이 집합에 속한 관계만 반환
        known_ids: 지정 시 양 끝점이 모두 이 집합에 속한 관계만 반환

    Returns:
        자기 참조가 없고 (source, target, type)이 유일한 관계 목록
    """
    focus = set(focus_ids) if focus_ids is not None else None
    known = set(known_ids) if known_ids is not None else None

    seen: set[tuple[str, str, str]] = set()
    result: list[Relationship] = []
    dropped = 0

    for relationship in candidates:
        if relationship.source_id == relationship.target_id:
            dropped += 1
            continue
        if known is not None and (relationship.source_id not in known or relationship.target_id not in known):
            dropped += 1
            continue
        if relationship.key in seen:
            continue
        seen.add(relationship.key)

        if focus is not None and relationship.source_id not in focus and relationship.target_id not in focus:
            continue
        result.append(relationship)

    if dropped:
        logger.debug(f"자기 참조/알 수 없는 끝점 관계 {dropped}건 제외")
    return result
