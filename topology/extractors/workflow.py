"""
topology/extractors/workflow.py - Step Functions 상태 머신

상태 머신 정의(ASL) 파싱은 구현되어 있지 않아 항상 관계 0개를 반환합니다.
"""

from __future__ import annotations

from ..context import DiscoveryContext
from ..types import Relationship, Resource


def extract_state_machine(resource: Resource, ctx: DiscoveryContext) -> list[Relationship]:
    # TODO: describe_state_machine 정의의 Task state Resource ARN을 파싱해 triggers 관계 생성
    return []
