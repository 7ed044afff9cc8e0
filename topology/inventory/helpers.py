"""
topology/inventory/helpers.py - 인벤토리 수집 공통 유틸리티

태그 파싱, 애플리케이션 이름, 상태 정규화, 시각 변환.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from core.config import settings

from ..types import ResourceStatus, ResourceType

# 서비스별 원본 상태 → 정규화 상태 (없는 값은 STOPPED)
STATUS_MAPS: dict[ResourceType, dict[str, ResourceStatus]] = {
    ResourceType.LAMBDA: {
        "Active": ResourceStatus.RUNNING,
        "Pending": ResourceStatus.PENDING,
        "Inactive": ResourceStatus.STOPPED,
        "Failed": ResourceStatus.STOPPED,
    },
    ResourceType.AURORA: {
        "available": ResourceStatus.RUNNING,
        "backing-up": ResourceStatus.RUNNING,
        "creating": ResourceStatus.PENDING,
        "modifying": ResourceStatus.PENDING,
        "rebooting": ResourceStatus.PENDING,
        "starting": ResourceStatus.PENDING,
        "upgrading": ResourceStatus.PENDING,
        "renaming": ResourceStatus.PENDING,
        "stopping": ResourceStatus.STOPPED,
        "stopped": ResourceStatus.STOPPED,
        "failed": ResourceStatus.STOPPED,
        "deleting": ResourceStatus.TERMINATED,
    },
    ResourceType.EC2: {
        "running": ResourceStatus.RUNNING,
        "pending": ResourceStatus.PENDING,
        "stopping": ResourceStatus.STOPPED,
        "stopped": ResourceStatus.STOPPED,
        "shutting-down": ResourceStatus.TERMINATED,
        "terminated": ResourceStatus.TERMINATED,
    },
    ResourceType.STEPFUNCTIONS: {
        "ACTIVE": ResourceStatus.RUNNING,
        "DELETING": ResourceStatus.TERMINATED,
    },
    ResourceType.EVENTBRIDGE: {
        "ENABLED": ResourceStatus.RUNNING,
        "ENABLED_WITH_ALL_CLOUDTRAIL_MANAGEMENT_EVENTS": ResourceStatus.RUNNING,
        "DISABLED": ResourceStatus.STOPPED,
    },
    ResourceType.ALB: {
        "active": ResourceStatus.RUNNING,
        "provisioning": ResourceStatus.PENDING,
        "active_impaired": ResourceStatus.PENDING,
        "failed": ResourceStatus.STOPPED,
    },
}
STATUS_MAPS[ResourceType.AURORA_INSTANCE] = STATUS_MAPS[ResourceType.AURORA]
STATUS_MAPS[ResourceType.NLB] = STATUS_MAPS[ResourceType.ALB]


def map_status(resource_type: ResourceType, raw: str | None) -> ResourceStatus:
    """서비스 원본 상태를 정규화"""
    return STATUS_MAPS.get(resource_type, {}).get(raw or "", ResourceStatus.STOPPED)


def parse_tags(tags: list[dict[str, Any]] | None) -> dict[str, str]:
    """[{Key, Value}] 또는 [{key, value}] 형식 태그를 dict로 변환"""
    if not tags:
        return {}
    result: dict[str, str] = {}
    for tag in tags:
        key = tag.get("Key", tag.get("key"))
        if key is None:
            continue
        result[key] = tag.get("Value", tag.get("value", ""))
    return result


def application_of(tags: dict[str, str]) -> str:
    return tags.get(settings.APPLICATION_TAG_KEY) or settings.UNKNOWN_APPLICATION


def iso(value: Any) -> str | None:
    """datetime → ISO 8601 문자열 (문자열은 그대로)"""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def event_level(message: str) -> str:
    """ECS 이벤트 메시지에서 레벨 추정"""
    lowered = message.lower()
    if "error" in lowered:
        return "ERROR"
    if "warn" in lowered:
        return "WARN"
    return "INFO"
