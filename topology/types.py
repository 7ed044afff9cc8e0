"""
topology/types.py - 리소스/관계 타입 정의

인벤토리에서 들어오는 리소스 기술자(Resource)와 탐색 결과인 방향성 관계(Relationship).
둘 다 불변이며 탐색 엔진은 입력 리소스를 절대 수정하지 않습니다.

방향 규칙:
- instance_of: 인스턴스 → 클러스터
- routes_to: 로드밸런서 → 백엔드
- triggers: 이벤트 소스 → 대상
- depends_on: 소비자 → 의존 대상
- connects_to: 보안 그룹 규칙 방향 (inbound: 참조 그룹 소유자 → 규칙 소유자)

JSON 표현은 camelCase 필드명(sourceId, targetId, securityGroups, clusterId, lastUpdated)을 사용합니다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.config import settings
from core.exceptions import ValidationError


class ResourceType(str, Enum):
    """리소스 종류 (10가지)"""

    ECS = "ecs"
    AURORA = "aurora"  # DB 클러스터
    AURORA_INSTANCE = "aurora-instance"  # DB 인스턴스
    LAMBDA = "lambda"
    EC2 = "ec2"
    STEPFUNCTIONS = "stepfunctions"
    APIGATEWAY = "apigateway"
    EVENTBRIDGE = "eventbridge"
    ALB = "alb"
    NLB = "nlb"


class ResourceStatus(str, Enum):
    """정규화된 리소스 상태"""

    RUNNING = "running"
    PENDING = "pending"
    STOPPED = "stopped"
    TERMINATED = "terminated"


class RelationshipType(str, Enum):
    """관계 종류"""

    ROUTES_TO = "routes_to"
    DEPENDS_ON = "depends_on"
    TRIGGERS = "triggers"
    CONNECTS_TO = "connects_to"
    PART_OF = "part_of"
    INSTANCE_OF = "instance_of"


def _parse_enum(enum_cls: type[Enum], field_name: str, value: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError as e:
        expected = " | ".join(m.value for m in enum_cls)  # type: ignore[attr-defined]
        raise ValidationError(field_name, value, expected, cause=e) from e


@dataclass(frozen=True)
class Resource:
    """리소스 기술자

    Attributes:
        id: 전역 고유 식별자 (보통 ARN, EC2는 인스턴스 ID)
        type: 리소스 종류
        name: 표시 이름
        status: 정규화된 상태
        application: 논리 그룹 (app 태그, 없으면 "Unknown")
        region: AWS 리전
        tags: 리소스 태그
        security_groups: 보안 그룹 ID 목록 (리소스가 직접 노출하는 경우)
        cluster_id: 소속 클러스터 참조 (DB 인스턴스)
        details: 타입별 상세 속성
        last_updated: 마지막 수집 시각 (ISO 8601)
    """

    id: str
    type: ResourceType
    name: str
    status: ResourceStatus = ResourceStatus.RUNNING
    application: str = settings.UNKNOWN_APPLICATION
    region: str = ""
    tags: dict[str, str] = field(default_factory=dict)
    security_groups: list[str] | None = None
    cluster_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    last_updated: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용 딕셔너리"""
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "status": self.status.value,
            "application": self.application,
            "region": self.region,
            "tags": dict(self.tags),
            "details": self.details,
        }
        if self.security_groups is not None:
            data["securityGroups"] = list(self.security_groups)
        if self.cluster_id is not None:
            data["clusterId"] = self.cluster_id
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Resource:
        """JSON 딕셔너리에서 생성 (알 수 없는 type/status는 ValidationError)"""
        if not data.get("id"):
            raise ValidationError("id", data.get("id"), "non-empty string")

        security_groups = data.get("securityGroups")
        return cls(
            id=str(data["id"]),
            type=_parse_enum(ResourceType, "type", data.get("type")),
            name=str(data.get("name") or data["id"]),
            status=_parse_enum(ResourceStatus, "status", data.get("status", ResourceStatus.RUNNING.value)),
            application=data.get("application") or settings.UNKNOWN_APPLICATION,
            region=data.get("region", ""),
            tags=dict(data.get("tags") or {}),
            security_groups=list(security_groups) if isinstance(security_groups, list) else None,
            cluster_id=data.get("clusterId"),
            details=dict(data.get("details") or {}),
            last_updated=data.get("lastUpdated"),
        )


@dataclass(frozen=True)
class Relationship:
    """방향성 관계 (source → target)

    Attributes:
        source_id: 시작 리소스 ID
        target_id: 대상 리소스 ID
        type: 관계 종류
        metadata: 관계 종류별 부가 정보
            routes_to   {protocol, port}
            triggers    {eventType} | {method, path} | {targetId}
            depends_on  {accessType}
            connects_to {securityGroups: {source, target, rules: [...]}}
    """

    source_id: str
    target_id: str
    type: RelationshipType
    metadata: dict[str, Any] | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        """중복 제거 키 (source, target, type)"""
        return (self.source_id, self.target_id, self.type.value)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "type": self.type.value,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Relationship:
        return cls(
            source_id=str(data.get("sourceId", "")),
            target_id=str(data.get("targetId", "")),
            type=_parse_enum(RelationshipType, "type", data.get("type")),
            metadata=data.get("metadata"),
        )


def security_group_rule(
    protocol: str | None,
    from_port: int | None,
    to_port: int | None,
    security_group_id: str,
    direction: str,
) -> dict[str, Any]:
    """connects_to 메타데이터의 규칙 항목"""
    return {
        "protocol": protocol,
        "fromPort": from_port,
        "toPort": to_port,
        "securityGroupId": security_group_id,
        "direction": direction,
    }


def connects_to_metadata(source: list[str], target: list[str], rules: list[dict[str, Any]]) -> dict[str, Any]:
    """connects_to 메타데이터 생성"""
    return {"securityGroups": {"source": list(source), "target": list(target), "rules": list(rules)}}
