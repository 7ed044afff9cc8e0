"""
topology/graph/view.py - 렌더링용 그래프 뷰

노드 = focus 리소스 ∪ (표시되는 관계가 참조하는 외부 리소스), 외부 여부 표시
엣지 = 양 끝점이 모두 노드 집합에 있는 관계

끝점을 찾을 수 없는 관계는 버리고 diagnostics에 남깁니다.
빈 상태 메시지는 두 가지로 구분됩니다.
    - 노드 없음: "No resources to display"
    - 노드는 있지만 엣지 없음: "No relationships found between resources"
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from core.exceptions import TopologyError

from ..types import Relationship, Resource

logger = logging.getLogger(__name__)

EMPTY_NO_RESOURCES = "No resources to display"
EMPTY_NO_RELATIONSHIPS = "No relationships found between resources"


@dataclass(frozen=True)
class GraphNode:
    """그래프 노드"""

    resource: Resource
    is_external: bool = False

    @property
    def id(self) -> str:
        return self.resource.id


@dataclass
class GraphView:
    """렌더링 입력 (노드/엣지/진단 정보)"""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[Relationship] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)
    show_external: bool = True

    @property
    def empty_message(self) -> str | None:
        """빈 상태 메시지 (그릴 그래프가 있으면 None)"""
        if not self.nodes:
            return EMPTY_NO_RESOURCES
        if not self.edges:
            return EMPTY_NO_RELATIONSHIPS
        return None

    @property
    def external_count(self) -> int:
        return sum(1 for n in self.nodes if n.is_external)

    def node(self, node_id: str) -> GraphNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def incident_edges(self, node_id: str) -> list[Relationship]:
        """노드에 연결된 엣지 (hover 강조 대상)"""
        return [e for e in self.edges if node_id in (e.source_id, e.target_id)]

    def neighbors(self, node_id: str) -> set[str]:
        """노드와 직접 연결된 노드 ID"""
        result: set[str] = set()
        for edge in self.incident_edges(node_id):
            result.add(edge.target_id if edge.source_id == node_id else edge.source_id)
        return result

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> GraphView:
        """API 응답 형식 {resources, relationships, externalResources, showExternalResources}에서 생성"""
        if not isinstance(payload, dict):
            raise TopologyError("그래프 입력은 JSON 객체여야 합니다")
        return build_graph_view(
            [Resource.from_dict(r) for r in payload.get("resources") or []],
            [Relationship.from_dict(r) for r in payload.get("relationships") or []],
            [Resource.from_dict(r) for r in payload.get("externalResources") or []],
            show_external=bool(payload.get("showExternalResources", True)),
        )


def build_graph_view(
    resources: Iterable[Resource],
    relationships: Iterable[Relationship],
    external_resources: Iterable[Resource] = (),
    show_external: bool = True,
) -> GraphView:
    """리소스/관계로 GraphView 구성

    Args:
        resources: focus 리소스 (항상 노드로 표시)
        relationships: 탐색된 관계
        external_resources: focus 밖 리소스 (관계가 참조할 때만 노드로 표시)
        show_external: False면 focus 밖으로 나가는 관계를 숨김
    """
    focus = {r.id: r for r in resources}
    external = {r.id: r for r in external_resources if r.id not in focus}

    nodes = [GraphNode(r) for r in focus.values()]
    added_external: set[str] = set()
    edges: list[Relationship] = []
    diagnostics: list[str] = []
    seen: set[tuple[str, str, str]] = set()

    for edge in relationships:
        source_in, target_in = edge.source_id in focus, edge.target_id in focus

        if not source_in and not target_in:
            if edge.source_id not in external or edge.target_id not in external:
                diagnostics.append(f"끝점을 찾을 수 없는 관계 제외: {edge.source_id} -> {edge.target_id} ({edge.type.value})")
            continue

        if not (source_in and target_in):
            outside = edge.target_id if source_in else edge.source_id
            if outside not in external:
                diagnostics.append(f"끝점을 찾을 수 없는 관계 제외: {edge.source_id} -> {edge.target_id} ({edge.type.value})")
                continue
            if not show_external:
                continue
            if outside not in added_external:
                added_external.add(outside)
                nodes.append(GraphNode(external[outside], is_external=True))

        if edge.key in seen:
            continue
        seen.add(edge.key)
        edges.append(edge)

    for message in diagnostics:
        logger.debug(message)

    return GraphView(nodes=nodes, edges=edges, diagnostics=diagnostics, show_external=show_external)


def _port_text(rule: dict[str, Any]) -> str:
    from_port, to_port = rule.get("fromPort"), rule.get("toPort")
    if from_port == to_port:
        return f"Port: {from_port}"
    return f"Ports: {from_port}-{to_port}"


def edge_tooltip(edge: Relationship) -> str:
    """엣지 툴팁 (관계 종류 + 보안 그룹 source/target + 첫 번째 규칙)"""
    lines = [edge.type.value.replace("_", " ")]
    metadata = edge.metadata or {}

    groups = metadata.get("securityGroups")
    if isinstance(groups, dict):
        lines.append("Security Groups:")
        lines.append(f"  Source: {', '.join(groups.get('source') or [])}")
        lines.append(f"  Target: {', '.join(groups.get('target') or [])}")
        rules = groups.get("rules") or []
        if rules:
            rule = rules[0]
            lines.append(f"  {'Inbound' if rule.get('direction') == 'inbound' else 'Outbound'} Rule:")
            lines.append(f"    Protocol: {rule.get('protocol')}")
            lines.append(f"    {_port_text(rule)}")
    else:
        for key, value in metadata.items():
            lines.append(f"{key}: {value}")

    return "\n".join(lines)


def node_tooltip(node: GraphNode) -> str:
    resource = node.resource
    text = f"{resource.name} ({resource.type.value})\nApplication: {resource.application}\nStatus: {resource.status.value}"
    if node.is_external:
        text += "\nExternal"
    return text
