"""
topology/graph/render.py - 의존성 그래프 HTML 렌더러

GraphView를 ECharts graph 차트 하나짜리 단일 HTML 파일로 그립니다.

- 노드 위치는 ForceSimulation으로 미리 계산하고, 브라우저에서는 force 레이아웃으로 이어서 진행
- 드래그 중인 노드는 고정되고 놓으면 다시 자동 배치 (더블클릭으로 고정 토글)
- hover 시 인접 노드/엣지만 강조 (emphasis.focus = adjacency)
- 범례: 관계 종류별 색상 + 화살표
- 외부 노드: 옅은 채우기 + 점선 테두리/라벨
- 노드 또는 엣지가 없으면 차트 대신 빈 상태 메시지만 표시
"""

from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Any

from core.io import HTMLPage

from ..types import RelationshipType, ResourceStatus, ResourceType
from .layout import LINK_DISTANCE, NODE_RADIUS, ForceSimulation
from .view import GraphNode, GraphView, edge_tooltip, node_tooltip

logger = logging.getLogger(__name__)

RELATIONSHIP_COLORS: dict[RelationshipType, str] = {
    RelationshipType.ROUTES_TO: "#3b82f6",
    RelationshipType.DEPENDS_ON: "#8b5cf6",
    RelationshipType.TRIGGERS: "#ec4899",
    RelationshipType.CONNECTS_TO: "#14b8a6",
    RelationshipType.PART_OF: "#f97316",
    RelationshipType.INSTANCE_OF: "#84cc16",
}

STATUS_COLORS: dict[ResourceStatus, str] = {
    ResourceStatus.RUNNING: "#22c55e",
    ResourceStatus.STOPPED: "#ef4444",
    ResourceStatus.PENDING: "#eab308",
    ResourceStatus.TERMINATED: "#6b7280",
}

TYPE_ICONS: dict[ResourceType, str] = {
    ResourceType.ECS: "E",
    ResourceType.AURORA: "D",
    ResourceType.AURORA_INSTANCE: "d",
    ResourceType.LAMBDA: "λ",
    ResourceType.EC2: "S",
    ResourceType.STEPFUNCTIONS: "F",
    ResourceType.APIGATEWAY: "A",
    ResourceType.EVENTBRIDGE: "V",
    ResourceType.ALB: "L",
    ResourceType.NLB: "N",
}

EXTERNAL_FILL = "#f3f4f6"
EXTERNAL_STROKE = "#9ca3af"

_ARROW_ICON = "path://M0,4 L10,4 L10,0 L16,6 L10,12 L10,8 L0,8 Z"

# 더블클릭: 노드 고정 토글 (드래그 중 고정은 ECharts force 레이아웃 기본 동작)
_PIN_TOGGLE_SCRIPT = """
            chart.on('dblclick', { dataType: 'node' }, function (params) {
                const option = chart.getOption();
                const data = option.series[0].data;
                const node = data[params.dataIndex];
                node.fixed = !node.fixed;
                if (node.fixed) {
                    const layout = chart.getModel().getSeriesByIndex(0).getData().getItemLayout(params.dataIndex);
                    node.x = layout[0];
                    node.y = layout[1];
                }
                chart.setOption({ series: [{ data: data }] });
            });
"""


def _tooltip_html(text: str) -> str:
    return html.escape(text).replace("\n", "<br/>").replace("{", "&#123;").replace("}", "&#125;")


def _node_data(node: GraphNode, position: tuple[float, float] | None) -> dict[str, Any]:
    resource = node.resource
    data: dict[str, Any] = {
        "id": resource.id,
        "name": resource.name,
        "value": resource.type.value,
        "symbolSize": NODE_RADIUS * 2,
        "label": {"show": True, "formatter": f"{TYPE_ICONS[resource.type]}\n{resource.name}"},
        "tooltip": {"formatter": _tooltip_html(node_tooltip(node))},
    }
    if position is not None:
        data["x"], data["y"] = round(position[0], 2), round(position[1], 2)

    if node.is_external:
        data["category"] = "external"
        data["itemStyle"] = {
            "color": EXTERNAL_FILL,
            "borderColor": EXTERNAL_STROKE,
            "borderWidth": 2,
            "borderType": "dashed",
        }
        data["label"].update(
            {
                "color": "#6b7280",
                "borderColor": EXTERNAL_STROKE,
                "borderWidth": 1,
                "borderType": "dashed",
                "borderRadius": 4,
                "padding": [2, 4],
            }
        )
    else:
        data["itemStyle"] = {"color": STATUS_COLORS[resource.status], "borderColor": "#ffffff", "borderWidth": 2}
    return data


def build_chart_option(view: GraphView, layout: dict[str, tuple[float, float]] | None = None) -> dict[str, Any]:
    """GraphView → ECharts graph option"""
    layout = layout or {}
    categories = [{"name": t.value, "itemStyle": {"color": c}} for t, c in RELATIONSHIP_COLORS.items()]
    categories.append({"name": "external", "itemStyle": {"color": EXTERNAL_FILL}})

    links = [
        {
            "source": edge.source_id,
            "target": edge.target_id,
            "value": edge.type.value,
            "lineStyle": {"color": RELATIONSHIP_COLORS[edge.type], "width": 2, "curveness": 0.1},
            "tooltip": {"formatter": _tooltip_html(edge_tooltip(edge))},
        }
        for edge in view.edges
    ]

    return {
        "tooltip": {"trigger": "item", "confine": True},
        "legend": {
            "data": [{"name": t.value, "icon": _ARROW_ICON} for t in RELATIONSHIP_COLORS],
            "top": 8,
            "selectedMode": False,
        },
        "series": [
            {
                "type": "graph",
                "layout": "force",
                "roam": True,
                "draggable": True,
                "force": {
                    "initLayout": "none",
                    "repulsion": 300,
                    "edgeLength": LINK_DISTANCE,
                    "gravity": 0.05,
                    "layoutAnimation": True,
                },
                "categories": categories,
                "edgeSymbol": ["none", "arrow"],
                "edgeSymbolSize": [0, 10],
                "emphasis": {"focus": "adjacency", "lineStyle": {"width": 4}},
                "label": {"position": "inside", "fontSize": 11},
                "data": [_node_data(n, layout.get(n.id)) for n in view.nodes],
                "links": links,
            }
        ],
    }


def render_graph_html(
    view: GraphView,
    layout: dict[str, tuple[float, float]] | None = None,
    title: str = "AWS 리소스 토폴로지",
    subtitle: str | None = None,
    width: float = 960.0,
    height: int = 700,
) -> HTMLPage:
    """GraphView를 HTMLPage로 구성

    Args:
        view: build_graph_view 결과
        layout: 노드 위치 (None이면 ForceSimulation으로 계산)
        title / subtitle: 페이지 제목
        width / height: 레이아웃 캔버스 크기

    Returns:
        save() 또는 render() 가능한 HTMLPage
    """
    page = HTMLPage(title, subtitle)

    empty = view.empty_message
    if empty is not None:
        page.add_notice(empty)
        return page

    if layout is None:
        simulation = ForceSimulation(
            [n.id for n in view.nodes],
            [(e.source_id, e.target_id) for e in view.edges],
            width,
            float(height),
        )
        simulation.run()
        layout = simulation.positions()

    page.add_summary(
        [
            ("리소스", len(view.nodes) - view.external_count, None),
            ("외부 리소스", view.external_count, "warning" if view.external_count else None),
            ("관계", len(view.edges), "success"),
        ]
    )
    page.add_chart(build_chart_option(view, layout), height=height, script=_PIN_TOGGLE_SCRIPT)

    names = {n.id: n.resource.name for n in view.nodes}
    page.add_table(
        "관계",
        ["Source", "Target", "Type", "Detail"],
        [
            [
                names.get(e.source_id, e.source_id),
                names.get(e.target_id, e.target_id),
                e.type.value,
                edge_tooltip(e).replace("\n", " / "),
            ]
            for e in view.edges
        ],
    )
    return page


def write_graph_html(view: GraphView, filepath: str | Path, auto_open: bool = True, **kwargs: Any) -> Path:
    """그래프 HTML 저장"""
    path = render_graph_html(view, **kwargs).save(filepath, auto_open=auto_open)
    logger.info(f"그래프 저장: 노드 {len(view.nodes)}개, 엣지 {len(view.edges)}개 → {path}")
    return path
