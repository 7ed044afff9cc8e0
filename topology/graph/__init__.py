"""
topology/graph - 의존성 그래프 렌더링

view: 노드/엣지 집합, 빈 상태, 툴팁
layout: force-directed 시뮬레이션 (pin/drag/release)
render: ECharts 단일 HTML
"""

from .layout import ForceSimulation, compute_layout
from .render import build_chart_option, render_graph_html, write_graph_html
from .view import (
    EMPTY_NO_RELATIONSHIPS,
    EMPTY_NO_RESOURCES,
    GraphNode,
    GraphView,
    build_graph_view,
    edge_tooltip,
    node_tooltip,
)

__all__: list[str] = [
    "EMPTY_NO_RELATIONSHIPS",
    "EMPTY_NO_RESOURCES",
    "ForceSimulation",
    "GraphNode",
    "GraphView",
    "build_chart_option",
    "build_graph_view",
    "compute_layout",
    "edge_tooltip",
    "node_tooltip",
    "render_graph_html",
    "write_graph_html",
]
