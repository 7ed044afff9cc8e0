"""FastAPI application factory for the topology service.

Usage::

    from topology.api import create_app

    app = create_app(inventory=collector.list_resources)
    uvicorn.run(app, host="0.0.0.0", port=5173)

엔드포인트:
    GET /api/resources                                 전체 리소스 목록
    GET /api/resource-relationships?application=<app>  {resources, relationships, externalResources}
    GET /api/resource-graph?application=<app>          의존성 그래프 HTML

인벤토리 수집/관계 탐색 실패는 HTTP 500 ``{"error": ..., "detail": ...}``로 응답하며,
관계가 없는 정상 결과(200, relationships=[])와 구분됩니다.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel

from core.config import DiscoveryConfig, get_version
from core.exceptions import DiscoveryError, InventoryError, TopologyError, format_error_for_user

from .discovery import RelationshipDiscovery
from .graph import build_graph_view, render_graph_html
from .inventory import filter_by_application
from .providers import TopologyProvider
from .types import Resource

logger = logging.getLogger(__name__)

InventorySource = Callable[[], Sequence[Resource]]

router = APIRouter(prefix="/api")


class ErrorResponse(BaseModel):
    """에러 응답 본문"""

    error: str
    detail: str


def _topology(request: Request, application: str | None) -> dict[str, Any]:
    state = request.app.state
    all_resources = list(state.inventory())
    focus = filter_by_application(all_resources, application) if application else None

    logger.info(
        f"관계 조회: application={application or '-'}, 전체 {len(all_resources)}개, "
        f"대상 {len(focus) if focus is not None else len(all_resources)}개"
    )
    result = RelationshipDiscovery(all_resources, focus, provider=state.provider, config=state.config).run()

    focus_ids = {r.id for r in focus} if focus is not None else None
    return {
        "resources": focus if focus is not None else all_resources,
        "relationships": result.relationships,
        "externalResources": [r for r in all_resources if r.id not in focus_ids] if focus_ids is not None else [],
    }


@router.get("/resources")
def list_resources(request: Request) -> list[dict[str, Any]]:
    return [r.to_dict() for r in request.app.state.inventory()]


@router.get("/resource-relationships")
def resource_relationships(request: Request, application: str | None = Query(default=None)) -> dict[str, Any]:
    topology = _topology(request, application)
    return {
        "resources": [r.to_dict() for r in topology["resources"]],
        "relationships": [r.to_dict() for r in topology["relationships"]],
        "externalResources": [r.to_dict() for r in topology["externalResources"]],
    }


@router.get("/resource-graph", response_class=HTMLResponse)
def resource_graph(
    request: Request,
    application: str | None = Query(default=None),
    show_external: bool = Query(default=True, alias="showExternalResources"),
) -> HTMLResponse:
    topology = _topology(request, application)
    view = build_graph_view(
        topology["resources"],
        topology["relationships"],
        topology["externalResources"],
        show_external=show_external,
    )
    page = render_graph_html(view, subtitle=application or "All applications")
    return HTMLResponse(page.render())


def create_app(
    inventory: InventorySource,
    provider: TopologyProvider | None = None,
    config: DiscoveryConfig | None = None,
) -> FastAPI:
    """Create the topology FastAPI application.

    Args:
        inventory: 호출할 때마다 전체 리소스 목록을 반환하는 함수
        provider: 관계 탐색용 AWS Provider (None이면 기본 AWSProvider)
        config: 관계 탐색 설정

    Returns:
        uvicorn으로 실행 가능한 FastAPI 애플리케이션
    """
    app = FastAPI(
        title="AWS Topology",
        summary="AWS resource relationship discovery API",
        version=get_version(),
    )

    app.state.inventory = inventory
    app.state.provider = provider
    app.state.config = config or DiscoveryConfig()

    app.include_router(router)

    @app.exception_handler(TopologyError)
    async def topology_exception_handler(request: Request, exc: TopologyError) -> JSONResponse:
        if isinstance(exc, InventoryError):
            error = "Failed to fetch AWS resources"
        elif isinstance(exc, DiscoveryError):
            error = "Failed to fetch resource relationships"
        else:
            error = "Topology request failed"

        logger.error(f"{request.method} {request.url.path} 실패: {exc}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=error, detail=format_error_for_user(exc)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"{request.method} {request.url.path} 처리 중 예외")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="Internal error", detail="An unexpected error occurred.").model_dump(),
        )

    return app
