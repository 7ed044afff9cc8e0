"""
topology/inventory/store.py - 인벤토리 JSON 파일 입출력

저장 형식은 API 응답과 같은 camelCase 리소스 목록입니다.
    [{"id": ..., "type": "ecs", ...}, ...]
또는 discover 결과 문서 {"resources": [...], "relationships": [...]}도 읽을 수 있습니다.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from core.exceptions import InventoryError, ValidationError

from ..types import Resource

logger = logging.getLogger(__name__)


def load_inventory(filepath: str | Path) -> list[Resource]:
    """JSON 파일에서 리소스 목록 로드

    Raises:
        InventoryError: 파일을 읽을 수 없거나 형식이 잘못된 경우
    """
    path = Path(filepath)
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise InventoryError(f"{path} 읽기 실패", cause=e) from e

    if isinstance(data, dict):
        data = data.get("resources")
    if not isinstance(data, list):
        raise InventoryError(f"{path}: 리소스 목록(JSON 배열)이 아닙니다")

    try:
        resources = [Resource.from_dict(item) for item in data]
    except (ValidationError, TypeError, AttributeError) as e:
        raise InventoryError(f"{path}: 잘못된 리소스 항목", cause=e) from e

    logger.info(f"인벤토리 로드: {path} ({len(resources)}개)")
    return resources


def save_inventory(resources: list[Resource], filepath: str | Path) -> Path:
    """리소스 목록을 JSON 파일로 저장"""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([r.to_dict() for r in resources], ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info(f"인벤토리 저장: {path} ({len(resources)}개)")
    return path


def filter_by_application(resources: list[Resource], application: str | None) -> list[Resource]:
    """애플리케이션 이름으로 리소스 필터 (None이면 전체)"""
    if not application:
        return list(resources)
    return [r for r in resources if r.application == application]
