"""
topology/export.py - 토폴로지 Excel 내보내기

시트 구성:
    Resources      리소스 목록 (외부 리소스는 회색 행)
    Relationships  관계 목록 (source/target 이름, 종류, 상세)
    Errors         탐색 중 수집된 리소스 단위 실패 (있을 때만)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from core.io.excel import ColumnDef, RowStyle, Workbook
from core.parallel import CollectedError

from .graph import edge_tooltip
from .types import Relationship, Resource, ResourceStatus

logger = logging.getLogger(__name__)

RESOURCE_COLUMNS = [
    ColumnDef(header="Name", width=36),
    ColumnDef(header="Type", width=16, align="center"),
    ColumnDef(header="Status", width=12, align="center"),
    ColumnDef(header="Application", width=20),
    ColumnDef(header="Region", width=14, align="center"),
    ColumnDef(header="Security Groups", width=30),
    ColumnDef(header="External", width=10, align="center"),
    ColumnDef(header="ID", width=80),
]

RELATIONSHIP_COLUMNS = [
    ColumnDef(header="Source", width=36),
    ColumnDef(header="Target", width=36),
    ColumnDef(header="Type", width=14, align="center"),
    ColumnDef(header="Detail", width=60),
    ColumnDef(header="Source ID", width=80),
    ColumnDef(header="Target ID", width=80),
]

ERROR_COLUMNS = [
    ColumnDef(header="Resource", width=60),
    ColumnDef(header="Region", width=14, align="center"),
    ColumnDef(header="Operation", width=28),
    ColumnDef(header="Error Code", width=28),
    ColumnDef(header="Message", width=80),
]


def _resource_style(resource: Resource, external: bool) -> dict:
    if external:
        return RowStyle.muted()
    if resource.status == ResourceStatus.STOPPED:
        return RowStyle.danger()
    if resource.status == ResourceStatus.PENDING:
        return RowStyle.warning()
    return RowStyle.data()


def export_topology(
    filepath: str | Path,
    resources: Sequence[Resource],
    relationships: Sequence[Relationship],
    external_resources: Sequence[Resource] = (),
    errors: Sequence[CollectedError] = (),
) -> Path:
    """토폴로지를 Excel 파일로 저장"""
    wb = Workbook()

    sheet = wb.new_sheet("Resources", RESOURCE_COLUMNS)
    for resource, external in [(r, False) for r in resources] + [(r, True) for r in external_resources]:
        sheet.add_row(
            [
                resource.name,
                resource.type.value,
                resource.status.value,
                resource.application,
                resource.region,
                ", ".join(resource.security_groups or []),
                "Y" if external else "",
                resource.id,
            ],
            style=_resource_style(resource, external),
        )

    names = {r.id: r.name for r in [*resources, *external_resources]}
    sheet = wb.new_sheet("Relationships", RELATIONSHIP_COLUMNS)
    for relationship in relationships:
        sheet.add_row(
            [
                names.get(relationship.source_id, relationship.source_id),
                names.get(relationship.target_id, relationship.target_id),
                relationship.type.value,
                edge_tooltip(relationship).replace("\n", " / "),
                relationship.source_id,
                relationship.target_id,
            ]
        )

    if errors:
        sheet = wb.new_sheet("Errors", ERROR_COLUMNS)
        for error in errors:
            sheet.add_row(
                [error.resource_id, error.region, error.operation, error.error_code, error.error_message],
                style=RowStyle.warning(),
            )

    path = wb.save(filepath)
    logger.info(f"토폴로지 Excel: 리소스 {len(resources) + len(external_resources)}개, 관계 {len(relationships)}건")
    return path
