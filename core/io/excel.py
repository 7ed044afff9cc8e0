"""
core/io/excel.py - Excel 출력 양식 (공통 스타일, 시트 헬퍼)

사용 예시:
    from core.io.excel import ColumnDef, Workbook, RowStyle

    wb = Workbook()
    sheet = wb.new_sheet("Resources", [
        ColumnDef(header="ID", width=60),
        ColumnDef(header="Type", width=16, align="center"),
    ])
    sheet.add_row(["arn:aws:ecs:...", "ecs"])
    sheet.add_row(["i-0abc", "ec2"], style=RowStyle.danger())
    wb.save("output/topology.xlsx")

Note:
    openpyxl은 실제 사용 시점에만 로드합니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

# =============================================================================
# 색상 상수 (RGB Hex)
# =============================================================================

COLOR_HEADER_BG = "4472C4"  # 헤더 배경 (파란색)
COLOR_HEADER_FG = "FFFFFF"  # 헤더 글자 (흰색)
COLOR_SUCCESS = "C6EFCE"  # 성공 (연한 초록)
COLOR_WARNING = "FFEB9C"  # 경고 (연한 노랑)
COLOR_DANGER = "FFC7CE"  # 위험 (연한 빨강)
COLOR_MUTED = "F3F4F6"  # 외부 리소스 (연한 회색)

FONT_NAME = "맑은 고딕"


def _fill(color: str) -> Any:
    from openpyxl.styles import PatternFill

    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def _font(bold: bool = False, color: str | None = None) -> Any:
    from openpyxl.styles import Font

    return Font(name=FONT_NAME, size=10, bold=bold, color=color)


def get_thin_border() -> Any:
    """얇은 테두리 스타일 반환"""
    from openpyxl.styles import Border, Side

    thin_side = Side(style="thin", color="808080")
    return Border(left=thin_side, right=thin_side, top=thin_side, bottom=thin_side)


class RowStyle:
    """행 수준 스타일 프리셋"""

    @staticmethod
    def data() -> dict:
        return {"fill": None, "font": _font()}

    @staticmethod
    def success() -> dict:
        return {"fill": _fill(COLOR_SUCCESS), "font": _font()}

    @staticmethod
    def warning() -> dict:
        return {"fill": _fill(COLOR_WARNING), "font": _font()}

    @staticmethod
    def danger() -> dict:
        return {"fill": _fill(COLOR_DANGER), "font": _font()}

    @staticmethod
    def muted() -> dict:
        """외부 리소스 행 스타일 (연한 회색)"""
        return {"fill": _fill(COLOR_MUTED), "font": _font(color="6B7280")}


@dataclass
class ColumnDef:
    """컬럼 정의

    Attributes:
        header: 헤더 텍스트
        width: 컬럼 너비
        align: "left" | "center" | "right"
    """

    header: str
    width: int = 15
    align: str = "left"


class Sheet:
    """헤더/테두리/필터가 적용된 워크시트 래퍼"""

    def __init__(self, ws: Worksheet, columns: list[ColumnDef]):
        from openpyxl.styles import Alignment
        from openpyxl.utils import get_column_letter

        self.ws = ws
        self.columns = columns
        self._row = 1
        self._alignments = [Alignment(horizontal=c.align, vertical="center") for c in columns]

        border = get_thin_border()
        for idx, col in enumerate(columns, start=1):
            cell = ws.cell(row=1, column=idx, value=col.header)
            cell.font = _font(bold=True, color=COLOR_HEADER_FG)
            cell.fill = _fill(COLOR_HEADER_BG)
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = border
            ws.column_dimensions[get_column_letter(idx)].width = col.width

        ws.freeze_panes = "A2"

    @property
    def row_count(self) -> int:
        """헤더를 제외한 데이터 행 수"""
        return self._row - 1

    def add_row(self, values: list[Any], style: dict | None = None) -> None:
        """데이터 행 추가"""
        self._row += 1
        style = style or RowStyle.data()
        border = get_thin_border()
        for idx, value in enumerate(values, start=1):
            cell = self.ws.cell(row=self._row, column=idx, value=value)
            cell.font = style["font"]
            if style["fill"] is not None:
                cell.fill = style["fill"]
            cell.border = border
            if idx <= len(self._alignments):
                cell.alignment = self._alignments[idx - 1]

    def finalize(self) -> None:
        """자동 필터 적용"""
        from openpyxl.utils import get_column_letter

        if self.columns:
            self.ws.auto_filter.ref = f"A1:{get_column_letter(len(self.columns))}{max(self._row, 1)}"


class Workbook:
    """openpyxl Workbook 래퍼"""

    def __init__(self) -> None:
        from openpyxl import Workbook as _OpenpyxlWorkbook

        self._wb = _OpenpyxlWorkbook()
        self._wb.remove(self._wb.active)
        self._sheets: list[Sheet] = []

    @property
    def sheet_names(self) -> list[str]:
        return list(self._wb.sheetnames)

    def new_sheet(self, name: str, columns: list[ColumnDef]) -> Sheet:
        """시트 생성 (이름은 Excel 제한 31자로 자름)"""
        sheet = Sheet(self._wb.create_sheet(title=name[:31]), columns)
        self._sheets.append(sheet)
        return sheet

    def save(self, filepath: str | Path) -> Path:
        """파일 저장"""
        for sheet in self._sheets:
            sheet.finalize()

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._wb.save(path)
        logger.info(f"Excel 저장: {path}")
        return path
