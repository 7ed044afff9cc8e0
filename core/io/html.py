"""
core/io/html.py - 단일 파일 HTML 리포트

요약 카드, 안내 문구, ECharts 차트, 검색 가능한 표를 순서대로 쌓아
외부 파일 없이 열리는 HTML 하나로 저장합니다 (ECharts만 CDN).
"""

from __future__ import annotations

import html
import json
import logging
import os
import subprocess
import sys
import webbrowser
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ECHARTS_CDN = "https://cdn.jsdelivr.net/npm/echarts@5.4.3/dist/echarts.min.js"

_OPENERS = {"darwin": "open", "linux": "xdg-open"}


def open_in_browser(filepath: str) -> bool:
    """OS 기본 프로그램으로 열고, 실패하면 webbrowser 모듈로 재시도"""
    try:
        if sys.platform == "win32":
            os.startfile(filepath)  # noqa: S606
        else:
            subprocess.run([_OPENERS.get(sys.platform, "xdg-open"), filepath], check=True)  # noqa: S603
        return True
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning(f"브라우저 열기 실패: {e}")
    return webbrowser.open(Path(filepath).resolve().as_uri())


@dataclass
class ChartConfig:
    """차트 하나 (script는 `chart` 변수로 인스턴스를 받는 JS 본문)"""

    chart_id: str
    option: dict[str, Any]
    height: int = 600
    script: str = ""


_STYLE = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: -apple-system, 'Segoe UI', 'Malgun Gothic', sans-serif; background: #f3f4f6; color: #1f2937; }
main { max-width: 1600px; margin: 0 auto; padding: 24px; }
header { background: #0f766e; color: #fff; padding: 24px 32px; border-radius: 12px; margin-bottom: 20px; }
header h1 { font-size: 26px; font-weight: 600; }
header p { font-size: 13px; opacity: .85; margin-top: 4px; }
.box { background: #fff; border-radius: 10px; padding: 20px; margin-bottom: 20px; box-shadow: 0 1px 6px rgba(0,0,0,.06); }
.cards { display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 14px; margin-bottom: 20px; }
.card { text-align: center; margin: 0; }
.card .label { font-size: 13px; color: #6b7280; }
.card .value { font-size: 30px; font-weight: 700; }
.card.danger .value { color: #dc2626; }
.card.warning .value { color: #ca8a04; }
.card.success .value { color: #16a34a; }
.notice { text-align: center; padding: 60px 20px; color: #6b7280; font-size: 16px; }
.box h3 { font-size: 17px; margin-bottom: 12px; }
.filter { width: 280px; padding: 8px 12px; border: 1px solid #d1d5db; border-radius: 6px; margin-bottom: 12px; }
table { width: 100%; border-collapse: collapse; font-size: 13px; }
th, td { padding: 10px; text-align: left; border-bottom: 1px solid #e5e7eb; }
th { background: #f9fafb; white-space: nowrap; }
td { word-break: break-all; }
footer { text-align: center; color: #9ca3af; font-size: 12px; padding: 24px; }
"""

_TABLE_FILTER_JS = """
document.querySelectorAll('.filter').forEach(input => {
    const rows = Array.from(input.parentElement.querySelectorAll('tbody tr'));
    input.addEventListener('input', () => {
        const query = input.value.toLowerCase();
        rows.forEach(row => { row.hidden = !row.textContent.toLowerCase().includes(query); });
    });
});
"""


@dataclass
class HTMLPage:
    """HTML 리포트 빌더

    add_* 메서드는 self를 반환하므로 연결해서 호출할 수 있습니다.

    Example:
        page = HTMLPage("리소스 토폴로지", subtitle="payments")
        page.add_summary([("리소스", 12, None), ("외부", 2, "warning")]).add_chart(option, height=700)
        page.save("output/topology.html", auto_open=False)
    """

    title: str
    subtitle: str | None = None
    summaries: list[tuple[str, Any, str | None]] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)
    charts: list[ChartConfig] = field(default_factory=list)
    tables: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def add_summary(self, items: list[tuple[str, Any, str | None]]) -> HTMLPage:
        """(라벨, 값, 색상) 카드 추가, 색상은 danger/warning/success/None"""
        self.summaries.extend(items)
        return self

    def add_notice(self, message: str) -> HTMLPage:
        self.notices.append(message)
        return self

    def add_chart(self, option: dict[str, Any], height: int = 600, script: str = "") -> HTMLPage:
        self.charts.append(ChartConfig(f"chart_{len(self.charts) + 1}", option, height, script))
        return self

    def add_table(self, title: str, headers: list[str], rows: list[list[Any]]) -> HTMLPage:
        self.tables.append({"title": title, "headers": headers, "rows": rows})
        return self

    def save(self, filepath: str | Path, auto_open: bool = True) -> Path:
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8")
        logger.info(f"HTML 저장: {path}")
        if auto_open:
            open_in_browser(str(path))
        return path

    def render(self) -> str:
        body = "\n".join(
            [
                self._header(),
                self._cards(),
                *(f'<div class="box notice">{html.escape(n)}</div>' for n in self.notices),
                *(f'<div class="box"><div id="{c.chart_id}" style="height:{c.height}px"></div></div>' for c in self.charts),
                *(self._table(t) for t in self.tables),
                "<footer>Generated by aws-topology</footer>",
            ]
        )
        return (
            '<!DOCTYPE html>\n<html lang="ko">\n<head>\n<meta charset="UTF-8">\n'
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
            f"<title>{html.escape(self.title)}</title>\n"
            f'<script src="{ECHARTS_CDN}"></script>\n'
            f"<style>{_STYLE}</style>\n</head>\n"
            f"<body>\n<main>\n{body}\n</main>\n<script>{self._chart_js()}{_TABLE_FILTER_JS}</script>\n</body>\n</html>"
        )

    def _header(self) -> str:
        subtitle = html.escape(self.subtitle or "AWS Resource Topology")
        stamp = self.created_at.strftime("%Y-%m-%d %H:%M:%S")
        return f"<header><h1>{html.escape(self.title)}</h1><p>{subtitle} | {stamp}</p></header>"

    def _cards(self) -> str:
        if not self.summaries:
            return ""
        cards = "".join(
            f'<div class="box card {color or ""}"><div class="label">{html.escape(str(label))}</div>'
            f'<div class="value">{html.escape(str(value))}</div></div>'
            for label, value, color in self.summaries
        )
        return f'<div class="cards">{cards}</div>'

    @staticmethod
    def _table(table: dict[str, Any]) -> str:
        head = "".join(f"<th>{html.escape(str(h))}</th>" for h in table["headers"])
        rows = "".join(
            "<tr>" + "".join(f"<td>{html.escape(str(cell))}</td>" for cell in row) + "</tr>" for row in table["rows"]
        )
        return (
            f'<div class="box"><h3>{html.escape(table["title"])}</h3>'
            '<input type="text" class="filter" placeholder="검색...">'
            f"<table><thead><tr>{head}</tr></thead><tbody>{rows}</tbody></table></div>"
        )

    def _chart_js(self) -> str:
        # </script> 조기 종료 방지
        lines = []
        for chart in self.charts:
            option = json.dumps(chart.option, ensure_ascii=False).replace("</", "<\\/")
            lines.append(
                "{\n"
                f"const chart = echarts.init(document.getElementById('{chart.chart_id}'));\n"
                f"chart.setOption({option});\n"
                "window.addEventListener('resize', () => chart.resize());\n"
                f"{chart.script}\n"
                "}"
            )
        return "\n".join(lines)
