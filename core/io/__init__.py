"""
core/io - 출력 모듈

- html: ECharts 기반 단일 HTML 페이지
- excel: openpyxl 기반 Excel 워크북
"""

from .html import HTMLPage, open_in_browser

__all__: list[str] = [
    "HTMLPage",
    "open_in_browser",
]
