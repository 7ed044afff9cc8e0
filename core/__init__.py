# core/__init__.py
"""
core - 토폴로지 엔진, CLI, API가 함께 쓰는 인프라

    parallel/       병렬 실행기, 에러 수집, boto3 client
    io/             ECharts HTML, Excel 출력
    config.py       settings (리전, 워커 수, 타임아웃)
    exceptions.py   TopologyError 계층
"""

from core import config, exceptions, io, parallel

__all__: list[str] = ["config", "exceptions", "io", "parallel"]
