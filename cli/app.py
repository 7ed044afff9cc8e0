"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 CLI 애플리케이션 진입점입니다.

명령어 구조:
    topology --version                    # 버전 표시
    topology inventory -o inv.json        # 인벤토리 수집 후 JSON 저장
    topology discover --app payments      # 관계 탐색 + 요약 표 (+ JSON)
    topology graph --app payments         # 의존성 그래프 HTML
    topology export -o topology.xlsx      # Excel 내보내기
    topology serve --port 5173            # HTTP API 서버

공통 옵션:
    -p/--profile, -r/--region (다중), --from-file (저장된 인벤토리 JSON 사용),
    --timeout, --workers, -q/--quiet, -v/--verbose

Usage:
    $ topology discover -p prod -r us-east-1 -r us-east-2 --app payments -o out.json
    $ topology graph --from-file inv.json --app payments --no-external
    $ python -m cli.app discover --help
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click

from cli.ui import (
    RichProgressTracker,
    console,
    get_progress,
    print_count_table,
    print_error,
    print_error_summary,
    print_step_header,
    print_success,
    print_warning,
)
from core.config import DiscoveryConfig, LogConfig, get_version, settings
from core.exceptions import ConfigError, TopologyError, format_error_for_user
from core.parallel import quiet_mode

logger = logging.getLogger(__name__)

VERSION = get_version()


@dataclass
class RunOptions:
    """공통 옵션 묶음"""

    profile: str | None
    regions: tuple[str, ...]
    from_file: Path | None
    timeout: float
    workers: int
    quiet: bool
    application: str | None

    @property
    def config(self) -> DiscoveryConfig:
        return DiscoveryConfig(
            max_workers=self.workers,
            timeout=self.timeout,
            regions=self.regions or settings.DEFAULT_REGIONS,
        )

    def session_factory(self) -> Callable[[], Any]:
        import boto3

        return functools.partial(boto3.Session, profile_name=self.profile)


def common_options(func: Callable) -> Callable:
    """모든 탐색 명령어 공통 옵션"""

    @click.option("-p", "--profile", default=None, help="AWS 프로파일")
    @click.option("-r", "--region", "regions", multiple=True, help="리전 (다중 가능, 기본: 설정값)")
    @click.option(
        "--from-file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="AWS 수집 대신 저장된 인벤토리 JSON 사용",
    )
    @click.option("--timeout", type=float, default=None, help="관계 탐색 전체 타임아웃 (초)")
    @click.option("--workers", type=int, default=None, help="최대 동시 작업 수")
    @click.option("--app", "application", default=None, help="애플리케이션 이름 (app 태그) 필터")
    @click.option("-q", "--quiet", is_flag=True, help="최소 출력 모드")
    @click.option("-v", "--verbose", is_flag=True, help="INFO 로그 출력")
    @functools.wraps(func)
    def wrapper(
        profile: str | None,
        regions: tuple[str, ...],
        from_file: Path | None,
        timeout: float | None,
        workers: int | None,
        application: str | None,
        quiet: bool,
        verbose: bool,
        **kwargs: Any,
    ) -> Any:
        LogConfig(level="INFO" if verbose else settings.LOG_LEVEL).apply()
        options = RunOptions(
            profile=profile,
            regions=regions,
            from_file=from_file,
            timeout=timeout if timeout is not None else settings.DISCOVERY_TIMEOUT_SECONDS,
            workers=workers if workers is not None else settings.MAX_WORKERS,
            quiet=quiet,
            application=application,
        )
        try:
            with quiet_mode() if quiet else nullcontext():
                return func(options, **kwargs)
        except (TopologyError, ConfigError) as e:
            print_error(format_error_for_user(e))
            raise SystemExit(1) from e

    return wrapper


# =============================================================================
# 실행 단계
# =============================================================================


def _collect_inventory(options: RunOptions) -> list:
    from topology.inventory import InventoryCollector, load_inventory

    if options.from_file is not None:
        return load_inventory(options.from_file)

    config = options.config
    collector = InventoryCollector(options.session_factory(), config.regions, config)
    if options.quiet:
        return collector.list_resources()

    with get_progress() as progress:
        tracker = RichProgressTracker(progress, "인벤토리 수집")
        resources = collector.list_resources(progress_tracker=tracker)
    print_success(f"리소스 {len(resources)}개 수집 ({', '.join(config.regions)})")
    if collector.errors.has_errors:
        print_warning(f"부분 실패: {collector.errors.get_summary()}")
    return resources


def _discover(options: RunOptions) -> dict[str, Any]:
    """인벤토리 수집 → 관계 탐색

    Returns:
        {resources, relationships, externalResources, result}
    """
    from topology import AWSProvider, RelationshipDiscovery
    from topology.inventory import filter_by_application

    if not options.quiet:
        print_step_header(1, "인벤토리 수집 중...")
    all_resources = _collect_inventory(options)

    focus = filter_by_application(all_resources, options.application) if options.application else None
    if focus is not None and not focus and not options.quiet:
        print_warning(f"애플리케이션 '{options.application}'에 해당하는 리소스가 없습니다")

    if not options.quiet:
        print_step_header(2, "관계 탐색 중...")

    import boto3

    discovery = RelationshipDiscovery(
        all_resources,
        focus,
        provider=AWSProvider(boto3.Session(profile_name=options.profile)),
        config=options.config,
    )
    if options.quiet:
        result = discovery.run()
    else:
        with get_progress() as progress:
            discovery.progress_tracker = RichProgressTracker(progress, "관계 탐색")
            result = discovery.run()

    focus_ids = {r.id for r in focus} if focus is not None else None
    return {
        "resources": focus if focus is not None else all_resources,
        "relationships": result.relationships,
        "externalResources": [r for r in all_resources if r.id not in focus_ids] if focus_ids is not None else [],
        "result": result,
    }


def _print_summary(topology: dict[str, Any]) -> None:
    result = topology["result"]
    print_count_table("리소스", "Type", [r.type.value for r in topology["resources"]])
    print_count_table("관계", "Type", [r.type.value for r in topology["relationships"]])
    print_success(
        f"관계 {len(result.relationships)}건 (외부 리소스 {len(topology['externalResources'])}개, "
        f"{result.duration_ms / 1000:.1f}초)"
    )
    if result.timed_out:
        print_warning(f"타임아웃 리소스 {len(result.timed_out)}개 (관계 0개로 처리)")
    print_error_summary(result.errors)


# =============================================================================
# 명령어
# =============================================================================


@click.group()
@click.version_option(VERSION, prog_name="topology")
def cli() -> None:
    """AWS 리소스 토폴로지 CLI

    \b
    AWS 리소스 간 관계(routes_to, triggers, depends_on, connects_to, instance_of)를
    탐색하고 그래프/Excel/JSON으로 출력합니다.
    """


@cli.command("inventory")
@common_options
@click.option("-o", "--output", type=click.Path(path_type=Path), default=Path("output/inventory.json"))
def inventory_command(options: RunOptions, output: Path) -> None:
    """인벤토리 수집 후 JSON 저장 (--from-file 입력으로 재사용)"""
    from topology.inventory import filter_by_application, save_inventory

    resources = filter_by_application(_collect_inventory(options), options.application)
    path = save_inventory(resources, output)
    if not options.quiet:
        print_success(f"저장: {path}")


@cli.command("discover")
@common_options
@click.option("-o", "--output", type=click.Path(path_type=Path), default=None, help="결과 JSON 파일 경로")
def discover_command(options: RunOptions, output: Path | None) -> None:
    """관계 탐색 결과 요약 (선택적으로 JSON 저장)"""
    topology = _discover(options)
    result = topology["result"]

    document = {
        "resources": [r.to_dict() for r in topology["resources"]],
        "relationships": [r.to_dict() for r in topology["relationships"]],
        "externalResources": [r.to_dict() for r in topology["externalResources"]],
        "errors": [e.to_dict() for e in result.errors],
        "timedOut": list(result.timed_out),
    }

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")

    if options.quiet:
        if output is None:
            click.echo(json.dumps(document, ensure_ascii=False))
        return

    _print_summary(topology)
    if output is not None:
        print_success(f"저장: {output}")


@cli.command("graph")
@common_options
@click.option("-o", "--output", type=click.Path(path_type=Path), default=Path("output/topology.html"))
@click.option("--no-external", is_flag=True, help="애플리케이션 밖 리소스로 가는 관계 숨김")
@click.option("--no-open", is_flag=True, help="브라우저 자동 열기 안 함")
def graph_command(options: RunOptions, output: Path, no_external: bool, no_open: bool) -> None:
    """의존성 그래프 HTML 생성"""
    from topology.graph import build_graph_view, write_graph_html

    topology = _discover(options)
    view = build_graph_view(
        topology["resources"],
        topology["relationships"],
        topology["externalResources"],
        show_external=not no_external,
    )
    path = write_graph_html(view, output, auto_open=not no_open, subtitle=options.application or "All applications")

    if not options.quiet:
        _print_summary(topology)
        if view.empty_message:
            print_warning(view.empty_message)
        if view.diagnostics:
            print_warning(f"끝점을 찾을 수 없어 제외된 관계 {len(view.diagnostics)}건")
        print_success(f"그래프: {path}")


@cli.command("export")
@common_options
@click.option("-o", "--output", type=click.Path(path_type=Path), default=Path("output/topology.xlsx"))
def export_command(options: RunOptions, output: Path) -> None:
    """Excel 내보내기 (Resources / Relationships / Errors 시트)"""
    from topology.export import export_topology

    topology = _discover(options)
    path = export_topology(
        output,
        topology["resources"],
        topology["relationships"],
        topology["externalResources"],
        topology["result"].errors,
    )
    if not options.quiet:
        _print_summary(topology)
        print_success(f"Excel: {path}")


@cli.command("serve")
@common_options
@click.option("--host", default=None, help="바인드 주소 (기본: 설정값)")
@click.option("--port", type=int, default=None, help="포트 (기본: 설정값)")
def serve_command(options: RunOptions, host: str | None, port: int | None) -> None:
    """HTTP API 서버 실행 (uvicorn)"""
    import boto3
    import uvicorn

    from topology import AWSProvider
    from topology.api import create_app
    from topology.inventory import InventoryCollector, load_inventory

    config = options.config
    if options.from_file is not None:
        resources = load_inventory(options.from_file)

        def inventory() -> list:
            return resources

    else:
        inventory = InventoryCollector(options.session_factory(), config.regions, config).list_resources

    app = create_app(inventory, provider=AWSProvider(boto3.Session(profile_name=options.profile)), config=config)
    host = host or settings.HTTP_HOST
    port = port or settings.HTTP_PORT
    console.print(f"[bold]AWS Topology API[/bold] http://{host}:{port}/api/resource-relationships")
    uvicorn.run(app, host=host, port=port, log_level="info" if not options.quiet else "warning")


if __name__ == "__main__":
    cli()
