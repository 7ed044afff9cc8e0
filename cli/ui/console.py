"""
cli/ui/console.py - Rich 콘솔 출력

CLI 명령어가 공유하는 전역 console, 진행률 표시, 상태/표 출력 함수
"""

import logging
import platform
from collections import Counter
from collections.abc import Sequence

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

for _noisy in ("botocore.credentials", "botocore.httpchecksum", "botocore.loaders", "botocore.session"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)


def get_console() -> Console:
    # Windows 기본 터미널은 이모지 폭 계산이 맞지 않음
    return Console(highlight=False, soft_wrap=True, emoji=platform.system() != "Windows")


console = get_console()


def get_progress() -> Progress:
    """완료되면 사라지는 진행률 표시 (스피너, 막대, N/M, 경과 시간)"""
    columns = (
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
    )
    return Progress(*columns, console=console, transient=True)


class RichProgressTracker:
    """ParallelTaskExecutor 진행 콜백을 Progress 작업 하나로 표시

    Example:
        with get_progress() as progress:
            tracker = RichProgressTracker(progress, "관계 탐색")
            RelationshipDiscovery(resources, progress_tracker=tracker).run()
    """

    def __init__(self, progress: Progress, description: str):
        self.progress = progress
        self.task_id = progress.add_task(description, total=None)
        self.failed = 0

    def set_total(self, total: int) -> None:
        self.progress.update(self.task_id, total=total)

    def on_complete(self, success: bool) -> None:
        self.failed += 0 if success else 1
        self.progress.advance(self.task_id)


# 상태 줄: (기호, 색)
_STATUS = {
    "success": ("✓", "green"),
    "error": ("✗", "red"),
    "warning": ("!", "yellow"),
    "info": ("•", "blue"),
}


def _status(kind: str, message: str) -> None:
    symbol, color = _STATUS[kind]
    console.print(f"[{color}]{symbol} {message}[/{color}]")


def print_success(message: str) -> None:
    _status("success", message)


def print_error(message: str) -> None:
    _status("error", message)


def print_warning(message: str) -> None:
    _status("warning", message)


def print_info(message: str) -> None:
    _status("info", message)


def print_step_header(step: int, message: str) -> None:
    console.print(f"[bold cyan]Step {step}: {message}[/bold cyan]")


def print_table(title: str, columns: Sequence[str], rows: Sequence[Sequence[object]]) -> None:
    table = Table(*columns, title=title, header_style="bold")
    for row in rows:
        table.add_row(*map(str, row))
    console.print(table)


def print_count_table(title: str, label: str, values: Sequence[str]) -> None:
    """값별 건수 표 (키 오름차순)"""
    print_table(title, [label, "Count"], sorted(Counter(values).items()))


def print_error_summary(errors: Sequence[object], limit: int = 10) -> None:
    """CollectedError 목록 중 앞쪽 limit건만 출력"""
    if not errors:
        return
    print_warning(f"리소스 단위 실패 {len(errors)}건 (해당 리소스는 관계 0개로 처리)")
    for error in errors[:limit]:
        console.print(f"   [dim]{error}[/dim]")
    hidden = len(errors) - limit
    if hidden > 0:
        console.print(f"   [dim]... 외 {hidden}건[/dim]")
