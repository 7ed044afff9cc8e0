"""
cli/ui - 콘솔 출력 컴포넌트 (Rich)
"""

from .console import (
    RichProgressTracker,
    console,
    get_console,
    get_progress,
    print_count_table,
    print_error,
    print_error_summary,
    print_info,
    print_step_header,
    print_success,
    print_table,
    print_warning,
)

__all__: list[str] = [
    "RichProgressTracker",
    "console",
    "get_console",
    "get_progress",
    "print_count_table",
    "print_error",
    "print_error_summary",
    "print_info",
    "print_step_header",
    "print_success",
    "print_table",
    "print_warning",
]
