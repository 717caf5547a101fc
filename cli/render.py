"""
Вывод в терминал через rich: цвета, заголовки, таблицы и подтверждения.
Цвет отключается самим rich, если вывод не в терминал или задан NO_COLOR.
"""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.padding import Padding
from rich.prompt import Confirm
from rich.table import Table


console = Console(highlight=False)
error_console = Console(stderr=True, highlight=False)

LEFT_PAD = 2

ACCENT = "rgb(128,240,151)"
NOW_ACCENT = "rgb(255,214,102)"


def _markup(style: str, value) -> str:
    return f"[{style}]{value}[/]"


def accent(value) -> str:
    return _markup(ACCENT, value)


def now_accent(value) -> str:
    return _markup(NOW_ACCENT, value)


def dim(value) -> str:
    return _markup("dim", value)


def bold(value) -> str:
    return _markup("bold", value)


def green(value) -> str:
    return _markup("green", value)


def yellow(value) -> str:
    return _markup("yellow", value)


def cyan(value) -> str:
    return _markup("cyan", value)


def plain(value) -> str:
    """Текст из внешних данных (локация, пути) без разбора разметки."""
    return escape(str(value))


def render_line(text: str = ""):
    console.print(f"{' ' * LEFT_PAD}{text}" if text else "", soft_wrap=True)


def render_error(message: str):
    error_console.print(message, style="red", markup=False)


def render_header(title: str):
    """Заголовок экрана: название команды и разделитель."""
    render_line()
    render_line(accent(bold(title.upper())))
    render_line(accent("═" * len(title)))
    render_line()


def render_table(headers: list[str], rows: list[list[str]], left_columns: int = 1):
    """Таблица: первые left_columns колонок выровнены влево, остальные по центру."""
    table = Table(
        box=box.SIMPLE_HEAD,
        show_edge=False,
        header_style="dim",
        border_style="dim",
        pad_edge=False,
    )
    for idx, header in enumerate(headers):
        table.add_column(header, justify="left" if idx < left_columns else "center", no_wrap=True)
    for row in rows:
        table.add_row(*row)
    console.print(Padding.indent(table, LEFT_PAD))


def check_mark(done: bool) -> str:
    return accent("✓") if done else dim("·")


def grid_cell(done: bool) -> str:
    return accent("■") if done else dim("□")


def confirm(message: str, assume_yes: bool = False) -> bool:
    """Вопрос да/нет. По умолчанию нет."""
    if assume_yes:
        return True
    try:
        return Confirm.ask(message, default=False, console=console)
    except EOFError:
        return False
