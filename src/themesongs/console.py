"""Rich console output for the themesongs CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from themesongs.models import DownloadSummary, NormalizeSummary, UrlResolution

THEMESONGS_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "dim": "dim",
        "path": "cyan",
        "series": "magenta",
        "url": "blue underline",
    }
)

# Primary console for normal output
console = Console(theme=THEMESONGS_THEME, stderr=False)

# Error console for stderr output
err_console = Console(theme=THEMESONGS_THEME, stderr=True)


def print_success(message: str) -> None:
    console.print(f"[success]✓[/] {message}")


def print_warning(message: str) -> None:
    console.print(f"[warning]⚠[/] {message}")


def print_error(message: str) -> None:
    err_console.print(f"[error]✗ {message}[/]")


def print_info(message: str) -> None:
    console.print(f"[info]ℹ[/] {message}")


def print_download_summary(summary: DownloadSummary, *, dry_run: bool = False) -> None:
    """Render the outcome of a download batch."""
    table = Table(title="Theme song downloads", show_header=True, header_style="bold")
    table.add_column("Outcome")
    table.add_column("Series", justify="right")

    if dry_run:
        table.add_row("[info]Would download[/]", str(len(summary.planned)))
    else:
        table.add_row("[success]Downloaded[/]", str(len(summary.downloaded)))
    table.add_row("[dim]Already have a theme song[/]", str(len(summary.skipped_existing)))
    table.add_row("[warning]Missing provider ids[/]", str(len(summary.skipped_missing_ids)))
    table.add_row("[error]Failed[/]", str(len(summary.failed)))
    console.print(table)

    for name, url in summary.planned.items():
        console.print(f"  [series]{escape(name)}[/] → [url]{escape(url)}[/]")
    for name, error in summary.failed.items():
        console.print(f"  [error]✗[/] [series]{escape(name)}[/]: {escape(error)}")
    if summary.cancelled:
        print_warning("Batch cancelled before all series were processed")


def print_normalize_summary(summary: NormalizeSummary, *, dry_run: bool = False) -> None:
    """Render the outcome of a normalization batch."""
    table = Table(title="Theme song normalization", show_header=True, header_style="bold")
    table.add_column("Outcome")
    table.add_column("Files", justify="right")

    if dry_run:
        table.add_row("[info]Would normalize[/]", str(len(summary.planned)))
    else:
        table.add_row("[success]Normalized[/]", str(len(summary.normalized)))
        table.add_row("[error]Failed[/]", str(len(summary.failed)))
    table.add_row("[dim]Series without a directory[/]", str(summary.series_skipped))
    console.print(table)

    for path in summary.planned:
        console.print(f"  [path]{escape(str(path))}[/]")
    for job in summary.failed:
        status = job.status.value if job.status else "unknown"
        console.print(f"  [error]✗[/] [path]{escape(str(job.source))}[/] ({status})")
    if summary.cancelled:
        print_warning("Batch cancelled before all files were processed")


def print_resolution_table(rows: list[tuple[str, bool, UrlResolution | None]]) -> None:
    """Render URL resolution previews: (series name, has theme song, resolution)."""
    table = Table(title="Theme song URLs", show_header=True, header_style="bold")
    table.add_column("Series", style="series")
    table.add_column("Status")
    table.add_column("URL / missing ids", overflow="fold")

    for name, has_theme_song, resolution in rows:
        if has_theme_song:
            table.add_row(escape(name), "[dim]has theme song[/]", "")
        elif resolution is None:
            table.add_row(escape(name), "[error]error[/]", "")
        elif resolution.ok:
            table.add_row(escape(name), "[success]ok[/]", f"[url]{escape(resolution.url or '')}[/]")
        else:
            table.add_row(escape(name), "[warning]missing ids[/]", escape(", ".join(resolution.missing)))

    console.print(table)
