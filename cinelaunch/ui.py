import platform
from datetime import datetime
from typing import Dict, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import BANNER_ART, __version__
from .models import EpisodeSelector, MediaKind, ProgressEntry, ResolvedTitle


def banner(console: Console, theme: Dict):
    grid = Table.grid(padding=(0, 2))
    grid.add_column()
    grid.add_column(justify="left", vertical="middle")

    info = Text()
    info.append("cinelaunch", style=f"bold {theme['primary']}")
    info.append(f"  v{__version__}\n", style="dim")
    info.append("💻 ", style=theme["accent"])
    info.append("OS  ", style=f"bold {theme['secondary']}")
    info.append(f"│ {platform.system() or 'Unknown'}\n")
    info.append("🎬 search • pick • play in VLC", style="dim")

    grid.add_row(Text(BANNER_ART, style=theme["primary"]), info)
    console.print(grid)
    console.print("")


def _timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def history_table(entries: Sequence[ProgressEntry], theme: Dict) -> Table:
    table = Table(
        title="Latest Progress",
        title_style=f"bold {theme['primary']}",
        title_justify="left",
        show_header=False,
        box=None,
        padding=(0, 2),
    )
    table.add_column(style=f"bold {theme['accent']}", no_wrap=True)
    table.add_column()
    for entry in entries:
        title = Text(entry.display_title, style=f"underline {theme['secondary']}")
        title.append(f" ({entry.release_year})", style="")
        if entry.episode:
            title.append(f" - {entry.episode.label}", style="dim")
        table.add_row(_timestamp(entry.last_played), title)
    return table


def media_info_panel(title: ResolvedTitle, episode: Optional[EpisodeSelector], theme: Dict) -> Panel:
    type_emoji = "🎬" if title.media_kind is MediaKind.MOVIE else "📺"
    lines = [
        f"[bold]Type:[/bold] {type_emoji} {title.media_kind.value.title()}",
        f"[bold]Title:[/bold] [{theme['primary']}]{escape(title.display_title)}[/{theme['primary']}]",
        f"[bold]Release Year:[/bold] {title.release_year}",
        f"[bold]IMDb:[/bold] [dim]{title.external_id}[/dim]",
    ]
    if episode:
        lines.append(f"[bold]Season:[/bold] {episode.season_number}")
        lines.append(f"[bold]Episode:[/bold] {episode.episode_number}")
        if episode.episode_name:
            lines.append(f"[bold]Episode Name:[/bold] {escape(episode.episode_name)}")

    return Panel(
        "\n".join(lines),
        title=f"[bold {theme['primary']}]Media Info[/bold {theme['primary']}]",
        border_style=theme["accent"],
        padding=(0, 2),
    )
