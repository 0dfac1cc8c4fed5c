#!/usr/bin/env python3
import asyncio
import logging
import sys

from rich.console import Console
from rich.markup import escape

from .captions import CaptionFetcher
from .config import (
    Config, PLAYER_LOG_FILE, PROGRESS_FILE, SUBTITLE_DIR, setup_logging,
)
from .errors import ConfigError
from .metadata import MetadataResolver, TmdbClient
from .player import PlaybackLauncher
from .progress import ProgressStore
from .prompter import FzfPrompter
from .session import SessionOrchestrator
from .streams import StreamSourceClient
from .ui import banner

CONSOLE = Console()

logger = logging.getLogger(__name__)


def check_deps(console: Console = CONSOLE):
    if not FzfPrompter.available():
        console.print("[bold red]✗ Missing dependency:[/bold red] fzf")
        console.print("[dim]Install with: sudo apt install fzf[/dim]")
        sys.exit(1)


def build_orchestrator(config: Config, console: Console = CONSOLE) -> SessionOrchestrator:
    theme = config.get_theme()
    timeout = config.request_timeout
    return SessionOrchestrator(
        metadata=MetadataResolver(TmdbClient(config.require_api_key(), timeout=timeout)),
        streams=StreamSourceClient(config.stream_service_url, timeout=timeout),
        captions=CaptionFetcher(SUBTITLE_DIR, timeout=timeout),
        launcher=PlaybackLauncher(log_path=PLAYER_LOG_FILE),
        progress=ProgressStore(PROGRESS_FILE),
        prompter=FzfPrompter(console, theme),
        console=console,
        preferred_quality=config.preferred_quality,
        caption_languages=config.caption_languages,
        theme=theme,
    )


def main():
    config = Config()
    setup_logging(config.log_level)
    check_deps()

    try:
        orchestrator = build_orchestrator(config)
    except ConfigError as e:
        CONSOLE.print(f"[bold red]✗ {e}[/bold red]")
        sys.exit(2)

    banner(CONSOLE, config.get_theme())
    try:
        outcome = asyncio.run(orchestrator.run())
    except KeyboardInterrupt:
        CONSOLE.print("\n[dim]Interrupted by user[/dim]")
        sys.exit(130)
    except Exception as e:
        logger.exception("Unexpected error during session")
        CONSOLE.print(f"[bold red]✗ Fatal error:[/bold red] {escape(str(e))}")
        sys.exit(1)

    logger.info("Session finished: %s (last state %s)", outcome.state.value, outcome.reached.value)
    sys.exit(0 if outcome.ok else 1)


if __name__ == "__main__":
    main()
