import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from .captions import CaptionFetcher
from .config import CAPTION_LANGUAGES, PREFERRED_QUALITY, THEMES, DEFAULT_THEME
from .errors import (
    CinelaunchError, DownloadFailed, NoResultsFound, NoStreamsAvailable, SelectionCancelled,
)
from .metadata import MetadataResolver
from .models import (
    CaptionTrack, EpisodeSelector, MediaKind, PlaybackSession, ProgressEntry,
    ResolvedTitle, StreamLookup, StreamVariant, TitleCandidate,
)
from .player import PlaybackLauncher
from .progress import ProgressStore
from .prompter import Choice, SelectionPrompter
from .streams import StreamSourceClient
from .ui import history_table, media_info_panel

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    TITLE_SELECTED = "title_selected"
    SERIES_DISAMBIGUATION = "series_disambiguation"
    STREAMS_FETCHED = "streams_fetched"
    SELECTION_MADE = "selection_made"
    LAUNCHED = "launched"
    PROGRESS_RECORDED = "progress_recorded"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class SessionOutcome:
    state: SessionState
    reached: SessionState
    session: Optional[PlaybackSession] = None
    caption_path: Optional[Path] = None
    failed_step: Optional[str] = None
    error: Optional[CinelaunchError] = None

    @property
    def ok(self) -> bool:
        return self.state is SessionState.DONE


def order_variants(variants: Mapping[str, StreamVariant], preferred: str) -> List[StreamVariant]:
    ordered = [v for label, v in variants.items() if label != preferred]
    if preferred in variants:
        ordered.insert(0, variants[preferred])
    return ordered


def filter_captions(tracks: Iterable[CaptionTrack], accepted: Iterable[str]) -> List[CaptionTrack]:
    accepted = set(accepted)
    return [t for t in tracks if t.language_code in accepted]


class SessionOrchestrator:
    """
    One pass of the playback pipeline: search, resolve, pick a stream and
    caption, launch the player, record progress.

    Every step either moves the session forward or raises a
    ``CinelaunchError``; ``run`` turns that into an aborted outcome and a
    message naming the step. Nothing is retried.
    """

    def __init__(
        self,
        metadata: MetadataResolver,
        streams: StreamSourceClient,
        captions: CaptionFetcher,
        launcher: PlaybackLauncher,
        progress: ProgressStore,
        prompter: SelectionPrompter,
        console: Console,
        preferred_quality: str = PREFERRED_QUALITY,
        caption_languages: Sequence[str] = tuple(CAPTION_LANGUAGES),
        theme: Optional[Dict] = None,
    ):
        self.metadata = metadata
        self.streams = streams
        self.captions = captions
        self.launcher = launcher
        self.progress = progress
        self.prompter = prompter
        self.console = console
        self.preferred_quality = preferred_quality
        self.caption_languages = list(caption_languages)
        self.theme = theme or THEMES[DEFAULT_THEME]
        self.state = SessionState.IDLE
        self.step = "startup"

    def log(self, emoji: str, message: str, style: str = "dim"):
        self.console.print(f"[{style}]{emoji} {escape(message)}[/{style}]")

    @contextmanager
    def _spinner(self, description: str):
        with Progress(
            SpinnerColumn("dots2"),
            TextColumn("[progress.description]{task.description}"),
            console=self.console,
            transient=True,
        ) as progress:
            progress.add_task(f"[{self.theme['primary']}]{description}", total=None)
            yield

    def _enter(self, state: SessionState):
        logger.debug("Session %s -> %s", self.state.value, state.value)
        self.state = state

    async def run(self) -> SessionOutcome:
        self.state = SessionState.IDLE
        session = None
        caption_path = None
        try:
            suggestions = self._show_history()
            candidate = await self._search(suggestions)
            title = await self._resolve(candidate)

            episode = None
            if title.media_kind is MediaKind.SERIES:
                episode = await self._pick_episode(title)
            self.console.print(media_info_panel(title, episode, self.theme))

            lookup = await self._fetch_streams(title, episode)
            session = self._select(title, episode, lookup)
            caption_path = await self._launch(session)
            await self._record(session)
        except CinelaunchError as e:
            return self._abort(e, session, caption_path)

        reached = self.state
        self._enter(SessionState.DONE)
        return SessionOutcome(
            state=SessionState.DONE,
            reached=reached,
            session=session,
            caption_path=caption_path,
        )

    def _abort(self, error: CinelaunchError, session, caption_path) -> SessionOutcome:
        reached = self.state
        logger.error("Session aborted during %s (%s): %s", self.step, type(error).__name__, error)
        if isinstance(error, SelectionCancelled):
            self.log("↩", f"Nothing selected during {self.step}, exiting")
        else:
            self.log("✗", f"{self.step.capitalize()} failed: {error}", f"bold {self.theme['error']}")
        self._enter(SessionState.ABORTED)
        return SessionOutcome(
            state=SessionState.ABORTED,
            reached=reached,
            session=session,
            caption_path=caption_path,
            failed_step=self.step,
            error=error,
        )

    def _show_history(self) -> List[str]:
        self.step = "history"
        entries = self.progress.load_all()
        if entries:
            self.console.print(history_table(entries, self.theme))
            self.console.print("")
        return self.progress.suggestions()

    async def _search(self, suggestions: List[str]) -> TitleCandidate:
        self.step = "search"
        self._enter(SessionState.SEARCHING)
        query = self.prompter.ask_text("Enter the title to search", suggestions)
        if not query:
            raise SelectionCancelled("no search text entered")

        with self._spinner(f"Searching for \"{query}\"..."):
            candidates = await asyncio.to_thread(self.metadata.search, query)
        if not candidates:
            raise NoResultsFound(f"no results found for \"{query}\"")

        def fmt(c: TitleCandidate) -> str:
            emoji = "🎬" if c.media_kind is MediaKind.MOVIE else "📺"
            return f"{emoji} {c.media_kind.value.title().ljust(7)}│ {c.label}"

        self.step = "title selection"
        candidate = self.prompter.choose("Select a title", [Choice(fmt(c), c) for c in candidates])
        if candidate is None:
            raise SelectionCancelled("no title selected")
        return candidate

    async def _resolve(self, candidate: TitleCandidate) -> ResolvedTitle:
        self.step = "title details"
        with self._spinner("Fetching details..."):
            title = await self.metadata.resolve_details(candidate)
        self._enter(SessionState.TITLE_SELECTED)
        logger.info("Resolved %s -> %s", candidate.label, title.external_id)
        return title

    async def _pick_episode(self, title: ResolvedTitle) -> EpisodeSelector:
        self.step = "season selection"
        self._enter(SessionState.SERIES_DISAMBIGUATION)
        with self._spinner("Loading seasons..."):
            seasons = await asyncio.to_thread(self.metadata.list_seasons, title)

        if len(seasons) == 1:
            season = seasons[0].season_number
            self.log("📂", f"Auto-selecting Season {season}")
        else:
            season = self.prompter.choose(
                "Select season",
                [Choice(f"📂 Season {s.season_number}", s.season_number) for s in seasons],
            )
            if season is None:
                raise SelectionCancelled("no season selected")

        self.step = "episode selection"
        with self._spinner("Loading episodes..."):
            episodes = await asyncio.to_thread(self.metadata.list_episodes, title, season)

        def fmt(e) -> str:
            return f"📺 Episode {e.episode_number}" + (f" - {e.name}" if e.name else "")

        episode = self.prompter.choose("Select episode", [Choice(fmt(e), e) for e in episodes])
        if episode is None:
            raise SelectionCancelled("no episode selected")

        return EpisodeSelector(
            season_number=season,
            episode_number=episode.episode_number,
            episode_name=episode.name,
        )

    async def _fetch_streams(self, title: ResolvedTitle, episode: Optional[EpisodeSelector]) -> StreamLookup:
        self.step = "stream lookup"
        season_number = episode.season_number if episode else None
        episode_number = episode.episode_number if episode else None
        with self._spinner("Getting streams..."):
            lookup = await asyncio.to_thread(
                self.streams.lookup, title.external_id, season_number, episode_number
            )
        if not lookup.variants:
            raise NoStreamsAvailable("nothing playable was found for this content")
        self._enter(SessionState.STREAMS_FETCHED)
        return lookup

    def _select(self, title: ResolvedTitle, episode: Optional[EpisodeSelector], lookup: StreamLookup) -> PlaybackSession:
        self.step = "stream selection"
        variants = order_variants(lookup.variants, self.preferred_quality)
        variant = self.prompter.choose("Select a stream", [Choice(v.label, v) for v in variants])
        if variant is None:
            raise SelectionCancelled("no stream selected")

        self.step = "caption selection"
        caption = self._select_caption(lookup.captions)

        session = PlaybackSession(title=title, episode=episode, variant=variant, caption=caption)
        self._enter(SessionState.SELECTION_MADE)
        return session

    def _select_caption(self, tracks: Sequence[CaptionTrack]) -> Optional[CaptionTrack]:
        matching = filter_captions(tracks, self.caption_languages)
        if not matching:
            self.log("⚠️", f"No captions available in {', '.join(self.caption_languages) or 'any accepted language'}", self.theme["error"])
            return None
        if len(matching) == 1:
            return matching[0]

        caption = self.prompter.choose("Select a caption", [Choice(t.label, t) for t in matching])
        if caption is None:
            self.log("↩", "No caption selected, playing without captions")
        return caption

    async def _launch(self, session: PlaybackSession) -> Optional[Path]:
        self.step = "player launch"
        self.launcher.resolve_player_path()

        caption_path = None
        if session.caption:
            self.step = "caption download"
            try:
                with self._spinner("Downloading caption..."):
                    caption_path = await asyncio.to_thread(self.captions.fetch, session.caption.download_url)
            except DownloadFailed as e:
                self.log("⚠️", f"Caption download failed, playing without captions: {e}", self.theme["error"])

        self.step = "player launch"
        self.log("▶️", "Launching player...")
        self.launcher.launch(session.variant.playback_url, caption_path)
        self._enter(SessionState.LAUNCHED)
        return caption_path

    async def _record(self, session: PlaybackSession):
        self.step = "progress save"
        try:
            await asyncio.to_thread(self.progress.record, ProgressEntry.from_session(session))
        except OSError as e:
            logger.error("Could not write progress file: %s", e)
            self.log("⚠️", f"Could not save progress: {e}", self.theme["error"])
            return
        self._enter(SessionState.PROGRESS_RECORDED)
