from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MediaKind(str, Enum):
    MOVIE = "movie"
    SERIES = "series"

    @property
    def tmdb_type(self) -> str:
        return "tv" if self is MediaKind.SERIES else "movie"

    @classmethod
    def from_tmdb(cls, media_type: Optional[str]) -> Optional["MediaKind"]:
        return {"movie": cls.MOVIE, "tv": cls.SERIES}.get(media_type or "")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TitleCandidate(_Frozen):
    search_id: int
    display_name: str
    media_kind: MediaKind
    release_year: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.display_name} ({self.release_year or 'N/A'})"


class ResolvedTitle(_Frozen):
    search_id: int
    external_id: str = Field(min_length=1)
    display_title: str
    release_year: str = "N/A"
    media_kind: MediaKind


class SeasonInfo(_Frozen):
    season_number: int


class EpisodeInfo(_Frozen):
    episode_number: int
    name: Optional[str] = None


class EpisodeSelector(_Frozen):
    season_number: int
    episode_number: int
    episode_name: Optional[str] = None

    @property
    def label(self) -> str:
        text = f"Season {self.season_number} Episode {self.episode_number}"
        if self.episode_name:
            text += f" - {self.episode_name}"
        return text


class StreamVariant(_Frozen):
    quality_label: str
    source_type: str = "unknown"
    playback_url: str = Field(min_length=1)

    @property
    def label(self) -> str:
        return f"{self.quality_label} ({self.source_type})"


class CaptionTrack(_Frozen):
    language_code: str
    source_type: str = "unknown"
    download_url: str = Field(min_length=1)
    origin_flag: Optional[str] = None

    @property
    def label(self) -> str:
        text = f"{self.language_code} ({self.source_type})"
        if self.origin_flag:
            text += f" {self.origin_flag}"
        return text


class StreamLookup(_Frozen):
    variants: Dict[str, StreamVariant] = Field(default_factory=dict)
    captions: List[CaptionTrack] = Field(default_factory=list)
    media_summary: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> "StreamLookup":
        return cls()


class PlaybackSession(_Frozen):
    title: ResolvedTitle
    episode: Optional[EpisodeSelector] = None
    variant: StreamVariant
    caption: Optional[CaptionTrack] = None


class ProgressEntry(_Frozen):
    title_id: int
    display_title: str
    release_year: str = "N/A"
    media_kind: MediaKind
    episode: Optional[EpisodeSelector] = None
    last_played: Optional[datetime] = None

    @field_validator("last_played")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # older history files may hold naive timestamps
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_session(cls, session: PlaybackSession) -> "ProgressEntry":
        title = session.title
        return cls(
            title_id=title.search_id,
            display_title=title.display_title,
            release_year=title.release_year,
            media_kind=title.media_kind,
            episode=session.episode,
        )

    @property
    def label(self) -> str:
        text = f"{self.display_title} ({self.release_year})"
        if self.episode:
            text += f" - {self.episode.label}"
        return text
