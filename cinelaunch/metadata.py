import asyncio
import logging
from typing import Any, Dict, List

from curl_cffi import requests

from .config import IMPERSONATE, REQUEST_TIMEOUT, TMDB_BASE_URL
from .errors import MissingExternalId, NoEpisodesFound, NoSeasonsFound, UpstreamUnavailable
from .models import EpisodeInfo, MediaKind, ResolvedTitle, SeasonInfo, TitleCandidate

logger = logging.getLogger(__name__)


def release_year(data: Dict[str, Any]) -> str:
    date = data.get("release_date") or data.get("first_air_date")
    if date and len(date) >= 4:
        return date[:4]
    return "N/A"


class TmdbClient:
    """Thin transport over the TMDB v3 REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = TMDB_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        session=None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session(impersonate=IMPERSONATE)

    def _get(self, path: str, **params) -> Dict[str, Any]:
        query = {"api_key": self.api_key, **params}
        try:
            response = self.session.get(f"{self.base_url}{path}", params=query, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestsError, ValueError) as e:
            logger.error("TMDB request %s failed: %s", path, e)
            raise UpstreamUnavailable(f"metadata provider request {path} failed: {e}") from e

    def search_multi(self, query: str) -> List[Dict[str, Any]]:
        return self._get("/search/multi", query=query).get("results") or []

    def details(self, kind: MediaKind, tmdb_id: int) -> Dict[str, Any]:
        return self._get(f"/{kind.tmdb_type}/{tmdb_id}")

    def external_ids(self, kind: MediaKind, tmdb_id: int) -> Dict[str, Any]:
        return self._get(f"/{kind.tmdb_type}/{tmdb_id}/external_ids")

    def season(self, tmdb_id: int, season_number: int) -> Dict[str, Any]:
        return self._get(f"/tv/{tmdb_id}/season/{season_number}")


class MetadataResolver:

    def __init__(self, client: TmdbClient):
        self.client = client

    def search(self, query: str) -> List[TitleCandidate]:
        candidates = []
        for result in self.client.search_multi(query):
            kind = MediaKind.from_tmdb(result.get("media_type"))
            if kind is None or result.get("id") is None:
                # people and anything else that is not a playable title
                continue
            candidates.append(TitleCandidate(
                search_id=result["id"],
                display_name=result.get("title") or result.get("name") or "Untitled",
                media_kind=kind,
                release_year=release_year(result),
            ))

        logger.info("Search %r returned %d titles", query, len(candidates))
        return candidates

    async def resolve_details(self, candidate: TitleCandidate) -> ResolvedTitle:
        kind, tmdb_id = candidate.media_kind, candidate.search_id
        details, external = await asyncio.gather(
            asyncio.to_thread(self.client.details, kind, tmdb_id),
            asyncio.to_thread(self.client.external_ids, kind, tmdb_id),
        )

        imdb_id = (external.get("imdb_id") or "").strip()
        if not imdb_id:
            logger.warning("No IMDb id for %s %s", kind.value, tmdb_id)
            raise MissingExternalId(f"\"{candidate.display_name}\" has no IMDb id")

        return ResolvedTitle(
            search_id=tmdb_id,
            external_id=imdb_id,
            display_title=details.get("title") or details.get("name") or candidate.display_name,
            release_year=release_year(details),
            media_kind=kind,
        )

    def list_seasons(self, title: ResolvedTitle) -> List[SeasonInfo]:
        details = self.client.details(MediaKind.SERIES, title.search_id)
        seasons = [
            SeasonInfo(season_number=s["season_number"])
            for s in details.get("seasons") or []
            if s.get("season_number")
        ]
        if not seasons:
            raise NoSeasonsFound(f"no seasons found for \"{title.display_title}\"")
        return seasons

    def list_episodes(self, title: ResolvedTitle, season_number: int) -> List[EpisodeInfo]:
        season = self.client.season(title.search_id, season_number)
        episodes = [
            EpisodeInfo(episode_number=e["episode_number"], name=e.get("name"))
            for e in season.get("episodes") or []
            if e.get("episode_number") is not None
        ]
        if not episodes:
            raise NoEpisodesFound(
                f"no episodes found for \"{title.display_title}\" season {season_number}"
            )
        return episodes
