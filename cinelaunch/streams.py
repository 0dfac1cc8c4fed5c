import logging
from typing import Any, Dict, List, Optional

from curl_cffi import requests
from pydantic import ValidationError

from .config import IMPERSONATE, REQUEST_TIMEOUT, STREAM_SERVICE_URL
from .errors import UpstreamUnavailable
from .models import CaptionTrack, StreamLookup, StreamVariant

logger = logging.getLogger(__name__)


def _parse_variants(qualities: Any) -> Dict[str, StreamVariant]:
    variants = {}
    if not isinstance(qualities, dict):
        return variants
    for label, raw in qualities.items():
        if not isinstance(raw, dict):
            continue
        try:
            variants[str(label)] = StreamVariant(
                quality_label=str(label),
                source_type=raw.get("type") or "unknown",
                playback_url=raw.get("url") or "",
            )
        except ValidationError as e:
            logger.warning("Skipping stream variant %s: %s", label, e)
    return variants


def _parse_captions(captions: Any) -> List[CaptionTrack]:
    tracks = []
    if not isinstance(captions, list):
        return tracks
    for raw in captions:
        if not isinstance(raw, dict):
            continue
        try:
            tracks.append(CaptionTrack(
                language_code=raw.get("language") or "",
                source_type=raw.get("type") or "unknown",
                download_url=raw.get("url") or "",
                origin_flag="opensubtitles" if raw.get("opensubtitles") else None,
            ))
        except ValidationError as e:
            logger.warning("Skipping caption track %s: %s", raw.get("url"), e)
    return tracks


class StreamSourceClient:
    """Client for the local stream lookup service, addressed by IMDb id."""

    def __init__(self, base_url: str = STREAM_SERVICE_URL, timeout: float = REQUEST_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session(impersonate=IMPERSONATE)

    def endpoint(self, external_id: str, season: Optional[int] = None, episode: Optional[int] = None) -> str:
        if (season is None) != (episode is None):
            raise ValueError("season and episode must be given together")
        if season is None:
            return f"{self.base_url}/{external_id}"
        return f"{self.base_url}/{external_id}/{season}/{episode}"

    def lookup(self, external_id: str, season: Optional[int] = None, episode: Optional[int] = None) -> StreamLookup:
        url = self.endpoint(external_id, season, episode)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestsError as e:
            logger.error("Stream lookup %s failed: %s", url, e)
            raise UpstreamUnavailable(f"stream lookup failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            logger.warning("Stream lookup %s returned a non-JSON body", url)
            return StreamLookup.empty()

        stream = data.get("stream") if isinstance(data, dict) else None
        if not isinstance(stream, dict):
            logger.warning("Stream lookup %s returned no stream payload", url)
            return StreamLookup.empty()

        media = data.get("media")
        lookup = StreamLookup(
            variants=_parse_variants(stream.get("qualities")),
            captions=_parse_captions(stream.get("captions")),
            media_summary=media if isinstance(media, dict) else {},
        )
        logger.info(
            "Stream lookup %s: %d variants, %d captions",
            url, len(lookup.variants), len(lookup.captions),
        )
        return lookup
