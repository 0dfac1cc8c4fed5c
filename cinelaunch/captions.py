import logging
import os
import uuid
from pathlib import Path
from urllib.parse import unquote, urlparse

from curl_cffi import requests

from .config import IMPERSONATE, REQUEST_TIMEOUT, SUBTITLE_DIR
from .errors import DownloadFailed

logger = logging.getLogger(__name__)


def caption_filename(download_url: str) -> str:
    name = unquote(urlparse(download_url).path.rstrip("/").split("/")[-1])
    if not name or name in (".", ".."):
        raise DownloadFailed(f"cannot derive a file name from {download_url}")
    return name


class CaptionFetcher:
    """
    Downloads caption files into a scratch directory.

    A file that already exists with a non-zero size is reused as is;
    nothing checks whether it is stale. Downloads land in a temporary
    sibling first and are renamed into place, so two runs fetching the
    same file at once just download it twice.
    """

    def __init__(self, scratch_dir: Path = SUBTITLE_DIR, timeout: float = REQUEST_TIMEOUT, session=None):
        self.scratch_dir = Path(scratch_dir)
        self.timeout = timeout
        self.session = session or requests.Session(impersonate=IMPERSONATE)

    def destination(self, download_url: str) -> Path:
        return self.scratch_dir / caption_filename(download_url)

    def fetch(self, download_url: str) -> Path:
        target = self.destination(download_url)
        if target.is_file() and target.stat().st_size > 0:
            logger.debug("Reusing cached caption %s", target)
            return target

        partial = target.with_name(f".{target.name}.{uuid.uuid4().hex}.part")
        try:
            self.scratch_dir.mkdir(parents=True, exist_ok=True)
            response = self.session.get(download_url, timeout=self.timeout)
            response.raise_for_status()
            if not response.content:
                logger.error("Caption download %s returned an empty body", download_url)
                raise DownloadFailed(f"caption at {download_url} is empty")
            with open(partial, "wb") as sink:
                sink.write(response.content)
            os.replace(partial, target)
        except (requests.RequestsError, OSError) as e:
            logger.error("Caption download %s failed: %s", download_url, e)
            raise DownloadFailed(f"could not download caption: {e}") from e
        finally:
            partial.unlink(missing_ok=True)

        logger.info("Downloaded caption %s", target)
        return target
