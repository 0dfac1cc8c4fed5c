import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ConfigError

# --- Version & Metadata ---
__version__ = "0.1"
__author__ = "cinelaunch contributors"
__license__ = "GPL-3.0"

logger = logging.getLogger(__name__)

# --- Directories ---
APP_DIR = Path.home() / ".config" / "cinelaunch"
CONFIG_FILE = APP_DIR / "config.json"
PROGRESS_FILE = APP_DIR / "progress.json"
SUBTITLE_DIR = APP_DIR / "vlc-subtitles"
LOG_FILE = APP_DIR / "cinelaunch.log"
PLAYER_LOG_FILE = APP_DIR / "player.log"

# --- Upstream services ---
TMDB_BASE_URL = "https://api.themoviedb.org/3"
STREAM_SERVICE_URL = "http://localhost:8657"
IMPERSONATE = "chrome120"

API_KEY_ENV = "CINELAUNCH_TMDB_API_KEY"
STREAM_URL_ENV = "CINELAUNCH_STREAM_URL"

REQUEST_TIMEOUT = 15

# --- Playback preferences ---
PREFERRED_QUALITY = "720"
CAPTION_LANGUAGES = ["ar"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

BANNER_ART = r"""
      _            __                  __
 ____(_)__  ___   / /__ ___ _____  ___/ /
/ __/ / _ \/ -_) / / _ `/ // / _ \/ __/ _ \
\__/_/_//_/\__/ /_/\_,_/\_,_/_//_/\__/_//_/
"""

# --- Theme Definitions ---
THEMES = {
    "blue": {"primary": "#7eb3d4", "secondary": "#9ac9e3", "accent": "#5a9bc7", "error": "#d97979"},
    "green": {"primary": "#8ba87f", "secondary": "#a3ba98", "accent": "#6d8a62", "error": "#d97979"},
    "cyan": {"primary": "#7ebfbf", "secondary": "#9bd3d3", "accent": "#5fa3a3", "error": "#d97979"},
    "orange": {"primary": "#d9a379", "secondary": "#e5b693", "accent": "#c4855a", "error": "#d97979"},
}

DEFAULT_THEME = "cyan"


class Config:

    def __init__(self, path: Path = CONFIG_FILE):
        self.path = path
        self.theme = DEFAULT_THEME
        self.tmdb_api_key: Optional[str] = None
        self.stream_service_url = STREAM_SERVICE_URL
        self.preferred_quality = PREFERRED_QUALITY
        self.caption_languages: List[str] = list(CAPTION_LANGUAGES)
        self.request_timeout: float = REQUEST_TIMEOUT
        self.log_level = "INFO"
        self.load()

    def load(self):
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text())
            except (OSError, ValueError) as e:
                logger.warning("Ignoring unreadable config %s: %s", self.path, e)
                data = {}
            self._apply(data)

        self.tmdb_api_key = os.environ.get(API_KEY_ENV) or self.tmdb_api_key
        self.stream_service_url = os.environ.get(STREAM_URL_ENV) or self.stream_service_url

    def _apply(self, data: Dict):
        self.theme = data.get("theme", self.theme)
        self.tmdb_api_key = data.get("tmdb_api_key") or self.tmdb_api_key
        self.stream_service_url = data.get("stream_service_url", self.stream_service_url)
        self.preferred_quality = str(data.get("preferred_quality", self.preferred_quality))
        self.log_level = str(data.get("log_level", self.log_level)).upper()

        languages = data.get("caption_languages")
        if isinstance(languages, str):
            languages = [languages]
        if isinstance(languages, list):
            self.caption_languages = [str(code) for code in languages]

        timeout = data.get("request_timeout")
        if isinstance(timeout, (int, float)) and timeout > 0:
            self.request_timeout = timeout

    def save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({
            "theme": self.theme,
            "tmdb_api_key": self.tmdb_api_key,
            "stream_service_url": self.stream_service_url,
            "preferred_quality": self.preferred_quality,
            "caption_languages": self.caption_languages,
            "request_timeout": self.request_timeout,
            "log_level": self.log_level,
        }, indent=2))

    def get_theme(self) -> Dict:
        return THEMES.get(self.theme, THEMES[DEFAULT_THEME])

    def require_api_key(self) -> str:
        if not self.tmdb_api_key:
            raise ConfigError(
                f"No TMDB API key configured. Set {API_KEY_ENV} or add "
                f"\"tmdb_api_key\" to {self.path}"
            )
        return self.tmdb_api_key


def setup_logging(level: str = "INFO", log_file: Path = LOG_FILE):
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_file),
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    logging.getLogger("curl_cffi").setLevel(logging.WARNING)
