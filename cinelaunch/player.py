import logging
import platform
import subprocess
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .config import PLAYER_LOG_FILE
from .errors import PlayerLaunchFailed, UnsupportedPlatform

logger = logging.getLogger(__name__)


class PlatformFamily(str, Enum):
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"


SYSTEM_FAMILIES = {
    "Windows": PlatformFamily.WINDOWS,
    "Darwin": PlatformFamily.MACOS,
    "Linux": PlatformFamily.LINUX,
}

VLC_PATHS = {
    PlatformFamily.WINDOWS: r"C:\Program Files\VideoLAN\VLC\vlc.exe",
    PlatformFamily.MACOS: "/Applications/VLC.app/Contents/MacOS/VLC",
    PlatformFamily.LINUX: "vlc",
}


class PlaybackLauncher:

    def __init__(self, system: Optional[str] = None, log_path: Path = PLAYER_LOG_FILE):
        self.system = system if system is not None else platform.system()
        self.log_path = Path(log_path)

    def platform_family(self) -> PlatformFamily:
        family = SYSTEM_FAMILIES.get(self.system)
        if family is None:
            raise UnsupportedPlatform(f"no known player location for {self.system or 'unknown OS'}")
        return family

    def resolve_player_path(self) -> str:
        return VLC_PATHS[self.platform_family()]

    def build_command(self, video_url: str, caption_path: Optional[Path] = None) -> List[str]:
        cmd = [self.resolve_player_path(), video_url]
        if caption_path:
            cmd.append(f"--sub-file={caption_path}")
        return cmd

    def launch(self, video_url: str, caption_path: Optional[Path] = None) -> subprocess.Popen:
        cmd = self.build_command(video_url, caption_path)
        logger.info("Launching player: %s", " ".join(cmd))

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "ab") as player_log:
                process = subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=player_log,
                    start_new_session=True,
                )
        except OSError as e:
            logger.error("Could not start player %s: %s", cmd[0], e)
            raise PlayerLaunchFailed(f"could not start {cmd[0]}: {e}") from e

        threading.Thread(target=self._watch, args=(process,), daemon=True).start()
        return process

    def _watch(self, process: subprocess.Popen):
        """
        Log the player's exit status.

        Runs on a daemon thread, so it only reports while this process is
        still alive. The CLI exits right after launching, which ends the
        watcher early; the player's stderr in ``log_path`` is then the only
        record of how playback went.
        """
        code = process.wait()
        if code != 0:
            logger.warning("Player exited with status %s, see %s", code, self.log_path)
        else:
            logger.info("Player exited normally")
