import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List

from pydantic import ValidationError

from .models import ProgressEntry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressStore:
    """
    Resume history kept as one JSON document mapping title id -> entry.

    The file is read and rewritten whole on every update. Two runs writing
    at the same time can lose one of the updates.
    """

    def __init__(self, path: Path, clock: Callable[[], datetime] = _utcnow):
        self.path = Path(path)
        self.clock = clock

    def _read(self) -> Dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Progress file %s is unreadable, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Progress file %s is not a JSON object, starting empty", self.path)
            return {}
        return data

    def record(self, entry: ProgressEntry) -> ProgressEntry:
        stamped = entry.model_copy(update={"last_played": self.clock()})
        progress = self._read()
        progress[str(stamped.title_id)] = stamped.model_dump(mode="json")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(progress, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Recorded progress for %s (%s)", stamped.display_title, stamped.title_id)
        return stamped

    def load_all(self) -> List[ProgressEntry]:
        entries = []
        for key, raw in self._read().items():
            try:
                entries.append(ProgressEntry.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping malformed progress entry %s: %s", key, e)

        oldest = datetime.min.replace(tzinfo=timezone.utc)
        entries.sort(key=lambda e: e.last_played or oldest, reverse=True)
        return entries

    def suggestions(self) -> List[str]:
        seen = set()
        titles = []
        for entry in self.load_all():
            if entry.display_title not in seen:
                seen.add(entry.display_title)
                titles.append(entry.display_title)
        return titles
