import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, Protocol, Sequence, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from .config import THEMES, DEFAULT_THEME

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Choice(Generic[T]):
    label: str
    value: T


class SelectionPrompter(Protocol):
    """Blocking prompts. ``None`` means the user backed out."""

    def ask_text(self, message: str, suggestions: Sequence[str] = ()) -> Optional[str]:
        ...

    def choose(self, message: str, choices: Sequence[Choice[T]]) -> Optional[T]:
        ...


class FzfPrompter:
    """fzf for picking from lists, a rich prompt for free text."""

    def __init__(self, console: Console, theme: Optional[Dict] = None):
        self.console = console
        self.theme = theme or THEMES[DEFAULT_THEME]

    @staticmethod
    def available() -> bool:
        return shutil.which("fzf") is not None

    def _fzf_args(self, prompt: str, header: Optional[str] = None) -> List[str]:
        theme = self.theme
        args = [
            'fzf', '--ansi', '--layout=reverse', '--height=80%',
            f'--prompt={prompt} ❯ ',
            '--delimiter=\t', '--with-nth=2',
            f'--color=fg:-1,bg:-1,hl:{theme["accent"]},fg+:-1,bg+:-1,hl+:{theme["primary"]}',
            f'--color=info:{theme["secondary"]},prompt:{theme["primary"]},pointer:{theme["primary"]}',
        ]
        if header:
            args.append(f'--header={header}')
        return args

    def _run_fzf(self, args: List[str], items: Sequence[str]) -> subprocess.CompletedProcess:
        numbered = "\n".join(f"{i}\t{item}" for i, item in enumerate(items))
        return subprocess.run(args, input=numbered, capture_output=True, text=True)

    @staticmethod
    def _index(line: str, size: int) -> Optional[int]:
        try:
            idx = int(line.split('\t', 1)[0])
        except ValueError:
            return None
        return idx if 0 <= idx < size else None

    def choose(self, message: str, choices: Sequence[Choice[T]]) -> Optional[T]:
        if not choices:
            return None

        labels = [c.label for c in choices]
        count = len(labels)
        header = f"{message} · {count} {'option' if count == 1 else 'options'}"
        process = self._run_fzf(self._fzf_args(message, header), labels)

        # 1 = no match, 130 = Esc / Ctrl-C
        if process.returncode != 0:
            logger.debug("fzf exited with %s for %r", process.returncode, message)
            return None

        idx = self._index(process.stdout.strip(), count)
        return choices[idx].value if idx is not None else None

    def ask_text(self, message: str, suggestions: Sequence[str] = ()) -> Optional[str]:
        if not suggestions:
            theme = self.theme
            answer = Prompt.ask(
                f"[{theme['primary']}]{escape(message)} ❯[/{theme['primary']}]",
                console=self.console,
            )
            return answer.strip() or None

        # Enter searches whatever was typed; Tab (or Enter on an empty
        # query) takes the highlighted recent title instead.
        args = self._fzf_args(message, "Enter searches the typed text · Tab picks a recent title")
        args += ['--print-query', '--expect=tab']
        process = self._run_fzf(args, suggestions)
        if process.returncode not in (0, 1):
            return None

        # stdout: query, key pressed ("" for Enter), then the selection
        lines = process.stdout.split("\n")
        query = lines[0].strip()
        key = lines[1].strip() if len(lines) > 1 else ""
        if query and key != "tab":
            return query

        if process.returncode == 0 and len(lines) > 2:
            idx = self._index(lines[2], len(suggestions))
            if idx is not None:
                return suggestions[idx]
        return query or None
