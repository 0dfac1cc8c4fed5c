from .config import __version__, __author__, __license__
from .cli import main
from .session import SessionOrchestrator, SessionOutcome, SessionState

__all__ = [
    "main",
    "SessionOrchestrator",
    "SessionOutcome",
    "SessionState",
    "__version__",
    "__author__",
    "__license__",
]
