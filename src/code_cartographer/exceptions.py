from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CartographerError(Exception):
    """Base exception for errors in the code_cartographer package."""

    def __str__(self) -> str:
        return getattr(self, "message", "") or type(self).__name__


@dataclass(frozen=True)
class ConfigFileError(CartographerError):
    """Raised when a project configuration file cannot be parsed or validated."""

    path: Path
    message: str = "The configuration file could not be loaded."


@dataclass(frozen=True)
class OutputWriteError(CartographerError):
    """Raised when the generated documentation cannot be written to disk."""

    path: Path
    message: str = "The documentation output could not be written."


@dataclass(frozen=True)
class RunCancelledError(CartographerError):
    """Raised when a documentation run is cancelled between batches."""

    message: str = "The documentation run was cancelled."
