"""File access interface for CSV and settings files."""

from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol, TextIO


class FileSystemGateway(Protocol):
    """Reads and atomically writes text files under scoped access."""

    def access(self, path: Path) -> AbstractContextManager[Path]:
        """Acquire access to a path for the duration of the context."""

    def read_text(self, path: Path) -> str:
        """Return the whole file as text."""

    def atomic_writer(self, path: Path) -> AbstractContextManager[TextIO]:
        """Yield a stream whose contents replace ``path`` when the context exits.

        Nothing is written to ``path`` if the context exits with an error.
        """

    def write_text_atomically(self, path: Path, text: str) -> None:
        """Replace the file with ``text`` in a single commit."""
