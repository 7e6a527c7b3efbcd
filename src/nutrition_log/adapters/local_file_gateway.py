"""Local filesystem gateway with atomic writes."""

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from nutrition_log.errors import FileAccessError
from nutrition_log.services.files import FileSystemGateway

logger = logging.getLogger(__name__)


@dataclass
class LocalFileGateway(FileSystemGateway):
    """Reads and writes UTF-8 text files on the local disk."""

    encoding: str = "utf-8"

    @contextmanager
    def access(self, path: Path) -> Iterator[Path]:
        """Hold access to ``path`` until the context exits."""
        resolved = Path(path).expanduser().resolve()
        logger.debug("Acquired file access", extra={"path": str(resolved)})
        try:
            yield resolved
        finally:
            logger.debug("Released file access", extra={"path": str(resolved)})

    def read_text(self, path: Path) -> str:
        """Return the file contents."""
        with self.access(path) as resolved:
            try:
                return resolved.read_text(encoding=self.encoding)
            except (OSError, UnicodeDecodeError) as exc:
                raise FileAccessError(f"Cannot read {resolved}: {exc}") from exc

    @contextmanager
    def atomic_writer(self, path: Path) -> Iterator[TextIO]:
        """Stream into a temp file that replaces ``path`` on success."""
        with self.access(path) as resolved:
            try:
                resolved.parent.mkdir(parents=True, exist_ok=True)
                handle = tempfile.NamedTemporaryFile(  # noqa: SIM115
                    "w",
                    encoding=self.encoding,
                    newline="",
                    dir=resolved.parent,
                    prefix=f".{resolved.name}.",
                    suffix=".tmp",
                    delete=False,
                )
            except OSError as exc:
                raise FileAccessError(f"Cannot write {resolved}: {exc}") from exc
            temp_path = Path(handle.name)
            try:
                with handle:
                    yield handle
                os.replace(temp_path, resolved)
            except OSError as exc:
                temp_path.unlink(missing_ok=True)
                raise FileAccessError(f"Cannot write {resolved}: {exc}") from exc
            except BaseException:
                temp_path.unlink(missing_ok=True)
                raise

    def write_text_atomically(self, path: Path, text: str) -> None:
        """Replace the file contents in one step."""
        with self.atomic_writer(path) as handle:
            handle.write(text)
