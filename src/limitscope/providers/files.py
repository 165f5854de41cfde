"""Text provider for procfs and sysfs files."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from limitscope.core.exceptions import FileMissingError, UnreadableError

logger = logging.getLogger(__name__)


class FileReader:
    """Reads small kernel-exported text files with typed errors.

    Distinguishes a file that does not exist (``FileMissingError``) from one
    that exists but cannot be read (``UnreadableError``).
    """

    def read(self, path: Path | str) -> str:
        """Read the entire contents of a file.

        Raises:
            FileMissingError: If the file does not exist
            UnreadableError: If the file exists but cannot be read
        """
        path = Path(path)
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError as e:
            raise FileMissingError(path) from e
        except PermissionError as e:
            raise UnreadableError(path, "permission denied") from e
        except IsADirectoryError as e:
            raise UnreadableError(path, "is a directory") from e
        except OSError as e:
            # Kernel files can vanish or error mid-read (cgroup removed, ENODEV)
            logger.debug(f"Error reading {path}: {e}")
            raise UnreadableError(path, str(e)) from e

    def read_lines(self, path: Path | str) -> list[str]:
        """Read a file and return its non-empty lines."""
        return [line for line in self.read(path).splitlines() if line.strip()]

    def exists(self, path: Path | str) -> bool:
        return Path(path).exists()

    def is_readable(self, path: Path | str) -> bool:
        path = Path(path)
        return path.is_file() and os.access(path, os.R_OK)
