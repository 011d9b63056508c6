"""Directory-polling command source.

Drop an audio file into the watched directory and it is picked up on the
next poll, handed to the pipeline and renamed to ``<name>.processed``.
Useful for testing the pipeline without the HTTP server.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from voice_gateway.core.interfaces import SourceClosedError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset({".wav", ".mp3", ".m4a", ".webm"})
POLL_INTERVAL = 0.5


class FileSource:
    """Command source that polls a directory for audio files."""

    def __init__(self, directory: str | Path, poll_interval: float = POLL_INTERVAL) -> None:
        """Initialize file source.

        Args:
            directory: Directory to watch (created on start)
            poll_interval: Seconds between directory scans
        """
        self.directory = Path(directory)
        self.poll_interval = poll_interval
        self._processed: set[Path] = set()
        self._stopped = False

    @property
    def name(self) -> str:
        return "file"

    async def start(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._stopped = False
        logger.info(f"Watching {self.directory} for audio files")

    async def stop(self) -> None:
        self._stopped = True

    async def next_command(self) -> bytes:
        """Wait for the next audio file and return its contents.

        Raises:
            SourceClosedError: After stop()
        """
        while not self._stopped:
            await asyncio.sleep(self.poll_interval)
            data = self._check_for_new_file()
            if data is not None:
                return data
        raise SourceClosedError("file source stopped")

    def _check_for_new_file(self) -> bytes | None:
        for path in sorted(self.directory.iterdir()):
            if not path.is_file() or path.suffix not in AUDIO_EXTENSIONS:
                continue
            if path in self._processed:
                continue

            data = path.read_bytes()
            self._processed.add(path)

            try:
                path.rename(path.with_name(path.name + ".processed"))
            except OSError as e:
                logger.warning(f"Could not mark {path.name} as processed: {e}")

            logger.info(f"Picked up audio file {path.name} ({len(data)} bytes)")
            return data
        return None
