"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/loader.py
Single-threaded producer: reads one directory, filters names, decodes images
and publishes (path, image) pairs onto a bounded channel.
Features:
- Non-recursive: only direct entries of the input directory are considered
- Name filter is a regular expression searched in the full path
- Per-file problems are logged and skipped, never fatal
- Backpressure: send() blocks while the channel is full
"""

import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from imgdedup.core.channel import Channel
from imgdedup.core.errors import ChannelDisconnected, ImageDecodeError
from imgdedup.core.hasher import decode_image
from imgdedup.core.interfaces import ImageLoader
from imgdedup.core.models import LoadReport

logger = logging.getLogger(__name__)


class ImageLoaderImpl(ImageLoader):
    """
    Loads images from a single directory onto a channel.

    Attributes:
        root_dir: Directory to read
        name_filter: Compiled pattern (or pattern string) a path must match to be loaded
    """

    def __init__(self, root_dir: str, name_filter: Optional[Union[str, "re.Pattern"]] = None):
        self.root_dir = root_dir
        if name_filter is None:
            name_filter = ".*"
        self.name_filter = re.compile(name_filter) if isinstance(name_filter, str) else name_filter

    def open(self) -> List[os.DirEntry]:
        """
        Read the directory listing, sorted by name.

        Raises:
            RuntimeError: If the directory does not exist, is not a directory, or cannot be listed.
        """
        root_path = Path(self.root_dir)
        if not root_path.exists():
            error_msg = f"Directory does not exist: {self.root_dir}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)
        if not root_path.is_dir():
            error_msg = f"Not a directory: {self.root_dir}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

        try:
            with os.scandir(root_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            error_msg = f"Failed to open the input directory: {e}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e

        logger.debug(f"Opened {self.root_dir}: {len(entries)} entries")
        return entries

    def load(
            self,
            entries: Iterable[os.DirEntry],
            channel: Channel,
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> LoadReport:
        """
        Decode every selected entry and send it to the channel.
        The channel is closed on exit, which tells consumers no more input is coming.
        """
        report = LoadReport()
        try:
            selected = self._select(entries, report)
            total = len(selected)
            logger.debug(f"Selected {total} file(s) with filter /{self.name_filter.pattern}/")

            for index, path in enumerate(selected):
                try:
                    image = decode_image(path)
                except ImageDecodeError as e:
                    logger.warning(f"⚠️ Failed to load {path} as image: {e}")
                    report.skipped.append((path, str(e)))
                    continue

                try:
                    channel.send((path, image))  # blocks if channel is full
                except ChannelDisconnected:
                    report.aborted = True
                    report.skipped.append((path, "all image receivers hung up"))
                    report.not_attempted = selected[index + 1:]
                    logger.error(
                        "❌ All image receivers hung up unexpectedly. "
                        f"Image loading stops now; {len(report.not_attempted)} file(s) were never attempted"
                    )
                    break

                report.loaded += 1
                if progress_callback:
                    progress_callback("Loading", report.loaded, total)
        finally:
            channel.close()

        logger.info(f"Loaded {report.loaded} image(s), skipped {report.skipped_count}")
        return report

    def _select(self, entries: Iterable[os.DirEntry], report: LoadReport) -> List[str]:
        """Apply encoding, type and name checks. Returns the paths worth decoding."""
        selected = []
        for entry in entries:
            path = entry.path

            try:
                path.encode("utf-8")
            except UnicodeEncodeError:
                logger.warning(f"⚠️ File path is not a valid UTF-8 string: {path!r}")
                report.skipped.append((path, "path is not valid UTF-8"))
                continue

            if not self.name_filter.search(path):
                continue

            try:
                if not entry.is_file():
                    logger.debug(f"Skipping non-file entry: {path}")
                    continue
            except OSError as e:
                logger.warning(f"⚠️ Failed to open a file: {path}: {e}")
                report.skipped.append((path, str(e)))
                continue

            selected.append(path)
        return selected
