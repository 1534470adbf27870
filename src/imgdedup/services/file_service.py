"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Filesystem operations used by relocation: destination checks and single-file moves.
"""
import logging
import os
import shutil
import tempfile
from pathlib import Path

from imgdedup.core.errors import DestinationError

logger = logging.getLogger(__name__)

WRITE_PROBE_PREFIX = "imgdedup-write-test-"
WRITE_PROBE_CONTENT = b"This file is safe to delete.\n"


class FileService:
    """
    Filesystem helpers. Every method raises on failure; callers decide whether
    a failure is fatal or per-file.
    """

    @staticmethod
    def get_filename(file_path: str) -> str:
        """Base name of a path."""
        return os.path.basename(os.path.normpath(file_path))

    @staticmethod
    def prepare_dir(dir_path: str) -> Path:
        """
        Create the directory (with parents) if it does not exist, otherwise
        check it is a directory that can be listed.

        Raises:
            DestinationError: If the directory cannot be created or opened.
        """
        path = Path(dir_path)
        try:
            if path.exists():
                if not path.is_dir():
                    raise DestinationError(f"Not a directory: {path}")
                with os.scandir(path):
                    pass
            else:
                logger.info(f"Creating destination directory: {path}")
                path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DestinationError(f"Cannot use destination directory {path}: {e}") from e
        return path

    @staticmethod
    def probe_write(path: Path) -> None:
        """
        Write a uniquely named marker file, read it back and delete it.

        Raises:
            DestinationError: If the marker cannot be written, verified or deleted.
        """
        try:
            fd, marker = tempfile.mkstemp(prefix=WRITE_PROBE_PREFIX, suffix=".tmp", dir=str(path))
        except OSError as e:
            raise DestinationError(f"Cannot write to destination directory {path}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(WRITE_PROBE_CONTENT)
            if Path(marker).read_bytes() != WRITE_PROBE_CONTENT:
                raise DestinationError(f"Write check failed in destination directory {path}")
        except OSError as e:
            raise DestinationError(f"Cannot write to destination directory {path}: {e}") from e
        finally:
            try:
                os.remove(marker)
            except OSError as e:
                raise DestinationError(f"Cannot delete write-check file {marker}: {e}") from e
        logger.debug(f"Write check passed for {path}")

    @staticmethod
    def move_to_dir(file_path: str, dir_path: str) -> str:
        """
        Move a file into dir_path keeping its base name.

        Returns:
            The new path.

        Raises:
            FileNotFoundError: If the source does not exist.
            FileExistsError: If the target name is already taken (nothing is overwritten).
            RuntimeError: For any other move failure.
        """
        source = Path(file_path)
        if not source.exists():
            raise FileNotFoundError(f"File not found: {source}")

        target = Path(dir_path) / source.name
        try:
            # link() fails instead of replacing an existing target
            os.link(source, target)
        except FileExistsError:
            raise FileExistsError(f"Target already exists: {target}") from None
        except OSError as e:
            logger.debug(f"Hard link {source} -> {target} failed ({e}), copying instead")
            return FileService._copy_exclusive(source, target)

        try:
            os.remove(source)
        except OSError as e:
            FileService._discard(target)
            raise RuntimeError(f"Failed to move {source} to {target}: {e}") from e
        return str(target)

    @staticmethod
    def _copy_exclusive(source: Path, target: Path) -> str:
        """
        Move by copying when no hard link can be made (another filesystem).
        The target name is reserved with O_EXCL first so a file that appears
        meanwhile is never overwritten.
        """
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            raise FileExistsError(f"Target already exists: {target}") from None
        except OSError as e:
            raise RuntimeError(f"Failed to move {source} to {target}: {e}") from e
        os.close(fd)

        try:
            shutil.copy2(source, target)
            os.remove(source)
        except (OSError, shutil.Error) as e:
            FileService._discard(target)
            raise RuntimeError(f"Failed to move {source} to {target}: {e}") from e
        return str(target)

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"⚠️ Could not remove partial copy {path}: {e}")
