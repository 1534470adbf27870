"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/relocation_service.py
Moves every file implicated in a duplicate pair into a destination directory.

States: IDLE → VALIDATING → PROBING → MOVING → DONE, or ABORTED when the
destination cannot be created or written. Nothing is moved before the write
check passes. Each file is attempted exactly once; a failed move is recorded
and the batch continues. No retries.
"""
import logging
import os
from typing import Callable, Optional, Sequence

from imgdedup.core.errors import DestinationError
from imgdedup.core.models import RelocationReport, RelocationState
from imgdedup.services.file_service import FileService

logger = logging.getLogger(__name__)


class RelocationService:
    @staticmethod
    def relocate(
            file_paths: Sequence[str],
            destination: str,
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> RelocationReport:
        """
        Relocate files into destination.

        Args:
            file_paths: Distinct paths to move.
            destination: Target directory; created if missing.
            progress_callback: (stage, current, total) after each attempted move.

        Returns:
            RelocationReport. `aborted` is True if the destination failed validation,
            in which case no file was touched.
        """
        report = RelocationReport(destination=destination)

        if not file_paths:
            logger.info("Nothing to move")
            report.state = RelocationState.DONE
            return report

        try:
            report.state = RelocationState.VALIDATING
            path = FileService.prepare_dir(destination)
            report.state = RelocationState.PROBING
            FileService.probe_write(path)
        except DestinationError as e:
            logger.error(f"❌ Relocation aborted: {e}")
            report.state = RelocationState.ABORTED
            report.error = str(e)
            return report

        report.state = RelocationState.MOVING
        total = len(file_paths)
        for i, path in enumerate(file_paths, 1):
            try:
                target = FileService.move_to_dir(path, destination)
                report.moved.append((path, target))
                logger.debug(f"Moved {path} -> {target}")
            except (OSError, RuntimeError) as e:
                report.failed.append((path, str(e)))
                logger.warning(f"⚠️ Failed to move {os.path.basename(path)}: {e}")

            if progress_callback:
                progress_callback("Moving", i, total)

        report.state = RelocationState.DONE
        logger.info(f"Moved {len(report.moved)}/{total} file(s) to {destination}")
        return report
