"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

commands.py
Unified command orchestrator for the image deduplication pipeline.
This is the SINGLE source of truth for pipeline wiring — every CLI subcommand goes through it.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple

from imgdedup.core.channel import Channel
from imgdedup.core.loader import ImageLoaderImpl
from imgdedup.core.models import (
    DeduplicationParams, DuplicateSelection, Fingerprint, LoadReport,
    PipelineStats, RelocationReport, ScoredPair)
from imgdedup.core.monitor import QueueMonitor
from imgdedup.core.selector import DuplicateSelectorImpl
from imgdedup.core.stages import FingerprintStageImpl, PairwiseDistanceStage
from imgdedup.services.relocation_service import RelocationService

logger = logging.getLogger(__name__)

ProgressCallback = Optional[Callable[[str, int, Optional[int]], None]]


class DeduplicationCommand:
    """
    Orchestrates the pipeline:
    1. Open the input directory (fails before any thread starts)
    2. Loader thread → bounded channel → fingerprint worker pool, watched by the queue monitor
    3. Pairwise distance worker pool over the finished fingerprint list
    4. Threshold selection
    5. Optional relocation of the implicated files

    Usage:
        params = DeduplicationParams(root_dir="~/Pictures", threads=4, threshold=8)
        command = DeduplicationCommand()
        selection = command.scan(params)
        if not selection.is_empty:
            report = command.relocate(selection, "~/Pictures/duplicates")
    """

    def __init__(self):
        self.stats = PipelineStats()
        self._fingerprints: List[Tuple[str, Fingerprint]] = []
        self._load_report: Optional[LoadReport] = None
        self._selector = DuplicateSelectorImpl()

    def fingerprint(
            self,
            params: DeduplicationParams,
            progress_callback: ProgressCallback = None
    ) -> Tuple[List[Tuple[str, Fingerprint]], LoadReport]:
        """
        Load and fingerprint every matching image of params.root_dir.

        Returns:
            (path, fingerprint) pairs sorted by path, and the loader's report.

        Raises:
            RuntimeError: If the input directory cannot be opened.
            PipelineError: If a fingerprint worker failed.
        """
        loader = ImageLoaderImpl(params.root_dir, params.pattern)
        entries = loader.open()

        channel = Channel(capacity=params.queue_capacity)
        stage = FingerprintStageImpl(params.threads, params.algorithm, params.hash_size)

        logger.info(
            f"Computing {params.algorithm.value} {params.hash_size[0]}x{params.hash_size[1]} "
            f"perceptual hash with {params.threads} thread(s)..."
        )
        start_time = time.time()
        with QueueMonitor(channel):
            with ThreadPoolExecutor(max_workers=1, thread_name_prefix="loader") as loader_pool:
                load_future = loader_pool.submit(self._timed_load, loader, entries, channel, progress_callback)
                fingerprints = stage.process(channel, progress_callback=progress_callback)
            load_report, load_duration = load_future.result()
        duration = time.time() - start_time

        fingerprints.sort(key=lambda item: item[0])

        self.stats.update_stage("load", load_report.loaded, load_report.skipped_count, load_duration)
        self.stats.update_stage("fingerprint", len(fingerprints), 0, duration)
        self._fingerprints = fingerprints
        self._load_report = load_report
        return fingerprints, load_report

    @staticmethod
    def _timed_load(
            loader: ImageLoaderImpl,
            entries,
            channel: Channel,
            progress_callback: ProgressCallback
    ) -> Tuple[LoadReport, float]:
        start_time = time.time()
        report = loader.load(entries, channel, progress_callback=progress_callback)
        return report, time.time() - start_time

    def compare(
            self,
            fingerprints: Sequence[Tuple[str, Fingerprint]],
            threads: int,
            progress_callback: ProgressCallback = None
    ) -> List[ScoredPair]:
        """Score every pair of fingerprints (blocks until all distance workers are done)."""
        start_time = time.time()
        pairs = PairwiseDistanceStage(threads).process(fingerprints, progress_callback=progress_callback)
        self.stats.update_stage("distance", len(pairs), 0, time.time() - start_time)
        return pairs

    def select(self, pairs: Sequence[ScoredPair], threshold: int) -> DuplicateSelection:
        start_time = time.time()
        selection = self._selector.select(pairs, threshold)
        self.stats.update_stage("select", len(selection.pairs), 0, time.time() - start_time)
        return selection

    def scan(
            self,
            params: DeduplicationParams,
            progress_callback: ProgressCallback = None
    ) -> DuplicateSelection:
        """
        Fingerprint, compare and select in one go.

        Raises:
            RuntimeError: If the input directory cannot be opened.
            PipelineError: If any worker failed.
        """
        total_start_time = time.time()
        fingerprints, _ = self.fingerprint(params, progress_callback=progress_callback)
        pairs = self.compare(fingerprints, params.threads, progress_callback=progress_callback)
        selection = self.select(pairs, params.threshold)
        self.stats.total_time = time.time() - total_start_time
        return selection

    def relocate(
            self,
            selection: DuplicateSelection,
            destination: str,
            progress_callback: ProgressCallback = None
    ) -> RelocationReport:
        """Move every file implicated in the selection into destination."""
        start_time = time.time()
        report = RelocationService.relocate(
            selection.duplicate_paths, destination, progress_callback=progress_callback
        )
        self.stats.update_stage("relocate", len(report.moved), len(report.failed), time.time() - start_time)
        return report

    def get_fingerprints(self) -> List[Tuple[str, Fingerprint]]:
        """Get fingerprints of the last run."""
        return self._fingerprints.copy()  # Return copy to prevent external mutation

    @property
    def load_report(self) -> Optional[LoadReport]:
        return self._load_report
