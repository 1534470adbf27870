"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stages.py
Parallel stages of the image deduplication pipeline.

STAGES
------
FingerprintStageImpl   : N workers drain the loader channel, one fingerprint per decoded image
PairwiseDistanceStage  : N workers score every unordered pair of fingerprints

STAGE CONTRACTS
---------------
Both stages run their workers inside a ThreadPoolExecutor context, so the
`process()` call returns only after every worker thread has exited. That join
is the boundary between stages: no distance is computed before all
fingerprints exist, and no distance worker outlives the result list it reads.

  • Workers share nothing mutable except the channels and result queues
  • Each fingerprint worker owns its own ImageFingerprinter
  • The distance stage only reads the result list, it never copies or mutates it
  • Any worker exception fails the whole call with PipelineError; a partial
    result is never returned
"""

import itertools
import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple

from imgdedup.core.channel import Channel
from imgdedup.core.errors import ChannelDisconnected, PipelineError
from imgdedup.core.hasher import ImageFingerprinter
from imgdedup.core.interfaces import DistanceStage, FingerprintStage, Fingerprinter
from imgdedup.core.models import Fingerprint, HashAlgorithm, PipelineConfig, ScoredPair

logger = logging.getLogger(__name__)


def _raise_on_worker_failure(futures: List[Future], stage_name: str) -> None:
    """Turn the first worker exception into a stage-fatal PipelineError."""
    failures = [f.exception() for f in futures if f.exception() is not None]
    if not failures:
        return
    first = failures[0]
    logger.critical(
        f"❌ {len(failures)} {stage_name} worker thread(s) failed unexpectedly: "
        f"{type(first).__name__}: {first}"
    )
    raise PipelineError(
        f"A {stage_name} worker thread failed unexpectedly: {type(first).__name__}: {first}"
    ) from first


def _drain(results: queue.SimpleQueue) -> list:
    items = []
    while not results.empty():
        items.append(results.get_nowait())
    return items


# =============================
# Fingerprint Stage
# =============================
class FingerprintStageImpl(FingerprintStage):
    """
    Fingerprint worker pool.

    Args:
        threads: Number of worker threads (>= 1)
        algorithm: Hash algorithm every worker uses
        hash_size: (width, height) of the fingerprint in bits
        fingerprinter_factory: Builds one Fingerprinter per worker
    """

    def __init__(
            self,
            threads: int,
            algorithm: HashAlgorithm,
            hash_size: Tuple[int, int],
            fingerprinter_factory: Callable[[HashAlgorithm, Tuple[int, int]], Fingerprinter] = ImageFingerprinter
    ):
        if threads < 1:
            raise ValueError("Cannot specify 0 threads")
        self.threads = threads
        self.algorithm = algorithm
        self.hash_size = hash_size
        self.fingerprinter_factory = fingerprinter_factory

    def get_stage_name(self) -> str:
        return "Fingerprint"

    def process(
            self,
            channel: Channel,
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[Tuple[str, Fingerprint]]:
        """
        Blocks until the channel is closed and drained and every worker has exited.

        Raises:
            PipelineError: If any worker failed.
        """
        results: queue.SimpleQueue = queue.SimpleQueue()

        logger.debug(f"Starting {self.threads} fingerprint worker(s)")
        with ThreadPoolExecutor(max_workers=self.threads, thread_name_prefix="fingerprint") as executor:
            futures = [
                executor.submit(self._worker, channel, results, progress_callback)
                for _ in range(self.threads)
            ]

        _raise_on_worker_failure(futures, "fingerprint")

        fingerprints = _drain(results)
        logger.info(f"Finished computing perceptual hash for {len(fingerprints)} image(s)")
        return fingerprints

    def _worker(
            self,
            channel: Channel,
            results: queue.SimpleQueue,
            progress_callback: Optional[Callable[[str, int, object], None]]
    ) -> None:
        with channel.receiver() as items:
            fingerprinter = self.fingerprinter_factory(self.algorithm, self.hash_size)
            for path, image in items:
                results.put((path, fingerprinter.fingerprint(image)))
                if progress_callback:
                    progress_callback(self.get_stage_name(), results.qsize(), None)


# =============================
# Pairwise Distance Stage
# =============================
class PairwiseDistanceStage(DistanceStage):
    """
    Scoped worker pool computing the Hamming distance of every unordered pair.

    Pairs are index pairs (i, j) with i < j into the borrowed result list, sent
    to the workers in batches through a bounded channel. Cost is O(n²) in pairs.

    Args:
        threads: Number of worker threads (>= 1)
        batch_size: Index pairs per work item
    """

    def __init__(self, threads: int, batch_size: int = PipelineConfig.PAIR_BATCH_SIZE):
        if threads < 1:
            raise ValueError("Cannot specify 0 threads")
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        self.threads = threads
        self.batch_size = batch_size

    def get_stage_name(self) -> str:
        return "Distance"

    @staticmethod
    def pair_count(n: int) -> int:
        return n * (n - 1) // 2

    def process(
            self,
            results: Sequence[Tuple[str, Fingerprint]],
            progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[ScoredPair]:
        """
        Returns exactly n·(n−1)/2 scored pairs, in no particular order.

        Raises:
            PipelineError: If a worker failed or the pair set came back incomplete.
        """
        n = len(results)
        expected = self.pair_count(n)
        if expected == 0:
            return []

        work = Channel(capacity=self.threads * 2)
        scored: queue.SimpleQueue = queue.SimpleQueue()

        logger.debug(f"Scoring {expected} pair(s) with {self.threads} worker(s)")
        with ThreadPoolExecutor(max_workers=self.threads, thread_name_prefix="distance") as executor:
            futures = [
                executor.submit(self._worker, results, work, scored)
                for _ in range(self.threads)
            ]
            try:
                self._feed(n, work, expected, progress_callback)
            except ChannelDisconnected:
                logger.error("❌ All distance workers hung up before every pair was sent")
            finally:
                work.close()

        _raise_on_worker_failure(futures, "distance")

        pairs = [pair for batch in _drain(scored) for pair in batch]
        if len(pairs) != expected:
            raise PipelineError(
                f"Distance stage produced {len(pairs)} pair(s), expected {expected}"
            )

        logger.info(f"Finished computing hamming distances for {len(pairs)} pair(s)")
        return pairs

    def _feed(
            self,
            n: int,
            work: Channel,
            expected: int,
            progress_callback: Optional[Callable[[str, int, object], None]]
    ) -> None:
        index_pairs = itertools.combinations(range(n), 2)
        sent = 0
        while True:
            batch = list(itertools.islice(index_pairs, self.batch_size))
            if not batch:
                return
            work.send(batch)
            sent += len(batch)
            if progress_callback:
                progress_callback(self.get_stage_name(), sent, expected)

    @staticmethod
    def _worker(
            results: Sequence[Tuple[str, Fingerprint]],
            work: Channel,
            scored: queue.SimpleQueue
    ) -> None:
        with work.receiver() as batches:
            for batch in batches:
                scored_batch = []
                for i, j in batch:
                    path_a, fp_a = results[i]
                    path_b, fp_b = results[j]
                    scored_batch.append(ScoredPair(path_a, path_b, fp_a.distance(fp_b)))
                scored.put(scored_batch)
