"""
Core pipeline — loader, queue monitor, fingerprint and distance stages, selector.

This package contains the concurrency-bearing foundation of imgdedup:
- Channel: bounded hand-off between threads with close and hang-up signals
- ImageLoaderImpl: single-threaded producer decoding one directory onto a channel
- QueueMonitor: background backpressure warnings
- FingerprintStageImpl: worker pool computing perceptual fingerprints
- PairwiseDistanceStage: scoped worker pool scoring every pair of fingerprints
- DuplicateSelectorImpl: threshold filter and duplicate set
- Models: Fingerprint, ScoredPair, DuplicateSelection and configuration objects

No console output happens here; everything reports through logging.
"""

from .channel import Channel
from .errors import (
    PipelineError, ChannelDisconnected, ImageDecodeError,
    FingerprintMismatchError, DestinationError)
from .hasher import ImageFingerprinter, decode_image, hamming_distance
from .loader import ImageLoaderImpl
from .monitor import QueueMonitor
from .stages import FingerprintStageImpl, PairwiseDistanceStage
from .selector import DuplicateSelectorImpl
from .models import (
    HashAlgorithm, Fingerprint, ScoredPair, LoadReport, DuplicateSelection,
    RelocationState, RelocationReport, PipelineStats, PipelineConfig,
    DeduplicationParams)

__all__ = [
    "Channel",
    "PipelineError",
    "ChannelDisconnected",
    "ImageDecodeError",
    "FingerprintMismatchError",
    "DestinationError",
    "ImageFingerprinter",
    "decode_image",
    "hamming_distance",
    "ImageLoaderImpl",
    "QueueMonitor",
    "FingerprintStageImpl",
    "PairwiseDistanceStage",
    "DuplicateSelectorImpl",
    "HashAlgorithm",
    "Fingerprint",
    "ScoredPair",
    "LoadReport",
    "DuplicateSelection",
    "RelocationState",
    "RelocationReport",
    "PipelineStats",
    "PipelineConfig",
    "DeduplicationParams",
]
