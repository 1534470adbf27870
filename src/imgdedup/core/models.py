"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models and domain logic for image fingerprinting and duplicate detection.
"""

import base64
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import imagehash
import numpy

from imgdedup.core.errors import FingerprintMismatchError


# =============================
# Enums
# =============================

class HashAlgorithm(Enum):
    """
    Perceptual hash algorithm used to fingerprint images.
    """
    MEAN = "mean"
    H_GRADIENT = "h-gradient"
    V_GRADIENT = "v-gradient"
    DOUBLE_GRADIENT = "double-gradient"
    PERCEPTUAL = "perceptual"
    WAVELET = "wavelet"
    BLOCKHASH = "blockhash"

    @property
    def display_name(self) -> str:
        """Human-readable name for console output."""
        mapping = {
            HashAlgorithm.MEAN: "Mean",
            HashAlgorithm.H_GRADIENT: "Horizontal Gradient",
            HashAlgorithm.V_GRADIENT: "Vertical Gradient",
            HashAlgorithm.DOUBLE_GRADIENT: "Double Gradient",
            HashAlgorithm.PERCEPTUAL: "Perceptual (DCT)",
            HashAlgorithm.WAVELET: "Wavelet",
            HashAlgorithm.BLOCKHASH: "Blockhash",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        """Detailed description for help text."""
        mapping = {
            HashAlgorithm.MEAN:
                "Each bit: pixel brighter than the mean brightness",
            HashAlgorithm.H_GRADIENT:
                "Each bit: pixel brighter than its right neighbour",
            HashAlgorithm.V_GRADIENT:
                "Each bit: pixel brighter than its lower neighbour",
            HashAlgorithm.DOUBLE_GRADIENT:
                "Horizontal and vertical gradients combined (twice the bits)",
            HashAlgorithm.PERCEPTUAL:
                "Low frequencies of a DCT (square sizes only)",
            HashAlgorithm.WAVELET:
                "Haar wavelet decomposition (square, power-of-two sizes only)",
            HashAlgorithm.BLOCKHASH:
                "Each bit: block brighter than the median block of its band",
        }
        return mapping.get(self, self.value)

    @property
    def square_only(self) -> bool:
        return self in (HashAlgorithm.PERCEPTUAL, HashAlgorithm.WAVELET)

    def __repr__(self) -> str:
        return self.value


class RelocationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PROBING = "probing"
    MOVING = "moving"
    DONE = "done"
    ABORTED = "aborted"


# =============================
# Config
# =============================

class PipelineConfig:
    QUEUE_CAPACITY = 128          # Decoded images held between loader and fingerprint workers
    MONITOR_TICK = 0.1            # Seconds between monitor wake-ups
    MONITOR_REPORT_TICKS = 50     # Ticks between queue depth checks (~5s)
    PAIR_BATCH_SIZE = 256         # Index pairs per distance work item
    NAME_FMT_MAX_LEN = 30         # File names longer than this get truncated in reports


# ======================
#  Core Data Models
# ======================

@dataclass(frozen=True)
class Fingerprint:
    """
    Fixed-size bit-vector summary of an image.
    Only fingerprints made with the same algorithm and size can be compared.
    """
    algorithm: HashAlgorithm
    size: Tuple[int, int]  # (width, height) in bits
    value: imagehash.ImageHash

    def is_compatible(self, other: "Fingerprint") -> bool:
        return self.algorithm == other.algorithm and self.size == other.size

    def distance(self, other: "Fingerprint") -> int:
        """Hamming distance: number of differing bits."""
        if not self.is_compatible(other):
            raise FingerprintMismatchError(
                f"Cannot compare {self.algorithm.value} {self.size} fingerprint "
                f"with {other.algorithm.value} {other.size} fingerprint"
            )
        return int(self.value - other.value)

    def to_hex(self) -> str:
        return str(self.value)

    def to_base64(self) -> str:
        """Bits packed row by row, most significant first, in standard base64."""
        packed = numpy.packbits(self.value.hash.flatten())
        return base64.b64encode(packed.tobytes()).decode("ascii")

    def __repr__(self):
        return f"<Fingerprint {self.algorithm.value} {self.size[0]}x{self.size[1]} {self.to_hex()}>"


@dataclass(frozen=True)
class ScoredPair:
    """Two fingerprinted files and the distance between them. `first` sorts before `second` by path."""
    first: str
    second: str
    distance: int

    @property
    def names(self) -> Tuple[str, str]:
        return os.path.basename(self.first), os.path.basename(self.second)


@dataclass
class LoadReport:
    """
    Outcome of one directory load.
    Files in `skipped` failed individually; files in `not_attempted` were never
    tried because every consumer hung up.
    """
    loaded: int = 0
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    not_attempted: List[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def __repr__(self):
        return (f"<LoadReport loaded={self.loaded}, skipped={len(self.skipped)}, "
                f"not_attempted={len(self.not_attempted)}>")


@dataclass
class DuplicateSelection:
    """
    Pairs within the distance threshold, plus every path involved in at least one of them.
    """
    threshold: int
    pairs_compared: int
    pairs: List[ScoredPair] = field(default_factory=list)
    duplicate_paths: List[str] = field(default_factory=list)

    @property
    def nothing_to_compare(self) -> bool:
        """True when no pair was ever computed (fewer than two images)."""
        return self.pairs_compared == 0

    @property
    def is_empty(self) -> bool:
        return not self.pairs

    def __repr__(self):
        return (f"<DuplicateSelection threshold={self.threshold}, "
                f"pairs={len(self.pairs)}/{self.pairs_compared}, files={len(self.duplicate_paths)}>")


@dataclass
class RelocationReport:
    destination: str
    state: RelocationState = RelocationState.IDLE
    moved: List[Tuple[str, str]] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.state == RelocationState.ABORTED

    @property
    def attempted(self) -> int:
        return len(self.moved) + len(self.failed)


class PipelineStats:
    """
    Statistics collected during one pipeline run.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}

    def update_stage(
            self,
            stage_name: str,
            items_processed: int,
            items_skipped: int,
            duration: float
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "items": 0,
                "skipped": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["items"] += items_processed
        self.stage_stats[stage_name]["skipped"] += items_skipped
        self.stage_stats[stage_name]["time"] += duration

    def get(self, stage_name: str, key: str = "items") -> Union[int, float]:
        return self.stage_stats.get(stage_name, {}).get(key, 0)

    def print_summary(self) -> str:
        labels = {
            "load": "📂 Images loaded",
            "fingerprint": "🔑 Images fingerprinted",
            "distance": "📐 Pairs compared",
            "select": "🔍 Similar pairs found",
            "relocate": "📦 Files moved",
        }

        lines = [
            "📊 Pipeline Statistics:",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            "Stage: PROCESSED / SKIPPED / TIME"
        ]

        for stage in self.stage_stats:
            label = labels.get(stage.lower(), stage.title())
            lines.append(f"{label}: {self.get(stage)} / {self.get(stage, 'skipped')} / {self.get(stage, 'time'):.3f}s")

        return "\n".join(lines)


"""
DTO for pipeline parameters with built-in validation.
"""
from imgdedup.utils.convert_utils import ConvertUtils


@dataclass
class DeduplicationParams:
    """Parameters for one pipeline run. Invalid values are rejected before anything starts."""
    root_dir: str
    algorithm: HashAlgorithm = HashAlgorithm.DOUBLE_GRADIENT
    hash_size: Tuple[int, int] = (12, 12)
    threads: int = 1
    threshold: int = 16
    name_filter: str = ".*"
    destination: Optional[str] = None
    queue_capacity: int = PipelineConfig.QUEUE_CAPACITY
    pattern: "re.Pattern" = field(init=False, repr=False)

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.root_dir:
            raise ValueError("Root directory cannot be empty")

        if self.threads < 1:
            raise ValueError("Cannot specify 0 threads")

        if self.threshold < 0:
            raise ValueError("Threshold cannot be negative")

        if self.queue_capacity < 1:
            raise ValueError("Queue capacity must be at least 1")

        if not isinstance(self.algorithm, HashAlgorithm):
            raise ValueError(f"Unsupported hashing algorithm: {self.algorithm!r}")

        width, height = self.hash_size
        if width < 1 or height < 1:
            raise ValueError("Hash size cannot be 0")
        self.hash_size = (int(width), int(height))

        if self.algorithm.square_only and width != height:
            raise ValueError(f"{self.algorithm.value} only supports square hash sizes")
        if self.algorithm == HashAlgorithm.PERCEPTUAL and width < 2:
            raise ValueError("perceptual hash size must be at least 2")
        if self.algorithm == HashAlgorithm.WAVELET and width & (width - 1):
            raise ValueError("wavelet hash size must be a power of 2")

        try:
            self.pattern = re.compile(self.name_filter)
        except re.error as e:
            raise ValueError(f"Invalid name filter /{self.name_filter}/: {e}")

    @staticmethod
    def from_human_readable(
            root_dir: str,
            algorithm: str = "double-gradient",
            hash_size_str: str = "12,12",
            threads: int = 1,
            threshold: int = 16,
            name_filter: str = ".*",
            destination: Optional[str] = None,
    ) -> 'DeduplicationParams':
        """
        Factory method to create params from human-readable inputs.
        Useful for CLI argument parsing.
        """
        try:
            algo = HashAlgorithm(algorithm)
        except ValueError:
            raise ValueError(f"\"{algorithm}\" is not a supported hashing algorithm")

        return DeduplicationParams(
            root_dir=root_dir,
            algorithm=algo,
            hash_size=ConvertUtils.parse_hash_size(hash_size_str),
            threads=threads,
            threshold=threshold,
            name_filter=name_filter,
            destination=destination,
        )
