"""
imgdedup — near-duplicate image finder built as a concurrent pipeline.

Core features:
- Loader thread feeding a bounded queue, watched by a queue depth monitor
- Worker pool computing perceptual fingerprints (mean, gradient, DCT, wavelet)
- Parallel pairwise hamming distances with a threshold selector
- Guarded relocation: the destination is write-tested before anything is moved
- CLI interface for headless/server usage
"""

# Get version
try:
    from importlib.metadata import version as _version
    __version__ = _version("imgdedup")
except Exception:
    try:
        import tomllib  # Python 3.11+
    except ImportError:
        import tomli as tomllib  # Python < 3.11: pip install tomli
    from pathlib import Path as _Path

    with open(_Path(__file__).resolve().parents[2] / "pyproject.toml", "rb") as f:
        __version__ = tomllib.load(f)["project"]["version"]

# Public API: only what users should import directly
from imgdedup.commands import DeduplicationCommand
from imgdedup.core import (
    DeduplicationParams, HashAlgorithm, Fingerprint, ScoredPair, DuplicateSelection,
    LoadReport, RelocationReport, PipelineError)
from imgdedup.utils.convert_utils import ConvertUtils
from imgdedup.services import FileService, RelocationService

__all__ = [
    "__version__",
    "DeduplicationCommand",
    "DeduplicationParams",
    "HashAlgorithm",
    "Fingerprint",
    "ScoredPair",
    "DuplicateSelection",
    "LoadReport",
    "RelocationReport",
    "PipelineError",
    "ConvertUtils",
    "FileService",
    "RelocationService",
]
