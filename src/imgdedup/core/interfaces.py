"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the pipeline.
These protocols enforce structural typing using Python's `typing.Protocol` so
stages can be swapped or faked in tests without inheritance.

Key Components:
---------------
- ImageLoader: Producer that decodes directory entries onto a bounded channel.
- Fingerprinter: Computes a fingerprint for one decoded image.
- FingerprintStage: Worker pool turning decoded images into fingerprints.
- DistanceStage: Worker pool scoring every pair of fingerprints.
- DuplicateSelector: Threshold filter over scored pairs.
"""

from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Tuple

from PIL import Image

from imgdedup.core.channel import Channel
from imgdedup.core.models import DuplicateSelection, Fingerprint, LoadReport, ScoredPair


class ImageLoader(Protocol):
    """
    Interface for the single-threaded producer stage.
    """
    def load(self, entries: Iterable, channel: Channel) -> LoadReport:
        """
        Decode matching entries and send (path, image) pairs to the channel.
        Must close the channel when done, whatever happens.
        """
        ...


class Fingerprinter(Protocol):
    def fingerprint(self, image: Image.Image) -> Fingerprint: ...


class FingerprintStage(Protocol):
    def process(
        self,
        channel: Channel,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[Tuple[str, Fingerprint]]:
        """
        Consume the channel until it is closed and empty.

        Returns:
            One (path, fingerprint) per image received, in completion order.
        """
        ...


class DistanceStage(Protocol):
    def process(
        self,
        results: Sequence[Tuple[str, Fingerprint]],
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[ScoredPair]:
        """
        Score every unordered pair of results exactly once.
        """
        ...


class DuplicateSelector(Protocol):
    def select(self, pairs: Sequence[ScoredPair], threshold: int) -> DuplicateSelection: ...
