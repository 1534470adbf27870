"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception types raised by the pipeline and its services.
"""


class PipelineError(RuntimeError):
    """A pipeline stage failed as a whole (worker fault or broken wiring)."""


class ChannelDisconnected(RuntimeError):
    """Every receiver of a channel has gone away; nothing will ever be received."""


class ImageDecodeError(RuntimeError):
    """A file could not be decoded as an image."""


class FingerprintMismatchError(ValueError):
    """Two fingerprints were produced under different algorithms or sizes."""


class DestinationError(RuntimeError):
    """The relocation destination cannot be created or written to."""
