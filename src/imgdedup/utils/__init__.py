"""Small conversion helpers shared by the CLI and the core."""

from .convert_utils import ConvertUtils

__all__ = ["ConvertUtils"]
