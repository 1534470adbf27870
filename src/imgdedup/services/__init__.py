"""File operations and relocation services."""

from .file_service import FileService
from .relocation_service import RelocationService

__all__ = ["FileService", "RelocationService"]
