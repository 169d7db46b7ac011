"""Export connector implementations."""

from .dropzone_json_connector import DropzoneJsonConnector
from .memory_connector import InMemoryConnector

__all__ = ["DropzoneJsonConnector", "InMemoryConnector"]
