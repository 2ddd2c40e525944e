"""Schema model built from the files in a generation request."""

from .registry import LoadError, NotFoundError, Registry
from .types import Enum, Field, File, Message, Method, Service

__all__ = [
    "Enum",
    "Field",
    "File",
    "LoadError",
    "Message",
    "Method",
    "NotFoundError",
    "Registry",
    "Service",
]
