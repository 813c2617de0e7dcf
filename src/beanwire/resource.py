from dataclasses import dataclass
from enum import Enum


class ResourceOrigin(str, Enum):
    PLAIN_FILE = "file"
    ARCHIVE_ENTRY = "archive"


@dataclass(frozen=True)
class Resource:
    """A file found under a scanned namespace.

    Attributes:
        location: Opaque filesystem-style location. For archive entries this is
            ``<archive>/<entry>``, the same form the zip importer uses for ``__file__``.
        name: Bare file name, e.g. ``"orders.py"``.
        origin: Whether the file came from a directory tree or an archive.
        path: Slash-separated path relative to the search-path root, e.g.
            ``"app/services/orders.py"``; identical for both origins.
    """
    location: str
    name: str
    origin: ResourceOrigin
    path: str
