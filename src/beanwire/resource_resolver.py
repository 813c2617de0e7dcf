"""Namespace scanning over directory and archive roots.

:class:`ResourceResolver` turns a dotted namespace into the files found under
it on every root of the search path. Directory roots are walked with
:func:`os.walk`; zip archives are opened with :class:`zipfile.ZipFile` for the
duration of one root's walk. Both produce :class:`~beanwire.resource.Resource`
objects through the same code path.
"""

import logging
import os
import sys
import zipfile
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar
from urllib.parse import unquote, urlparse

from .exceptions import ResourceScanError
from .resource import Resource, ResourceOrigin

_logger = logging.getLogger(__name__)

T = TypeVar("T")

# (path relative to the root, location, is_file)
_Entry = Tuple[str, str, bool]


def namespace_to_path(namespace: str) -> str:
    if not isinstance(namespace, str) or not namespace:
        raise ResourceScanError(f"Namespace must be a non-empty string, got {namespace!r}")
    parts = namespace.split(".")
    if not all(p.isidentifier() for p in parts):
        raise ResourceScanError(f"Invalid namespace: {namespace!r}")
    return "/".join(parts)


def _strip_trailing_separator(s: str) -> str:
    stripped = s.rstrip("/\\")
    return stripped or s


def _root_to_path(root: Any) -> str:
    s = os.fspath(root)
    if not s:
        return os.getcwd()
    if "://" in s or s.startswith("file:"):
        parsed = urlparse(s)
        if parsed.scheme != "file":
            raise ResourceScanError(f"Unsupported search path URI scheme {parsed.scheme!r}: {s}")
        try:
            return unquote(parsed.path, errors="strict")
        except UnicodeDecodeError as e:
            raise ResourceScanError(f"Cannot decode search path URI {s}: {e}") from e
    return s


def _split_archive(root: str) -> Optional[Tuple[str, str]]:
    """Split ``bundle.zip/lib`` into ``("bundle.zip", "lib")``; ``None`` if *root* is no archive."""
    path, inner = root, ""
    while not os.path.exists(path):
        parent, tail = os.path.split(path)
        if not tail or parent == path:
            return None
        inner = f"{tail}/{inner}" if inner else tail
        path = parent
    if os.path.isfile(path) and zipfile.is_zipfile(path):
        return path, inner
    return None


def _to_resources(origin: ResourceOrigin, entries: Iterable[_Entry]) -> List[Resource]:
    return [
        Resource(location=location, name=rel.rsplit("/", 1)[-1], origin=origin, path=rel)
        for rel, location, is_file in entries
        if is_file
    ]


class ResourceResolver:
    """Enumerate resources below a namespace on every search-path root.

    Args:
        search_path: Roots to scan; defaults to ``sys.path`` read at scan time.
    """

    def __init__(self, search_path: Optional[Iterable[Any]] = None) -> None:
        self._search_path = tuple(search_path) if search_path is not None else None

    def roots(self) -> Tuple[Any, ...]:
        return self._search_path if self._search_path is not None else tuple(sys.path)

    def scan(self, namespace: str, mapper: Optional[Callable[[Resource], Optional[T]]] = None) -> Iterator[Any]:
        """Yield resources (or non-``None`` mapped values) found under *namespace*.

        Raises:
            ResourceScanError: If *namespace* or a search-path URI is malformed.
        """
        relative = namespace_to_path(namespace)
        # All roots are decoded before the first yield.
        roots = [_strip_trailing_separator(_root_to_path(r)) for r in self.roots()]
        for root in roots:
            for resource in self._scan_root(root, relative):
                if mapper is None:
                    yield resource
                    continue
                mapped = mapper(resource)
                if mapped is not None:
                    yield mapped

    def _scan_root(self, root: str, relative: str) -> List[Resource]:
        if os.path.isdir(root):
            found = self._scan_directory(root, relative)
        else:
            split = _split_archive(root)
            if split is None:
                return []
            found = self._scan_archive(*split, relative)
        if found:
            _logger.debug("Found %d resources under '%s' in %s", len(found), relative, root)
        return found

    def _scan_directory(self, root: str, relative: str) -> List[Resource]:
        base = os.path.join(root, *relative.split("/"))
        if not os.path.isdir(base):
            return []
        try:
            return _to_resources(ResourceOrigin.PLAIN_FILE, self._walk_directory(root, base))
        except OSError as e:
            _logger.warning("Skipping unreadable directory %s: %s", base, e)
            return []

    @staticmethod
    def _walk_directory(root: str, base: str) -> Iterator[_Entry]:
        def fail(err: OSError) -> None:
            raise err

        for dirpath, dirnames, filenames in os.walk(base, onerror=fail):
            dirnames.sort()
            for fname in sorted(filenames):
                location = os.path.join(dirpath, fname)
                rel = os.path.relpath(location, root).replace(os.sep, "/")
                yield rel, location, os.path.isfile(location)

    def _scan_archive(self, archive_path: str, inner: str, relative: str) -> List[Resource]:
        """Scan *relative* below the *inner* directory of a zip archive.

        Paths of the resulting resources are relative to *inner*, as the
        zip importer sees them for an ``archive.zip/inner`` search-path entry.
        """
        root_prefix = inner + "/" if inner else ""
        prefix = root_prefix + relative + "/"
        try:
            with zipfile.ZipFile(archive_path) as archive:
                entries = [
                    (info.filename[len(root_prefix):], f"{archive_path}/{info.filename}", not info.is_dir())
                    for info in archive.infolist()
                    if info.filename.startswith(prefix)
                ]
                return _to_resources(ResourceOrigin.ARCHIVE_ENTRY, entries)
        except (OSError, zipfile.BadZipFile) as e:
            _logger.warning("Skipping unreadable archive %s: %s", archive_path, e)
            return []
