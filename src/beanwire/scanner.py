"""Component discovery from a root descriptor.

The scanner never imports anything: scanned files become module-name
descriptors, and classes listed in ``@imports`` become descriptors that already
hold their type. Loading is deferred to :meth:`ComponentDescriptor.load`.
"""

import importlib
import inspect
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Optional, Set, Tuple

from .constants import MODULE_SUFFIX
from .decorators import own_meta
from .exceptions import ConfigurationError
from .resource import Resource
from .resource_resolver import ResourceResolver

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentDescriptor:
    """A candidate location for component classes.

    ``qualified_name`` is either a module name (``"app.services"``) or, for an
    imported class, ``"module:qualname"``.
    """
    qualified_name: str
    resolved: Optional[type] = field(default=None, compare=False, repr=False)

    @classmethod
    def for_class(cls, klass: type) -> "ComponentDescriptor":
        return cls(f"{klass.__module__}:{klass.__qualname__}", klass)

    @property
    def is_module(self) -> bool:
        return ":" not in self.qualified_name

    def load(self) -> Tuple[type, ...]:
        """Import the module (or class) and return the classes it declares."""
        if self.resolved is not None:
            return (self.resolved,)
        if self.is_module:
            module = importlib.import_module(self.qualified_name)
            return tuple(
                obj for obj in vars(module).values()
                if inspect.isclass(obj) and obj.__module__ == module.__name__
            )
        module_name, _, qualname = self.qualified_name.partition(":")
        obj: Any = importlib.import_module(module_name)
        for part in qualname.split("."):
            obj = getattr(obj, part)
        return (obj,)


def resource_to_module_name(resource: Resource) -> Optional[str]:
    if not resource.name.endswith(MODULE_SUFFIX):
        return None
    parts = resource.path[: -len(MODULE_SUFFIX)].split("/")
    if parts[-1] == "__init__":
        parts = parts[:-1]
    if not parts or not all(p.isidentifier() for p in parts):
        return None
    return ".".join(parts)


def _package_of(root: type) -> str:
    module = sys.modules.get(root.__module__)
    package = getattr(module, "__package__", None)
    if package is None:
        package = root.__module__.rpartition(".")[0]
    return package


class ComponentScanner:
    """Collect component candidates reachable from a root descriptor.

    Args:
        resolver: The resource resolver used for namespace scans; a fresh
            :class:`ResourceResolver` over ``sys.path`` by default.
    """

    def __init__(self, resolver: Optional[ResourceResolver] = None) -> None:
        self._resolver = resolver or ResourceResolver()

    def scan_namespaces(self, root: type) -> Tuple[str, ...]:
        meta = own_meta(root)
        if "component_scan" not in meta:
            raise ConfigurationError(
                f"Root descriptor {getattr(root, '__name__', root)} is not tagged with @component_scan"
            )
        namespaces = meta["component_scan"]
        if namespaces:
            return tuple(namespaces)
        package = _package_of(root)
        if not package:
            raise ConfigurationError(
                f"Cannot derive a scan namespace for {root.__name__} defined in top-level module "
                f"'{root.__module__}'; pass namespaces to @component_scan"
            )
        return (package,)

    def discover_candidates(self, root: type) -> Set[ComponentDescriptor]:
        candidates: Set[ComponentDescriptor] = set()
        for namespace in self.scan_namespaces(root):
            found = {ComponentDescriptor(name) for name in self._resolver.scan(namespace, resource_to_module_name)}
            _logger.debug("Namespace '%s' yielded %d modules", namespace, len(found))
            candidates |= found
        for klass in own_meta(root).get("imports", ()):
            candidates.add(ComponentDescriptor.for_class(klass))
        return candidates
