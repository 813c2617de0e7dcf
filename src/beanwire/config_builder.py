"""Configuration builder.

Provides the :func:`configuration` builder that assembles property sources
into an immutable :class:`ContextConfig`, the layered store handed to the
:class:`~beanwire.properties.PropertyResolver`.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .config_sources import PropertySource
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class ContextConfig:
    """Immutable configuration object passed to :func:`beanwire.init`.

    Attributes:
        sources: Property sources, applied in order (later sources win).
        overrides: Key-value overrides applied last.
        include_environ: Whether the process environment forms the base layer.
    """

    sources: Tuple[PropertySource, ...] = ()
    overrides: Dict[str, Any] = field(default_factory=dict)
    include_environ: bool = True

    def load(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Build the property store: environment, then sources, then overrides."""
        store: Dict[str, str] = {}
        if self.include_environ:
            store.update(os.environ if environ is None else environ)
        for src in self.sources:
            store.update(src.load())
        store.update({str(k): str(v) for k, v in self.overrides.items()})
        return store


def configuration(*sources: Any, overrides: Optional[Dict[str, Any]] = None, include_environ: bool = True) -> ContextConfig:
    """Build an immutable :class:`ContextConfig` from one or more sources.

    Args:
        *sources: Property source instances (``EnvSource``, ``DictSource``,
            ``PropertiesFileSource``, ``JsonFileSource``, ``YamlFileSource``).
        overrides: Optional key-value overrides that take highest precedence.
        include_environ: Use the process environment as the base layer.

    Returns:
        An immutable :class:`ContextConfig` ready to pass to ``init()``.

    Raises:
        ConfigurationError: If an unknown source type is provided.

    Example:
        >>> cfg = configuration(
        ...     PropertiesFileSource("application.properties"),
        ...     DictSource({"server": {"port": 9090}}),
        ...     overrides={"debug": "true"},
        ... )
    """
    for src in sources:
        if not isinstance(src, PropertySource):
            raise ConfigurationError(f"Unknown configuration source type: {type(src)}")
    return ContextConfig(sources=tuple(sources), overrides=dict(overrides or {}), include_environ=include_environ)
