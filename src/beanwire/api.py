import logging
from typing import Any, Iterable, Mapping, Optional

from . import _state
from .config_builder import ContextConfig
from .constants import LOGGER
from .container import ApplicationContext
from .exceptions import BeanwireError
from .properties import PropertyResolver
from .resource_resolver import ResourceResolver
from .scanner import ComponentScanner


def init(
    root: type,
    *,
    config: Optional[ContextConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    search_path: Optional[Iterable[Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> ApplicationContext:
    """Wire the application rooted at *root* and make it the process context.

    The property store is loaded once here (environment, then *config*'s
    sources, then its overrides) and stays read-only afterwards. A previous
    process context is closed first.
    """
    log = logger or LOGGER
    if _state._context is not None:
        log.info("Replacing process context for %s", _state._root_name)
        reset()

    properties = PropertyResolver.from_config(config, environ)
    scanner = ComponentScanner(ResourceResolver(search_path))
    context = ApplicationContext(root, properties, scanner=scanner)

    _state._context = context
    _state._root_name = getattr(root, "__qualname__", str(root))
    return context


def get_context() -> ApplicationContext:
    if _state._context is None:
        raise BeanwireError("No application context; call beanwire.init() first")
    return _state._context


def reset() -> None:
    """Close and forget the process context, if any."""
    context = _state._context
    _state._context = None
    _state._root_name = None
    if context is not None:
        context.close()
