"""Constants used throughout the beanwire container.

This module defines the internal attribute names stamped onto tagged classes,
functions and markers, the framework logger, and shared defaults.
"""

import logging
import sys

LOGGER_NAME: str = "beanwire"
"""Default logger name for the beanwire container."""

LOGGER: logging.Logger = logging.getLogger(LOGGER_NAME)
"""Pre-configured logger instance for beanwire internal diagnostics."""

BEANWIRE_META: str = "_beanwire_meta"
"""Attribute name storing the tag dictionary (component, configuration, order, primary, ...)."""

BEANWIRE_INJECT: str = "_beanwire_inject"
"""Attribute name storing the injection markers attached to a setter method."""

DEFAULT_ORDER: int = sys.maxsize
"""Order given to beans without an ``@order`` tag; unordered beans sort last."""

MODULE_SUFFIX: str = ".py"
"""File suffix of resources the component scanner turns into module names."""

PRIMITIVE_TYPES: tuple = (bool, int, float, complex)
"""Return types a ``@bean`` factory method may not declare."""
