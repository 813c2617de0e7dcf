"""Typed property lookup with ``${key:default}`` expressions.

The :class:`PropertyResolver` reads from an immutable key/value store (see
:meth:`beanwire.config_builder.ContextConfig.load`) and converts values through
a table of converters keyed by target type.
"""

import datetime
import decimal
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from .config_builder import ContextConfig
from .exceptions import (
    PropertyConversionError,
    PropertyKeyError,
    PropertyNotFoundError,
    UnsupportedPropertyTypeError,
)

Converter = Callable[[str], Any]

_duration_pat = re.compile(
    r"^(?P<sign>[-+]?)P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)


def _to_bool(s: str) -> bool:
    v = s.strip().lower()
    if v in ("1", "true", "yes", "on", "y", "t"):
        return True
    if v in ("0", "false", "no", "off", "n", "f"):
        return False
    raise ValueError(f"not a boolean: {s!r}")


def _to_timedelta(s: str) -> datetime.timedelta:
    text = s.strip()
    m = _duration_pat.match(text)
    if m is None or not any(m.group(g) for g in ("days", "hours", "minutes", "seconds")):
        try:
            return datetime.timedelta(seconds=float(text))
        except ValueError:
            raise ValueError(f"not an ISO-8601 duration: {s!r}") from None
    delta = datetime.timedelta(
        days=int(m.group("days") or 0),
        hours=int(m.group("hours") or 0),
        minutes=int(m.group("minutes") or 0),
        seconds=float(m.group("seconds") or 0),
    )
    return -delta if m.group("sign") == "-" else delta


_DEFAULT_CONVERTERS: Dict[type, Converter] = {
    str: lambda s: s,
    bool: _to_bool,
    int: lambda s: int(s.strip()),
    float: lambda s: float(s.strip()),
    decimal.Decimal: lambda s: decimal.Decimal(s.strip()),
    datetime.date: lambda s: datetime.date.fromisoformat(s.strip()),
    datetime.time: lambda s: datetime.time.fromisoformat(s.strip()),
    datetime.datetime: lambda s: datetime.datetime.fromisoformat(s.strip()),
    datetime.timedelta: _to_timedelta,
    ZoneInfo: lambda s: ZoneInfo(s.strip()),
    Path: Path,
}


@dataclass(frozen=True)
class PropertyExpression:
    """A parsed ``${key}`` or ``${key:default}`` expression."""
    key: str
    default: Optional[str] = None

    @classmethod
    def parse(cls, raw: Any) -> "PropertyExpression":
        if not isinstance(raw, str) or not (raw.startswith("${") and raw.endswith("}")):
            raise PropertyKeyError(raw)
        key, sep, default = raw[2:-1].partition(":")
        key = key.strip()
        if not key:
            raise PropertyKeyError(raw)
        return cls(key=key, default=default if sep else None)


class PropertyResolver:
    """Resolve and convert properties from a key/value store.

    Args:
        store: Property values by key. Values are stored as strings.

    Example:
        >>> r = PropertyResolver({"port": "9090"})
        >>> r.resolve("${port:8080}", int)
        9090
        >>> r.resolve("${timeout:30}", int)
        30
    """

    def __init__(self, store: Optional[Mapping[str, Any]] = None) -> None:
        self._store: Dict[str, str] = {str(k): str(v) for k, v in (store or {}).items() if v is not None}
        self._converters: Dict[type, Converter] = dict(_DEFAULT_CONVERTERS)

    @classmethod
    def from_config(cls, config: Optional[ContextConfig] = None, environ: Optional[Mapping[str, str]] = None) -> "PropertyResolver":
        """Build a resolver over the environment overlaid by *config*'s sources."""
        return cls((config or ContextConfig()).load(environ))

    def register_converter(self, target_type: type, converter: Converter) -> None:
        self._converters[target_type] = converter

    def keys(self):
        return self._store.keys()

    def _lookup(self, key: str) -> Optional[str]:
        v = self._store.get(key)
        return v if v else None

    def _lookup_expression(self, raw: str) -> Tuple[str, Optional[str]]:
        if not isinstance(raw, str) or not raw:
            raise PropertyKeyError(raw)
        if raw.startswith("${"):
            expr = PropertyExpression.parse(raw)
            value = self._lookup(expr.key)
            return expr.key, value if value is not None else (expr.default or None)
        return raw, self._lookup(raw)

    def get_property(self, key: str, target_type: type = str) -> Any:
        """Return the converted value of *key* (plain key or ``${...}``), or ``None``."""
        name, value = self._lookup_expression(key)
        return None if value is None else self.convert(name, value, target_type)

    def get_required_property(self, key: str, target_type: type = str) -> Any:
        name, value = self._lookup_expression(key)
        if value is None:
            raise PropertyNotFoundError(name)
        return self.convert(name, value, target_type)

    def resolve(self, expression: str, target_type: type = str) -> Any:
        """Resolve a ``${key}``/``${key:default}`` expression, as used by ``Value``.

        Raises:
            PropertyKeyError: If *expression* is not a well-formed expression.
            PropertyNotFoundError: If the key is missing and there is no default.
        """
        expr = PropertyExpression.parse(expression)
        value = self._lookup(expr.key)
        if value is None:
            if not expr.default:
                raise PropertyNotFoundError(expr.key)
            value = expr.default
        return self.convert(expr.key, value, target_type)

    def convert(self, key: str, value: str, target_type: Any) -> Any:
        converter = self._converters.get(target_type)
        if converter is None:
            raise UnsupportedPropertyTypeError(target_type)
        try:
            return converter(value)
        except (ValueError, TypeError, ArithmeticError, LookupError) as e:
            raise PropertyConversionError(key, value, target_type, e) from e
