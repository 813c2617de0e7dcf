"""Property sources.

Provides the :class:`PropertySource` base class and its concrete
implementations: :class:`EnvSource`, :class:`DictSource`,
:class:`PropertiesFileSource`, :class:`JsonFileSource` and
:class:`YamlFileSource`. Every source produces a flat ``key -> str`` mapping;
nested structures are flattened to dotted keys (``db.host``) and list items
to indexed keys (``hosts[0]``).
"""

import json
import os
import re
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .exceptions import ConfigurationError


def _scalar(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    return str(v)


def flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """Flatten a nested mapping into dotted keys.

    Example:
        >>> flatten({"db": {"host": "localhost", "ports": [5432, 5433]}})
        {'db.host': 'localhost', 'db.ports[0]': '5432', 'db.ports[1]': '5433'}
    """
    out: Dict[str, str] = {}

    def walk(node: Any, path: str) -> None:
        if isinstance(node, Mapping):
            for k, v in node.items():
                walk(v, f"{path}.{k}" if path else str(k))
        elif isinstance(node, (list, tuple)):
            for i, v in enumerate(node):
                walk(v, f"{path}[{i}]")
        elif node is not None:
            out[path] = _scalar(node)

    walk(data, prefix)
    return out


class PropertySource:
    """Base class for property sources.

    Subclasses must implement :meth:`load` to return a flat mapping.
    """

    def load(self) -> Mapping[str, str]:
        """Return the source's properties as a flat mapping.

        Raises:
            NotImplementedError: Always (must be overridden by subclasses).
        """
        raise NotImplementedError


class EnvSource(PropertySource):
    """Property source backed by environment variables.

    Args:
        prefix: Only variables starting with *prefix* are read, and the prefix
            is stripped from their keys.
        relaxed: Map ``DB_HOST`` to ``db.host``.
        environ: Mapping to read instead of ``os.environ``.

    Example:
        >>> EnvSource(prefix="APP_", relaxed=True, environ={"APP_DB_HOST": "h"}).load()
        {'db.host': 'h'}
    """

    def __init__(self, prefix: str = "", relaxed: bool = False, environ: Optional[Mapping[str, str]] = None) -> None:
        self.prefix = prefix
        self.relaxed = relaxed
        self._environ = environ

    def load(self) -> Mapping[str, str]:
        env = os.environ if self._environ is None else self._environ
        out: Dict[str, str] = {}
        for k, v in env.items():
            if not k.startswith(self.prefix):
                continue
            key = k[len(self.prefix):]
            if not key:
                continue
            if self.relaxed:
                key = key.lower().replace("_", ".")
            out[key] = v
        return out


class DictSource(PropertySource):
    """Property source backed by an in-memory (possibly nested) mapping."""

    def __init__(self, data: Mapping[str, Any]):
        self._data = data

    def load(self) -> Mapping[str, str]:
        return flatten(self._data)


_escape_pat = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape(s: str) -> str:
    def repl(m):
        tok = m.group(1)
        if len(tok) == 5:
            return chr(int(tok[1:], 16))
        return _ESCAPES.get(tok, tok)
    return _escape_pat.sub(repl, s)


def _logical_lines(text: str) -> Iterator[str]:
    buf = ""
    for raw in text.splitlines():
        line = raw.lstrip()
        if not buf and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            buf += line[:-1]
            continue
        yield buf + line
        buf = ""
    if buf:
        yield buf


def _split_entry(line: str) -> Tuple[str, str]:
    i = 0
    while i < len(line):
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c in "=:":
            return line[:i].rstrip(), line[i + 1:].lstrip()
        if c in " \t\f":
            rest = line[i:].lstrip(" \t\f")
            if rest[:1] in ("=", ":"):
                rest = rest[1:].lstrip(" \t\f")
            return line[:i], rest
        i += 1
    return line, ""


def parse_properties(text: str) -> Dict[str, str]:
    """Parse ``.properties`` text (``key=value``, ``key: value`` or ``key value``)."""
    out: Dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_entry(line)
        out[_unescape(key)] = _unescape(value)
    return out


class PropertiesFileSource(PropertySource):
    """Property source that reads a ``.properties`` file.

    Raises:
        ConfigurationError: If the file cannot be read.
    """

    def __init__(self, path: str, encoding: str = "utf-8"):
        self._path = path
        self._encoding = encoding

    def load(self) -> Mapping[str, str]:
        try:
            with open(self._path, encoding=self._encoding) as f:
                return parse_properties(f.read())
        except OSError as e:
            raise ConfigurationError(f"Failed to load properties file {self._path}: {e}")


class JsonFileSource(PropertySource):
    """Property source that reads and flattens a JSON document.

    Raises:
        ConfigurationError: If the file cannot be loaded, parsed, or is not an object.
    """

    def __init__(self, path: str):
        self._path = path

    def load(self) -> Mapping[str, str]:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except Exception as e:
            raise ConfigurationError(f"Failed to load JSON config: {e}")
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"JSON config {self._path} must contain an object")
        return flatten(data)


class YamlFileSource(PropertySource):
    """Property source that reads and flattens a YAML document.

    Requires ``PyYAML`` to be installed (``pip install beanwire[yaml]``).

    Raises:
        ConfigurationError: If PyYAML is not installed, or if the file
            cannot be loaded or parsed.
    """

    def __init__(self, path: str):
        self._path = path

    def load(self) -> Mapping[str, str]:
        try:
            import yaml
        except Exception:
            raise ConfigurationError("PyYAML not installed")
        try:
            with open(self._path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except Exception as e:
            raise ConfigurationError(f"Failed to load YAML config: {e}")
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"YAML config {self._path} must contain a mapping")
        return flatten(data)
