"""Tags that mark classes, methods and members for the container.

Class and method tags are stored in a metadata dictionary under
:data:`~beanwire.constants.BEANWIRE_META`, always on the tagged object itself so
that subclasses do not silently inherit ``@component`` or ``@configuration``.
:class:`Value` and :class:`Autowired` are markers: place them inside
``typing.Annotated[...]`` on constructor parameters and fields, or use them as
decorators on setter methods.
"""

from typing import Any, Dict, Iterable, Optional

from .constants import BEANWIRE_INJECT, BEANWIRE_META


def _unwrap(obj: Any) -> Any:
    if isinstance(obj, (staticmethod, classmethod)):
        return obj.__func__
    return obj


def own_meta(obj: Any) -> Dict[str, Any]:
    """Return the tag dictionary declared directly on *obj* (never an inherited one)."""
    target = _unwrap(obj)
    return vars(target).get(BEANWIRE_META, {}) if hasattr(target, "__dict__") else {}


def _update_meta(obj: Any, **values: Any) -> None:
    target = _unwrap(obj)
    meta = dict(own_meta(target))
    meta.update(values)
    setattr(target, BEANWIRE_META, meta)


def component(cls=None, *, name: Optional[str] = None):
    """Mark a class as eligible for a bean definition."""
    def dec(c):
        _update_meta(c, component=True, name=name or None)
        return c
    return dec(cls) if cls else dec


def configuration(cls=None, *, name: Optional[str] = None):
    """Mark a class as a configuration provider whose ``@bean`` methods produce beans."""
    def dec(c):
        _update_meta(c, component=True, configuration=True, name=name or None)
        return c
    return dec(cls) if cls else dec


def component_scan(*namespaces: str):
    """Declare the namespaces scanned from a root descriptor (default: its own package)."""
    def dec(cls):
        _update_meta(cls, component_scan=tuple(namespaces))
        return cls
    return dec


def imports(*classes: type):
    """Add classes to the candidate set of a root descriptor without scanning."""
    def dec(cls):
        _update_meta(cls, imports=tuple(classes))
        return cls
    return dec


def bean(fn=None, *, name: Optional[str] = None, init_method: Optional[str] = None, destroy_method: Optional[str] = None):
    """Mark a method of a ``@configuration`` class as a bean factory method."""
    def dec(f):
        _update_meta(f, bean={"name": name or None, "init_method": init_method, "destroy_method": destroy_method})
        return f
    return dec(fn) if fn else dec


def primary(obj):
    """Mark this bean as primary among multiple beans assignable to the same type."""
    _update_meta(obj, primary=True)
    return obj


def order(value: int):
    """Attach an ordering hint used when listing several beans of one type."""
    def dec(obj):
        _update_meta(obj, order=int(value))
        return obj
    return dec


def constructor(obj):
    """Designate a classmethod as the single constructor of a component."""
    _update_meta(obj, constructor=True)
    return obj


def post_construct(fn):
    _update_meta(fn, post_construct=True)
    return fn


def pre_destroy(fn):
    _update_meta(fn, pre_destroy=True)
    return fn


class _InjectMarker:
    __slots__ = ()

    def __call__(self, fn):
        target = _unwrap(fn)
        markers = tuple(vars(target).get(BEANWIRE_INJECT, ())) + (self,)
        setattr(target, BEANWIRE_INJECT, markers)
        return fn


class Value(_InjectMarker):
    """Inject a configuration property, e.g. ``Annotated[int, Value("${port:8080}")]``."""

    __slots__ = ("expression",)

    def __init__(self, expression: str):
        self.expression = expression

    def __repr__(self) -> str:
        return f"Value({self.expression!r})"


class Autowired(_InjectMarker):
    """Inject another bean, by type or by explicit *name*.

    With ``required=False`` a missing dependency is injected as ``None``.
    """

    __slots__ = ("name", "required")

    def __init__(self, name: Optional[str] = None, required: bool = True):
        self.name = name or None
        self.required = bool(required)

    def __repr__(self) -> str:
        return f"Autowired(name={self.name!r}, required={self.required})"


def inject_markers(fn: Any) -> Iterable[_InjectMarker]:
    """Markers applied to a setter method with ``@Value(...)`` / ``@Autowired(...)``."""
    target = _unwrap(fn)
    return vars(target).get(BEANWIRE_INJECT, ()) if hasattr(target, "__dict__") else ()


__all__ = [
    "component", "configuration", "component_scan", "imports",
    "bean", "primary", "order", "constructor",
    "post_construct", "pre_destroy",
    "Value", "Autowired",
    "own_meta", "inject_markers",
]
