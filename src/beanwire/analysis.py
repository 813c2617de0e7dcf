import inspect
import re
import sys
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Callable, ClassVar, Final, List, Optional, Tuple, get_args, get_origin

from .decorators import Autowired, Value
from .exceptions import ConfigurationError

_MARKER_RE = re.compile(r"\b(?:Autowired|Value)\s*\(")


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    kind: Any
    annotation: Any
    value: Optional[Value] = None
    autowired: Optional[Autowired] = None

    @property
    def keyword_only(self) -> bool:
        return self.kind is inspect.Parameter.KEYWORD_ONLY


@dataclass(frozen=True)
class FieldSpec:
    name: str
    annotation: Any
    value: Optional[Value] = None
    autowired: Optional[Autowired] = None
    is_classvar: bool = False
    is_final: bool = False


def split_annotated(ann: Any) -> Tuple[Any, Optional[Value], Optional[Autowired]]:
    """Return ``(base type, Value marker, Autowired marker)`` for an annotation."""
    if get_origin(ann) is not Annotated:
        return ann, None, None
    args = get_args(ann)
    base = args[0] if args else Any
    value = next((m for m in args[1:] if isinstance(m, Value)), None)
    autowired = next((m for m in args[1:] if isinstance(m, Autowired)), None)
    return base, value, autowired


def _strip_qualifier(ann: Any, qualifier: Any) -> Tuple[Any, bool]:
    if ann is qualifier:
        return Any, True
    if get_origin(ann) is qualifier:
        args = get_args(ann)
        return (args[0] if args else Any), True
    return ann, False


def split_field_annotation(ann: Any) -> Tuple[Any, Optional[Value], Optional[Autowired], bool, bool]:
    """Unwrap ``ClassVar``/``Final`` around or inside ``Annotated`` on a field."""
    is_classvar = is_final = False
    value = autowired = None
    for _ in range(3):
        ann, cv = _strip_qualifier(ann, ClassVar)
        ann, fn = _strip_qualifier(ann, Final)
        ann, v, a = split_annotated(ann)
        is_classvar |= cv
        is_final |= fn
        value = value or v
        autowired = autowired or a
        if not (cv or fn or v or a):
            break
    return ann, value, autowired, is_classvar, is_final


def _raw_annotations(obj: Any) -> dict:
    try:
        return dict(inspect.get_annotations(obj))
    except Exception:
        return {}


def _namespaces(obj: Any) -> Tuple[dict, Optional[dict]]:
    if inspect.isclass(obj):
        module = sys.modules.get(obj.__module__)
        return dict(getattr(module, "__dict__", {})), dict(vars(obj))
    return dict(getattr(inspect.unwrap(obj), "__globals__", {})), None


def type_hints(obj: Any) -> dict:
    """``get_type_hints(include_extras=True)``, resolved member by member on failure.

    A name imported only under ``TYPE_CHECKING`` must not hide the markers of
    the other members. An unresolvable annotation carrying a marker is an
    error; any other one is kept as its raw string.

    Raises:
        ConfigurationError: If an ``Autowired``/``Value`` annotation cannot be resolved.
    """
    try:
        return typing.get_type_hints(obj, include_extras=True)
    except Exception:
        pass
    globalns, localns = _namespaces(obj)
    hints = {}
    for name, raw in _raw_annotations(obj).items():
        holder = type("_Hints", (), {"__annotations__": {name: raw}})
        try:
            hints.update(typing.get_type_hints(holder, globalns, localns, include_extras=True))
        except Exception as e:
            if isinstance(raw, str) and _MARKER_RE.search(raw):
                owner = getattr(obj, "__qualname__", repr(obj))
                raise ConfigurationError(f"Cannot resolve annotation {raw!r} of {owner}.{name}: {e}") from e
            hints[name] = raw
    return hints


def analyze_callable_parameters(callable_obj: Callable[..., Any]) -> Tuple[ParameterSpec, ...]:
    """Describe the injectable parameters of a constructor or factory method."""
    if inspect.isclass(callable_obj):
        if callable_obj.__init__ is object.__init__:
            return ()
        hints = type_hints(callable_obj.__init__)
    else:
        hints = type_hints(getattr(callable_obj, "__func__", callable_obj))

    try:
        sig = inspect.signature(callable_obj)
    except (ValueError, TypeError):
        return ()

    plan: List[ParameterSpec] = []
    for name, param in sig.parameters.items():
        if name in ("self", "cls"):
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        ann = hints.get(name, param.annotation)
        base, value, autowired = split_annotated(ann)
        plan.append(
            ParameterSpec(
                name=name,
                kind=param.kind,
                annotation=Any if base is inspect.Parameter.empty else base,
                value=value,
                autowired=autowired,
            )
        )
    return tuple(plan)


def analyze_class_fields(klass: type) -> Tuple[FieldSpec, ...]:
    """Describe the fields declared directly on *klass* (not inherited)."""
    own = inspect.get_annotations(klass)
    if not own:
        return ()
    hints = type_hints(klass)
    specs: List[FieldSpec] = []
    for name, raw in own.items():
        base, value, autowired, is_classvar, is_final = split_field_annotation(hints.get(name, raw))
        specs.append(FieldSpec(name, base, value, autowired, is_classvar, is_final))
    return tuple(specs)
