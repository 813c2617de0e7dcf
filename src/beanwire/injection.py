"""Field and setter injection after construction.

The injectable members of a type (its own and every ancestor's) are flattened
once into a tuple of :class:`InjectionPoint` and cached per type.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple

from .analysis import analyze_class_fields, split_annotated, type_hints
from .bean_definition import BeanDefinition
from .decorators import Autowired, Value, inject_markers
from .exceptions import InjectionError

if TYPE_CHECKING:
    from .container import ApplicationContext

_logger = logging.getLogger(__name__)

FIELD = "field"
METHOD = "method"


@dataclass(frozen=True)
class InjectionPoint:
    owner: type
    name: str
    kind: str
    target_type: Any
    value: Optional[Value] = None
    autowired: Optional[Autowired] = None
    is_static: bool = False
    is_final: bool = False
    accepts_argument: bool = True

    @property
    def member(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"


def _method_point(klass: type, name: str, attr: Any) -> Optional[InjectionPoint]:
    markers = tuple(inject_markers(attr))
    if not markers:
        return None
    is_static = isinstance(attr, (staticmethod, classmethod))
    fn = attr.__func__ if is_static else attr
    value = next((m for m in markers if isinstance(m, Value)), None)
    autowired = next((m for m in markers if isinstance(m, Autowired)), None)
    params = list(inspect.signature(fn).parameters.values())
    if not is_static:
        params = params[1:]
    target: Any = Any
    if params:
        target, _, _ = split_annotated(type_hints(fn).get(params[0].name, Any))
    return InjectionPoint(
        owner=klass,
        name=name,
        kind=METHOD,
        target_type=target,
        value=value,
        autowired=autowired,
        is_static=is_static,
        is_final=bool(getattr(fn, "__final__", False)),
        accepts_argument=bool(params),
    )


def injection_points(cls: type) -> Tuple[InjectionPoint, ...]:
    points: List[InjectionPoint] = []
    # A member redeclared by a subclass is injected once, as the subclass declares it.
    seen: Set[str] = set()
    for klass in cls.__mro__:
        if klass is object:
            break
        for f in analyze_class_fields(klass):
            if f.name in seen:
                continue
            seen.add(f.name)
            if f.value is None and f.autowired is None:
                continue
            points.append(
                InjectionPoint(
                    owner=klass,
                    name=f.name,
                    kind=FIELD,
                    target_type=f.annotation,
                    value=f.value,
                    autowired=f.autowired,
                    is_static=f.is_classvar,
                    is_final=f.is_final,
                )
            )
        for name, attr in vars(klass).items():
            if name in seen or name == "__annotations__":
                continue
            point = _method_point(klass, name, attr)
            if point is not None:
                seen.add(name)
                points.append(point)
    return tuple(points)


class MemberInjector:
    """Inject ``Value`` / ``Autowired`` members of built beans."""

    def __init__(self, context: "ApplicationContext") -> None:
        self._context = context
        self._plans: Dict[type, Tuple[InjectionPoint, ...]] = {}

    def plan_for(self, cls: type) -> Tuple[InjectionPoint, ...]:
        plan = self._plans.get(cls)
        if plan is None:
            plan = self._plans[cls] = injection_points(cls)
        return plan

    def inject(self, definition: BeanDefinition) -> None:
        instance = definition.instance
        for point in self.plan_for(type(instance)):
            self._inject_point(definition, instance, point)

    def _inject_point(self, definition: BeanDefinition, instance: Any, point: InjectionPoint) -> None:
        self._check(definition, point)
        if point.value is not None:
            resolved = self._context.resolve_value(point.value, point.target_type)
        else:
            resolved = self._context.resolve_autowired(
                point.autowired, point.target_type, origin=f"{definition.name}.{point.name}"
            )
            if resolved is None and point.kind == FIELD:
                return
        if point.kind == FIELD:
            setattr(instance, point.name, resolved)
        else:
            getattr(instance, point.name)(resolved)

    def _check(self, definition: BeanDefinition, point: InjectionPoint) -> None:
        if point.value is not None and point.autowired is not None:
            raise InjectionError(definition.name, point.member, "cannot specify both Autowired and Value")
        if point.is_static:
            raise InjectionError(definition.name, point.member, f"cannot inject static {point.kind}")
        if point.kind == FIELD and point.is_final:
            raise InjectionError(definition.name, point.member, "cannot inject final field")
        if point.kind == METHOD:
            if not point.accepts_argument:
                raise InjectionError(definition.name, point.member, "cannot inject a non-setter method")
            if point.is_final:
                _logger.warning(
                    "Injecting final method %s of bean '%s'; a subclass or wrapper may not observe the call",
                    point.member, definition.name,
                )
