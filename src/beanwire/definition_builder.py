"""Build the bean definition registry from component candidates.

Every candidate class is inspected once, eagerly: tags, constructor,
lifecycle callbacks and constructor/factory parameters are captured in a
:class:`~beanwire.bean_definition.BeanDefinition` so that resolution never has
to look at the class again.
"""

import inspect
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .analysis import analyze_callable_parameters, split_annotated, type_hints
from .bean_definition import BeanDefinition
from .constants import DEFAULT_ORDER, PRIMITIVE_TYPES
from .decorators import own_meta
from .exceptions import ConfigurationError, DuplicateBeanError, InvalidFactoryMethodError
from .scanner import ComponentDescriptor

_logger = logging.getLogger(__name__)


def default_bean_name(cls: type) -> str:
    """``OrderService`` -> ``orderService``."""
    simple = cls.__name__
    return simple[:1].lower() + simple[1:]


def iter_members(cls: type) -> Iterator[Tuple[str, Any]]:
    """Yield ``(name, raw attribute)`` across the MRO; subclass definitions win."""
    seen: Set[str] = set()
    for klass in cls.__mro__:
        if klass is object:
            break
        for name, attr in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            yield name, attr


def _function_of(attr: Any) -> Optional[Callable[..., Any]]:
    if isinstance(attr, (staticmethod, classmethod)):
        return attr.__func__
    return attr if inspect.isfunction(attr) else None


def _requires_arguments(fn: Callable[..., Any]) -> bool:
    try:
        params = list(inspect.signature(fn).parameters.values())[1:]
    except (ValueError, TypeError):
        return False
    return any(
        p.default is inspect.Parameter.empty
        and p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for p in params
    )


class BeanDefinitionBuilder:
    def build(self, candidates: Iterable[ComponentDescriptor]) -> Dict[str, BeanDefinition]:
        definitions: Dict[str, BeanDefinition] = {}
        seen: Set[type] = set()
        for descriptor in sorted(candidates, key=lambda d: d.qualified_name):
            for cls in descriptor.load():
                if cls in seen:
                    continue
                seen.add(cls)
                meta = own_meta(cls)
                if not meta.get("component"):
                    continue
                definition = self.definition_for_class(cls)
                register(definitions, definition)
                if meta.get("configuration"):
                    for factory_def in self.factory_definitions(cls, definition.name):
                        register(definitions, factory_def)
        return definitions

    def definition_for_class(self, cls: type) -> BeanDefinition:
        meta = own_meta(cls)
        ctor = self._find_constructor(cls)
        init_name, init_fn = self._find_callback(cls, "post_construct")
        destroy_name, destroy_fn = self._find_callback(cls, "pre_destroy")
        return BeanDefinition(
            name=meta.get("name") or default_bean_name(cls),
            bean_type=cls,
            constructor=ctor,
            dependencies=analyze_callable_parameters(ctor),
            order=meta.get("order", DEFAULT_ORDER),
            primary=bool(meta.get("primary", False)),
            init_method_name=init_name,
            init_method=init_fn,
            destroy_method_name=destroy_name,
            destroy_method=destroy_fn,
            configuration=bool(meta.get("configuration", False)),
        )

    def _find_constructor(self, cls: type) -> Callable[..., Any]:
        if inspect.isabstract(cls):
            raise ConfigurationError(f"No eligible constructor: {cls.__qualname__} is abstract")
        tagged: List[str] = []
        for name, attr in iter_members(cls):
            if not own_meta(attr).get("constructor"):
                continue
            if not isinstance(attr, classmethod):
                raise ConfigurationError(f"@constructor {cls.__qualname__}.{name} must be a classmethod")
            tagged.append(name)
        if len(tagged) > 1:
            raise ConfigurationError(
                f"More than one constructor found in {cls.__qualname__}: {', '.join(sorted(tagged))}"
            )
        return getattr(cls, tagged[0]) if tagged else cls

    def _find_callback(self, cls: type, tag: str) -> Tuple[Optional[str], Optional[Callable[..., Any]]]:
        # An untagged override keeps the tag of the method it overrides.
        tagged = {name for klass in cls.__mro__ for name, attr in vars(klass).items() if own_meta(attr).get(tag)}
        found = [(name, attr) for name, attr in iter_members(cls) if name in tagged]
        if not found:
            return None, None
        if len(found) > 1:
            names = ", ".join(n for n, _ in found)
            raise ConfigurationError(f"Multiple @{tag} methods in {cls.__qualname__}: {names}")
        name, attr = found[0]
        fn = _function_of(attr)
        if fn is None or isinstance(attr, (staticmethod, classmethod)) or _requires_arguments(fn):
            raise ConfigurationError(f"@{tag} {cls.__qualname__}.{name} must be a zero-argument method")
        return name, fn

    def factory_definitions(self, cls: type, owner_name: str) -> List[BeanDefinition]:
        out: List[BeanDefinition] = []
        for name, attr in iter_members(cls):
            bean_meta = own_meta(attr).get("bean")
            if bean_meta is None:
                continue
            fn = _function_of(attr)
            if fn is None:
                raise InvalidFactoryMethodError(cls, name, "@bean must decorate a method")
            bean_type = self._factory_return_type(cls, name, fn)
            method_meta = own_meta(attr)
            init_name, init_fn = self._named_callback(bean_type, bean_meta.get("init_method"), "init_method")
            destroy_name, destroy_fn = self._named_callback(bean_type, bean_meta.get("destroy_method"), "destroy_method")
            out.append(
                BeanDefinition(
                    name=bean_meta.get("name") or name,
                    bean_type=bean_type,
                    factory_name=owner_name,
                    factory_method=name,
                    dependencies=analyze_callable_parameters(fn),
                    order=method_meta.get("order", DEFAULT_ORDER),
                    primary=bool(method_meta.get("primary", False)),
                    init_method_name=init_name,
                    init_method=init_fn,
                    destroy_method_name=destroy_name,
                    destroy_method=destroy_fn,
                )
            )
        return out

    def _factory_return_type(self, cls: type, name: str, fn: Callable[..., Any]) -> type:
        if name.startswith("_"):
            raise InvalidFactoryMethodError(cls, name, "must be public")
        if getattr(fn, "__isabstractmethod__", False):
            raise InvalidFactoryMethodError(cls, name, "must not be abstract")
        if getattr(fn, "__final__", False):
            raise InvalidFactoryMethodError(cls, name, "must not be final")
        hints = type_hints(fn)
        if "return" not in hints:
            raise InvalidFactoryMethodError(cls, name, "must declare a return type")
        rt, _, _ = split_annotated(hints["return"])
        if rt is None or rt is type(None):
            raise InvalidFactoryMethodError(cls, name, "must not return None")
        if rt in PRIMITIVE_TYPES:
            raise InvalidFactoryMethodError(cls, name, f"must not return primitive type {rt.__name__}")
        if inspect.isclass(rt) and rt is not Any:
            return rt
        origin = getattr(rt, "__origin__", None)
        if inspect.isclass(origin):
            return origin
        raise InvalidFactoryMethodError(cls, name, f"return type {rt!r} is not a class")

    def _named_callback(
        self, bean_type: type, method_name: Optional[str], option: str
    ) -> Tuple[Optional[str], Optional[Callable[..., Any]]]:
        if not method_name:
            return None, None
        fn = getattr(bean_type, method_name, None)
        if not callable(fn) or _requires_arguments(fn):
            raise ConfigurationError(
                f"{option}='{method_name}' is not a zero-argument method of {bean_type.__qualname__}"
            )
        return method_name, fn


def register(definitions: Dict[str, BeanDefinition], definition: BeanDefinition) -> None:
    """Insert *definition*, refusing to overwrite an existing name."""
    existing = definitions.get(definition.name)
    if existing is not None:
        raise DuplicateBeanError(definition.name, existing.bean_type, definition.bean_type)
    definitions[definition.name] = definition
    _logger.debug("Registered bean '%s' (%s)", definition.name, definition.bean_type.__qualname__)
