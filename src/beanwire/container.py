# src/beanwire/container.py
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from .analysis import ParameterSpec
from .bean_definition import BeanDefinition, BeanState
from .constants import LOGGER
from .decorators import Autowired, Value
from .definition_builder import BeanDefinitionBuilder
from .exceptions import (
    AmbiguousPrimaryBeanError,
    BeanCreationError,
    BeanNotFoundError,
    BeanTypeMismatchError,
    BeanwireError,
    CircularDependencyError,
    ConfigurationError,
    NoPrimaryBeanError,
)
from .injection import MemberInjector
from .properties import PropertyResolver
from .scanner import ComponentScanner

KeyT = Union[str, type]


def _type_name(t: Any) -> str:
    return getattr(t, "__name__", str(t))


class ApplicationContext:
    """Scan, build and wire every bean reachable from a root descriptor.

    Construction runs the whole wiring phase: discover candidates, build the
    definition registry, create configuration beans and then every other bean,
    inject members, and finally run ``@post_construct`` callbacks.

    Args:
        root: Class tagged with ``@component_scan`` (and optionally ``@imports``).
        property_resolver: Source of ``Value`` properties; defaults to the
            process environment.
        scanner: Component scanner to use (mainly to pin the search path).
        builder: Bean definition builder to use.
    """

    def __init__(
        self,
        root: type,
        property_resolver: Optional[PropertyResolver] = None,
        *,
        scanner: Optional[ComponentScanner] = None,
        builder: Optional[BeanDefinitionBuilder] = None,
    ) -> None:
        self.root = root
        self.properties = property_resolver or PropertyResolver.from_config()
        self._scanner = scanner or ComponentScanner()
        self._builder = builder or BeanDefinitionBuilder()
        self._definitions: Dict[str, BeanDefinition] = {}
        self._creating: Dict[str, None] = {}
        self._created: List[BeanDefinition] = []
        self._injector = MemberInjector(self)
        self._closed = False
        self._refresh()

    def _refresh(self) -> None:
        candidates = self._scanner.discover_candidates(self.root)
        self._definitions = self._builder.build(candidates)
        LOGGER.info(
            "Discovered %d candidates and %d bean definitions from %s",
            len(candidates), len(self._definitions), _type_name(self.root),
        )
        self._create_beans()
        for definition in self._definitions.values():
            self._injector.inject(definition)
        self._invoke_init_callbacks()
        LOGGER.info("Context for %s started with %d beans", _type_name(self.root), len(self._created))

    def _create_beans(self) -> None:
        configs = [d for d in self._definitions.values() if d.configuration]
        for definition in configs:
            if definition.instance is None:
                self.resolve(definition)
        for definition in list(self._definitions.values()):
            if definition.instance is None:
                self.resolve(definition)

    def _invoke_init_callbacks(self) -> None:
        for definition in self._created:
            if definition.init_method_name is None:
                continue
            try:
                getattr(definition.instance, definition.init_method_name)()
            except BeanwireError:
                raise
            except Exception as e:
                raise BeanCreationError(definition.name, e) from e

    # -- resolution -----------------------------------------------------------

    def resolve(self, definition: BeanDefinition) -> Any:
        """Build *definition* (and, recursively, its unbuilt dependencies).

        Raises:
            CircularDependencyError: If *definition* is already being built.
        """
        if definition.instance is not None:
            return definition.instance
        if definition.name in self._creating:
            raise CircularDependencyError(definition.name, self._creating)
        self._creating[definition.name] = None
        definition.state = BeanState.BUILDING
        try:
            args, kwargs = self._resolve_arguments(definition)
            instance = self._instantiate(definition, args, kwargs)
        except BaseException:
            definition.state = BeanState.UNBUILT
            raise
        finally:
            self._creating.pop(definition.name, None)
        definition.instance = instance
        definition.state = BeanState.BUILT
        self._created.append(definition)
        LOGGER.debug("Created bean '%s' (%s)", definition.name, _type_name(type(instance)))
        return instance

    def _resolve_arguments(self, definition: BeanDefinition) -> Tuple[List[Any], Dict[str, Any]]:
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for param in definition.dependencies:
            value = self._resolve_parameter(definition, param)
            if param.keyword_only:
                kwargs[param.name] = value
            else:
                args.append(value)
        return args, kwargs

    def _resolve_parameter(self, definition: BeanDefinition, param: ParameterSpec) -> Any:
        where = f"parameter '{param.name}' of bean '{definition.name}'"
        if param.value is not None and param.autowired is not None:
            raise ConfigurationError(f"Cannot specify both Autowired and Value on {where}")
        if param.value is None and param.autowired is None:
            raise ConfigurationError(f"Must specify Autowired or Value on {where}")
        if param.value is not None:
            return self.resolve_value(param.value, param.annotation)
        if definition.configuration:
            raise ConfigurationError(f"Cannot use Autowired when creating @configuration bean: {where}")
        return self.resolve_autowired(
            param.autowired,
            param.annotation,
            origin=definition.name,
            fallback_name=param.name if definition.is_factory_bean else None,
        )

    def resolve_value(self, marker: Value, target_type: Any) -> Any:
        return self.properties.resolve(marker.expression, str if target_type is Any else target_type)

    def resolve_autowired(
        self,
        marker: Autowired,
        required_type: Any,
        *,
        origin: str,
        fallback_name: Optional[str] = None,
    ) -> Any:
        """Find (building if needed) the bean an ``Autowired`` marker points at.

        An explicit ``name`` wins. Otherwise *fallback_name* (the parameter name
        of a ``@bean`` method) is tried, then the primary bean of *required_type*.
        """
        dependency: Optional[BeanDefinition] = None
        if marker.name:
            dependency = self.find_bean_definition(marker.name, required_type)
        else:
            if fallback_name:
                candidate = self._definitions.get(fallback_name)
                if candidate is not None and candidate.is_assignable_to(required_type):
                    dependency = candidate
            if dependency is None and required_type is not Any:
                dependency = self.find_primary_bean_definition(required_type)
        if dependency is None:
            if marker.required:
                raise BeanNotFoundError(marker.name or required_type, origin)
            return None
        if dependency.instance is not None:
            return dependency.instance
        return self.resolve(dependency)

    def _instantiate(self, definition: BeanDefinition, args: List[Any], kwargs: Dict[str, Any]) -> Any:
        if definition.constructor is not None:
            fn = definition.constructor
        else:
            owner = self._definitions.get(definition.factory_name)
            if owner is None:
                raise BeanNotFoundError(definition.factory_name, definition.name)
            owner_instance = owner.instance if owner.instance is not None else self.resolve(owner)
            fn = getattr(owner_instance, definition.factory_method)
        try:
            instance = fn(*args, **kwargs)
        except BeanwireError:
            raise
        except Exception as e:
            raise BeanCreationError(definition.name, e) from e
        if instance is None:
            raise BeanCreationError(definition.name, ValueError("factory method returned None"))
        return instance

    # -- lookup ---------------------------------------------------------------

    def find_bean_definition(self, name: str, required_type: Any = None) -> Optional[BeanDefinition]:
        definition = self._definitions.get(name)
        if definition is None:
            return None
        if required_type is not None and not definition.is_assignable_to(required_type):
            raise BeanTypeMismatchError(name, required_type, definition.bean_type)
        return definition

    def find_bean_definitions(self, required_type: Any) -> List[BeanDefinition]:
        return sorted(
            (d for d in self._definitions.values() if d.is_assignable_to(required_type)),
            key=BeanDefinition.sort_key,
        )

    def find_primary_bean_definition(self, required_type: Any) -> Optional[BeanDefinition]:
        candidates = self.find_bean_definitions(required_type)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]
        primaries = [d for d in candidates if d.primary]
        if not primaries:
            raise NoPrimaryBeanError(required_type, [d.name for d in candidates])
        if len(primaries) > 1:
            raise AmbiguousPrimaryBeanError(required_type, [d.name for d in primaries])
        return primaries[0]

    def get_bean(self, key: KeyT) -> Any:
        """Return the bean named *key*, or the primary bean of type *key*."""
        if isinstance(key, str):
            definition = self.find_bean_definition(key)
        else:
            definition = self.find_primary_bean_definition(key)
        if definition is None:
            raise BeanNotFoundError(key)
        return definition.instance if definition.instance is not None else self.resolve(definition)

    def get_beans(self, required_type: Any) -> List[Any]:
        return [self.get_bean(d.name) for d in self.find_bean_definitions(required_type)]

    def contains_bean(self, name: str) -> bool:
        return name in self._definitions

    def bean_names(self) -> Tuple[str, ...]:
        return tuple(self._definitions)

    def definitions(self) -> Iterator[BeanDefinition]:
        return iter(list(self._definitions.values()))

    # -- teardown -------------------------------------------------------------

    def close(self) -> None:
        """Run ``@pre_destroy`` / ``destroy_method`` callbacks in reverse creation order."""
        if self._closed:
            return
        self._closed = True
        for definition in reversed(self._created):
            if definition.destroy_method_name is None:
                continue
            try:
                getattr(definition.instance, definition.destroy_method_name)()
            except Exception as e:
                LOGGER.warning(
                    "Destroy method %s of bean '%s' failed: %s",
                    definition.destroy_method_name, definition.name, e,
                )
        LOGGER.info("Context for %s closed", _type_name(self.root))

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "ApplicationContext":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
