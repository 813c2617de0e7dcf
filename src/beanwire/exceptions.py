"""Exception hierarchy for beanwire.

All container-specific exceptions inherit from :class:`BeanwireError`, making it
easy to catch any wiring failure with a single ``except BeanwireError`` clause.
"""

from typing import Any, Iterable, Optional


def _type_name(t: Any) -> str:
    return getattr(t, "__name__", str(t))


class BeanwireError(Exception):
    """Base exception for all beanwire errors."""

    pass


class ConfigurationError(BeanwireError):
    """Raised when tagged classes or the root descriptor are wired incorrectly."""

    def __init__(self, msg: str):
        super().__init__(msg)


class DuplicateBeanError(ConfigurationError):
    """Raised when two bean definitions claim the same name.

    Attributes:
        name: The colliding bean name.
        existing: The type already registered under *name*.
        duplicate: The type whose registration was rejected.
    """

    def __init__(self, name: str, existing: Any, duplicate: Any):
        super().__init__(
            f"Duplicate bean name '{name}': {_type_name(duplicate)} collides with {_type_name(existing)}"
        )
        self.name = name
        self.existing = existing
        self.duplicate = duplicate


class InvalidFactoryMethodError(ConfigurationError):
    """Raised when a ``@bean`` method cannot produce a bean.

    Attributes:
        owner: The configuration class declaring the method.
        method_name: The offending method name.
    """

    def __init__(self, owner: Any, method_name: str, reason: str):
        super().__init__(f"Invalid @bean method {_type_name(owner)}.{method_name}: {reason}")
        self.owner = owner
        self.method_name = method_name


class ResolutionError(BeanwireError):
    """Base class for failures while resolving dependencies between beans."""

    pass


class CircularDependencyError(ResolutionError):
    """Raised when a bean is requested while it is still being constructed.

    Attributes:
        name: The bean name at which the cycle was detected.
        chain: The names being built at that moment, outermost first.
    """

    def __init__(self, name: str, chain: Iterable[str] = ()):
        self.name = name
        self.chain = tuple(chain)
        path = " -> ".join(self.chain + (name,)) if self.chain else name
        super().__init__(f"Circular dependency detected at bean '{name}': {path}")


class NoPrimaryBeanError(ResolutionError):
    """Raised when several beans match a type and none is marked primary.

    Attributes:
        required_type: The requested type.
        candidates: Names of the matching beans.
    """

    def __init__(self, required_type: Any, candidates: Iterable[str]):
        self.required_type = required_type
        self.candidates = tuple(candidates)
        super().__init__(
            f"No primary bean among {len(self.candidates)} candidates for type "
            f"{_type_name(required_type)}: {', '.join(self.candidates)}"
        )


class AmbiguousPrimaryBeanError(ResolutionError):
    """Raised when more than one matching bean is marked primary.

    Attributes:
        required_type: The requested type.
        candidates: Names of the primary beans.
    """

    def __init__(self, required_type: Any, candidates: Iterable[str]):
        self.required_type = required_type
        self.candidates = tuple(candidates)
        super().__init__(
            f"Ambiguous primary beans for type {_type_name(required_type)}: {', '.join(self.candidates)}"
        )


class BeanNotFoundError(ResolutionError):
    """Raised when a required bean cannot be found.

    Attributes:
        key: The requested bean name or type.
        origin: The bean (or member) that requested it, if any.
    """

    def __init__(self, key: Any, origin: Optional[str] = None):
        origin_name = origin or "context"
        super().__init__(f"No bean found for '{_type_name(key)}' (required by: '{origin_name}')")
        self.key = key
        self.origin = origin


class BeanTypeMismatchError(ResolutionError):
    """Raised when a bean found by name is not assignable to the requested type."""

    def __init__(self, name: str, required_type: Any, actual_type: Any):
        super().__init__(
            f"Bean '{name}' is of type {_type_name(actual_type)}, not assignable to {_type_name(required_type)}"
        )
        self.name = name
        self.required_type = required_type
        self.actual_type = actual_type


class BeanCreationError(BeanwireError):
    """Raised when a constructor or factory method fails while creating a bean.

    Attributes:
        name: The bean whose creation failed.
        cause: The original exception raised by user code.
    """

    def __init__(self, name: str, cause: Exception):
        super().__init__(f"Failed to create bean '{name}'; cause: {cause.__class__.__name__}: {cause}")
        self.name = name
        self.cause = cause


class InjectionError(BeanwireError):
    """Raised when a member cannot be injected.

    Attributes:
        bean_name: The bean being injected.
        member: The ``Class.member`` that failed.
    """

    def __init__(self, bean_name: str, member: str, reason: str):
        super().__init__(f"Cannot inject {member} for bean '{bean_name}': {reason}")
        self.bean_name = bean_name
        self.member = member


class PropertyError(BeanwireError):
    """Base class for property lookup and conversion failures."""

    pass


class PropertyKeyError(PropertyError):
    """Raised for a malformed or empty ``${key}`` expression."""

    def __init__(self, expression: Any):
        super().__init__(f"Null or malformed property key: {expression!r}")
        self.expression = expression


class PropertyNotFoundError(PropertyError):
    """Raised when a property is missing and no default was given."""

    def __init__(self, key: str):
        super().__init__(f"Property not found: '{key}'")
        self.key = key


class UnsupportedPropertyTypeError(PropertyError):
    """Raised when no converter is registered for the requested type."""

    def __init__(self, target_type: Any):
        super().__init__(f"Unsupported property type: {_type_name(target_type)}")
        self.target_type = target_type


class PropertyConversionError(PropertyError):
    """Raised when a property value cannot be parsed into the requested type."""

    def __init__(self, key: str, value: str, target_type: Any, cause: Exception):
        super().__init__(
            f"Cannot convert property '{key}'={value!r} to {_type_name(target_type)}: {cause}"
        )
        self.key = key
        self.value = value
        self.target_type = target_type
        self.cause = cause


class ResourceScanError(BeanwireError):
    """Raised when a namespace or search-path root cannot be interpreted at all."""

    def __init__(self, msg: str):
        super().__init__(msg)
