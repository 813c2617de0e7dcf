"""Bean definitions: the metadata record describing how to build one bean."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from .analysis import ParameterSpec
from .constants import DEFAULT_ORDER


class BeanState(str, Enum):
    UNBUILT = "unbuilt"
    BUILDING = "building"
    BUILT = "built"


@dataclass(eq=False)
class BeanDefinition:
    """Mutable descriptor of a bean; only ``instance`` and ``state`` change after building.

    A definition is produced either by a ``constructor`` (the class itself or a
    ``@constructor`` classmethod) or by calling ``factory_method`` on the bean
    named ``factory_name``, never both.

    Attributes:
        name: Unique bean name within the context.
        bean_type: The type produced by this definition.
        instance: The built bean, ``None`` until resolved.
        constructor: Callable building the bean directly.
        factory_name: Name of the configuration bean owning ``factory_method``.
        factory_method: Name of the ``@bean`` method on the owner.
        dependencies: Statically analysed constructor/factory parameters.
        order: Listing order among beans of one type (lower first).
        primary: Whether this bean wins type-based resolution ties.
        init_method_name / init_method: Zero-argument callback run after injection.
        destroy_method_name / destroy_method: Zero-argument callback run on close.
        configuration: Whether this is a configuration provider.
        state: Build state of the definition.
    """
    name: str
    bean_type: type
    instance: Any = None
    constructor: Optional[Callable[..., Any]] = None
    factory_name: Optional[str] = None
    factory_method: Optional[str] = None
    dependencies: Tuple[ParameterSpec, ...] = ()
    order: int = DEFAULT_ORDER
    primary: bool = False
    init_method_name: Optional[str] = None
    init_method: Optional[Callable[..., Any]] = field(default=None, repr=False)
    destroy_method_name: Optional[str] = None
    destroy_method: Optional[Callable[..., Any]] = field(default=None, repr=False)
    configuration: bool = False
    state: BeanState = BeanState.UNBUILT

    def __post_init__(self) -> None:
        if (self.constructor is None) == (self.factory_name is None):
            raise ValueError(f"Bean definition '{self.name}' needs exactly one of constructor or factory method")

    @property
    def is_factory_bean(self) -> bool:
        return self.factory_name is not None

    def sort_key(self) -> Tuple[int, str]:
        return (self.order, self.name)

    def is_assignable_to(self, required_type: Any) -> bool:
        if required_type is Any or required_type is object:
            return True
        try:
            return issubclass(self.bean_type, required_type)
        except TypeError:
            return False
