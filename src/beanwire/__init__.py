# beanwire/__init__.py
try:
    from ._version import __version__
except Exception:
    __version__ = "0.0.0"

from .api import get_context, init, reset
from .bean_definition import BeanDefinition, BeanState
from .config_builder import ContextConfig, configuration
from .config_sources import (
    DictSource,
    EnvSource,
    JsonFileSource,
    PropertiesFileSource,
    PropertySource,
    YamlFileSource,
)
from .container import ApplicationContext
from .decorators import (
    Autowired,
    Value,
    bean,
    component,
    component_scan,
    configuration as configuration_class,
    constructor,
    imports,
    order,
    post_construct,
    pre_destroy,
    primary,
)
from .properties import PropertyExpression, PropertyResolver
from .resource import Resource, ResourceOrigin
from .resource_resolver import ResourceResolver
from .scanner import ComponentDescriptor, ComponentScanner

__all__ = [
    "__version__",
    "ApplicationContext",
    "BeanDefinition",
    "BeanState",
    "ComponentDescriptor",
    "ComponentScanner",
    "ContextConfig",
    "PropertyExpression",
    "PropertyResolver",
    "Resource",
    "ResourceOrigin",
    "ResourceResolver",
    "PropertySource",
    "EnvSource",
    "DictSource",
    "PropertiesFileSource",
    "JsonFileSource",
    "YamlFileSource",
    "init",
    "get_context",
    "reset",
    "configuration",
    "component",
    "configuration_class",
    "component_scan",
    "imports",
    "bean",
    "primary",
    "order",
    "constructor",
    "post_construct",
    "pre_destroy",
    "Value",
    "Autowired",
]
