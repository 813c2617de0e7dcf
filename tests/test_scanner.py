import importlib
from collections import OrderedDict

import pytest

from beanwire import component, component_scan, imports
from beanwire.exceptions import ConfigurationError
from beanwire.resource import Resource, ResourceOrigin
from beanwire.resource_resolver import ResourceResolver
from beanwire.scanner import ComponentDescriptor, ComponentScanner, resource_to_module_name

APP = {
    "app.py": """
        from beanwire import component_scan

        @component_scan()
        class App:
            pass
    """,
    "services/orders.py": """
        from collections import OrderedDict

        from beanwire import component

        @component
        class OrderService:
            pass

        class Helper:
            pass
    """,
    "services/notes.txt": "not a module",
    "services/my-script.py": "",
}


@component
class Extra:
    pass


def resource(path):
    return Resource(location=f"/x/{path}", name=path.rsplit("/", 1)[-1], origin=ResourceOrigin.PLAIN_FILE, path=path)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("app/services/orders.py", "app.services.orders"),
        ("app/services/__init__.py", "app.services"),
        ("app/__init__.py", "app"),
        ("app/services/notes.txt", None),
        ("app/services/my-script.py", None),
    ],
)
def test_resource_to_module_name(path, expected):
    assert resource_to_module_name(resource(path)) == expected


@pytest.mark.parametrize("archive", [False, True], ids=["directory", "archive"])
def test_default_namespace_is_root_package(package_factory, archive):
    pkg = package_factory(APP, archive=archive)
    App = importlib.import_module(f"{pkg.name}.app").App
    scanner = ComponentScanner(ResourceResolver([pkg.root]))

    assert scanner.scan_namespaces(App) == (pkg.name,)
    assert scanner.discover_candidates(App) == {
        ComponentDescriptor(pkg.name),
        ComponentDescriptor(f"{pkg.name}.app"),
        ComponentDescriptor(f"{pkg.name}.services"),
        ComponentDescriptor(f"{pkg.name}.services.orders"),
    }


def test_explicit_namespaces_restrict_the_scan(package_factory):
    pkg = package_factory(APP)

    @component_scan(f"{pkg.name}.services")
    class Root:
        pass

    found = ComponentScanner(ResourceResolver([pkg.root])).discover_candidates(Root)

    assert {d.qualified_name for d in found} == {f"{pkg.name}.services", f"{pkg.name}.services.orders"}


def test_module_descriptor_loads_only_classes_it_defines(package_factory):
    pkg = package_factory(APP)

    classes = ComponentDescriptor(f"{pkg.name}.services.orders").load()

    assert sorted(c.__name__ for c in classes) == ["Helper", "OrderService"]
    assert OrderedDict not in classes


def test_imports_add_resolved_descriptors():
    @imports(Extra)
    @component_scan("beanwire_unscanned")
    class Root:
        pass

    found = ComponentScanner(ResourceResolver(())).discover_candidates(Root)

    assert found == {ComponentDescriptor.for_class(Extra)}
    (descriptor,) = found
    assert descriptor.qualified_name.endswith(":Extra")
    assert not descriptor.is_module
    assert descriptor.load() == (Extra,)


def test_class_descriptor_without_resolved_type_is_imported():
    descriptor = ComponentDescriptor(f"{Extra.__module__}:Extra")

    assert descriptor.load() == (Extra,)


def test_root_without_component_scan_is_rejected():
    class Root:
        pass

    with pytest.raises(ConfigurationError, match="component_scan"):
        ComponentScanner(ResourceResolver(())).scan_namespaces(Root)


def test_component_scan_is_not_inherited():
    @component_scan("beanwire_unscanned")
    class Base:
        pass

    class Root(Base):
        pass

    with pytest.raises(ConfigurationError):
        ComponentScanner(ResourceResolver(())).discover_candidates(Root)


def test_root_in_top_level_module_needs_explicit_namespace():
    Root = component_scan()(type("Root", (), {"__module__": "beanwire_toplevel_module"}))

    with pytest.raises(ConfigurationError, match="top-level module"):
        ComponentScanner(ResourceResolver(())).scan_namespaces(Root)
