import datetime
import decimal
from pathlib import Path

import pytest

from beanwire.config_builder import configuration
from beanwire.config_sources import DictSource
from beanwire.exceptions import (
    PropertyConversionError,
    PropertyKeyError,
    PropertyNotFoundError,
    UnsupportedPropertyTypeError,
)
from beanwire.properties import PropertyExpression, PropertyResolver


@pytest.mark.parametrize(
    "raw, key, default",
    [
        ("${server.port}", "server.port", None),
        ("${server.port:8080}", "server.port", "8080"),
        ("${db.url:jdbc:h2:mem}", "db.url", "jdbc:h2:mem"),
        ("${name:}", "name", ""),
        ("${ name :x}", "name", "x"),
    ],
)
def test_parse_expression(raw, key, default):
    expr = PropertyExpression.parse(raw)
    assert expr.key == key
    assert expr.default == default


@pytest.mark.parametrize("raw", ["server.port", "${}", "${:8080}", "${port", "$port}", "", None, 8080])
def test_malformed_expressions(raw):
    with pytest.raises(PropertyKeyError):
        PropertyExpression.parse(raw)


def test_resolve_prefers_store_over_default():
    resolver = PropertyResolver({"server.port": "9090"})

    assert resolver.resolve("${server.port:8080}", int) == 9090
    assert resolver.resolve("${admin.port:8080}", int) == 8080


def test_missing_property_without_default():
    resolver = PropertyResolver({})

    with pytest.raises(PropertyNotFoundError) as exc:
        resolver.resolve("${server.port}", int)
    assert exc.value.key == "server.port"


def test_empty_values_count_as_missing():
    resolver = PropertyResolver({"server.port": ""})

    assert resolver.resolve("${server.port:8080}", int) == 8080
    with pytest.raises(PropertyNotFoundError):
        resolver.resolve("${server.port:}", int)


def test_store_values_are_stringified():
    resolver = PropertyResolver({"retries": 3, "debug": True, "skip": None})

    assert resolver.get_property("retries") == "3"
    assert resolver.get_property("retries", int) == 3
    assert resolver.get_property("skip") is None
    assert set(resolver.keys()) == {"retries", "debug"}


def test_get_property_accepts_plain_keys_and_expressions():
    resolver = PropertyResolver({"app.name": "shop"})

    assert resolver.get_property("app.name") == "shop"
    assert resolver.get_property("${app.name}") == "shop"
    assert resolver.get_property("${app.title:Shop}") == "Shop"
    assert resolver.get_property("app.title") is None


def test_get_required_property():
    resolver = PropertyResolver({"app.name": "shop"})

    assert resolver.get_required_property("app.name") == "shop"
    with pytest.raises(PropertyNotFoundError):
        resolver.get_required_property("app.title")
    with pytest.raises(PropertyKeyError):
        resolver.get_required_property("")


@pytest.mark.parametrize(
    "raw, target, expected",
    [
        ("hello", str, "hello"),
        ("true", bool, True),
        ("Yes", bool, True),
        ("off", bool, False),
        ("0", bool, False),
        (" 42 ", int, 42),
        ("-3", int, -3),
        ("2.5", float, 2.5),
        ("10.05", decimal.Decimal, decimal.Decimal("10.05")),
        ("2024-03-01", datetime.date, datetime.date(2024, 3, 1)),
        ("13:45:00", datetime.time, datetime.time(13, 45)),
        ("2024-03-01T13:45:00", datetime.datetime, datetime.datetime(2024, 3, 1, 13, 45)),
        ("PT1M30S", datetime.timedelta, datetime.timedelta(seconds=90)),
        ("P1DT2H", datetime.timedelta, datetime.timedelta(days=1, hours=2)),
        ("-PT5S", datetime.timedelta, datetime.timedelta(seconds=-5)),
        ("2.5", datetime.timedelta, datetime.timedelta(seconds=2.5)),
        ("/var/data", Path, Path("/var/data")),
    ],
)
def test_conversion_table(raw, target, expected):
    assert PropertyResolver({"k": raw}).get_property("k", target) == expected


@pytest.mark.parametrize(
    "raw, target",
    [("maybe", bool), ("abc", int), ("1.2.3", float), ("ten", decimal.Decimal), ("P", datetime.timedelta)],
)
def test_conversion_failures(raw, target):
    with pytest.raises(PropertyConversionError) as exc:
        PropertyResolver({"k": raw}).get_property("k", target)
    assert exc.value.key == "k"
    assert exc.value.value == raw
    assert exc.value.target_type is target


def test_unsupported_target_type():
    with pytest.raises(UnsupportedPropertyTypeError):
        PropertyResolver({"k": "a,b"}).get_property("k", list)


def test_register_converter():
    resolver = PropertyResolver({"hosts": "a, b ,c"})
    resolver.register_converter(list, lambda s: [p.strip() for p in s.split(",")])

    assert resolver.resolve("${hosts}", list) == ["a", "b", "c"]


def test_from_config_layers_environment_sources_and_overrides():
    config = configuration(DictSource({"a": 1, "b": {"c": 2}}), overrides={"d": 4})

    resolver = PropertyResolver.from_config(config, environ={"a": "env", "e": "5"})

    assert resolver.get_property("a") == "1"
    assert resolver.get_property("b.c", int) == 2
    assert resolver.get_property("d", int) == 4
    assert resolver.get_property("e", int) == 5


def test_from_config_without_environment():
    resolver = PropertyResolver.from_config(configuration(include_environ=False), environ={"x": "1"})

    assert resolver.get_property("x") is None


def test_from_config_defaults_to_os_environ(monkeypatch):
    monkeypatch.setenv("BEANWIRE_TEST_PROPERTY", "on")

    assert PropertyResolver.from_config().get_property("BEANWIRE_TEST_PROPERTY", bool) is True
