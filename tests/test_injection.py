import importlib
import logging
from typing import Annotated, ClassVar, Final, final

import pytest

from beanwire.analysis import type_hints
from beanwire.decorators import Autowired, Value, bean, component, configuration
from beanwire.exceptions import BeanNotFoundError, ConfigurationError, InjectionError
from beanwire.injection import FIELD, METHOD, injection_points


@component
class Repo:
    pass


class Cache:
    pass


@component
class Greeter:
    greeting: Annotated[str, Value("${greeting:hello}")]
    repo: Annotated[Repo, Autowired()]
    plain: int = 0


class BaseHandler:
    repo: Annotated[Repo, Autowired()]
    label: Annotated[str, Value("${handler.label:base}")]


@component
class Handler(BaseHandler):
    label: Annotated[str, Value("${handler.child_label:child}")]
    retries: Annotated[int, Value("${handler.retries:3}")]


class SpecialHandler(BaseHandler):
    special: Annotated[bool, Value("${handler.special:true}")]


@configuration
class HandlerConfig:
    @bean
    def special_handler(self) -> BaseHandler:
        return SpecialHandler()


@component
class Mailer:
    @Value("${mail.host:localhost}")
    def set_host(self, host: str):
        self.host = host

    @Autowired()
    def set_repo(self, repo: Repo):
        self.repo = repo

    @Autowired(required=False)
    def set_cache(self, cache: Cache):
        self.cache = cache


@component
class OptionalCache:
    cache: Annotated[Cache, Autowired(required=False)]


@component
class RequiredCache:
    cache: Annotated[Cache, Autowired()]


@component
class StaticField:
    counter: ClassVar[Annotated[int, Value("${counter:1}")]]


@component
class FinalField:
    limit: Final[Annotated[int, Value("${limit:1}")]]


@component
class StaticSetter:
    @staticmethod
    @Value("${level:1}")
    def set_level(level: int):
        pass


@component
class NotASetter:
    @Autowired()
    def refresh(self):
        pass


@component
class BothMarkers:
    repo: Annotated[Repo, Autowired(), Value("${repo}")]


@component
class FinalSetter:
    @Value("${level:7}")
    @final
    def set_level(self, level: int):
        self.level = level


def test_field_injection(wire):
    ctx = wire(Greeter, Repo, properties={"greeting": "hola"})

    greeter = ctx.get_bean(Greeter)
    assert greeter.greeting == "hola"
    assert greeter.repo is ctx.get_bean(Repo)
    assert greeter.plain == 0


def test_fields_of_ancestors_are_injected(wire):
    ctx = wire(Handler, Repo)

    handler = ctx.get_bean(Handler)
    assert handler.repo is ctx.get_bean(Repo)
    assert handler.retries == 3


def test_redeclared_field_is_injected_as_the_subclass_declares_it(wire):
    handler = wire(Handler, Repo, properties={"handler.label": "from base"}).get_bean(Handler)

    assert handler.label == "child"


def test_members_of_the_runtime_type_are_injected(wire):
    ctx = wire(HandlerConfig, Repo)

    handler = ctx.get_bean("special_handler")
    assert isinstance(handler, SpecialHandler)
    assert handler.special is True
    assert handler.label == "base"
    assert handler.repo is ctx.get_bean(Repo)


def test_setter_injection(wire):
    ctx = wire(Mailer, Repo, properties={"mail.host": "smtp.example.org"})

    mailer = ctx.get_bean(Mailer)
    assert mailer.host == "smtp.example.org"
    assert mailer.repo is ctx.get_bean(Repo)
    assert mailer.cache is None


def test_optional_field_is_left_alone_when_missing(wire):
    cache = wire(OptionalCache).get_bean(OptionalCache)

    assert not hasattr(cache, "cache")


def test_required_field_must_resolve(wire):
    with pytest.raises(BeanNotFoundError) as exc:
        wire(RequiredCache)

    assert exc.value.origin == "requiredCache.cache"


@pytest.mark.parametrize(
    "cls, reason",
    [
        (StaticField, "static field"),
        (FinalField, "final field"),
        (StaticSetter, "static method"),
        (NotASetter, "non-setter"),
        (BothMarkers, "both"),
    ],
)
def test_invalid_injection_targets(wire, cls, reason):
    with pytest.raises(InjectionError, match=reason) as exc:
        wire(cls, Repo)

    assert exc.value.member.startswith(cls.__qualname__ + ".")


def test_final_setter_is_injected_with_a_warning(wire, caplog):
    caplog.set_level(logging.WARNING, logger="beanwire")

    bean_ = wire(FinalSetter).get_bean(FinalSetter)

    assert bean_.level == 7
    assert "final method FinalSetter.set_level" in caplog.text


def test_injection_points():
    points = {p.name: p for p in injection_points(Handler)}

    assert set(points) == {"label", "retries", "repo"}
    assert points["label"].owner is Handler
    assert points["repo"].owner is BaseHandler
    assert points["retries"].kind == FIELD
    assert points["retries"].target_type is int

    setters = {p.name: p for p in injection_points(Mailer)}
    assert set(setters) == {"set_host", "set_repo", "set_cache"}
    assert all(p.kind == METHOD for p in setters.values())
    assert setters["set_repo"].target_type is Repo
    assert setters["set_host"].value.expression == "${mail.host:localhost}"
    assert setters["set_cache"].autowired.required is False


def test_unannotated_class_has_no_injection_points():
    assert injection_points(Cache) == ()


DEFERRED = {
    "services.py": """
        from __future__ import annotations

        from typing import TYPE_CHECKING, Annotated

        from beanwire import Autowired, Value, component

        if TYPE_CHECKING:
            from .web import RequestContext

        @component
        class Repo:
            pass

        @component
        class Service:
            repo: Annotated[Repo, Autowired()]
            port: Annotated[int, Value("${port:8080}")]
            request: RequestContext = None

        @component
        class Client:
            def __init__(self, repo: Annotated[Repo, Autowired()], *extra: RequestContext):
                self.repo = repo

        @component
        class Broken:
            request: Annotated[RequestContext, Autowired()]
    """,
}


def load_services(package_factory):
    pkg = package_factory(DEFERRED)
    return importlib.import_module(f"{pkg.name}.services")


def test_type_checking_only_annotation_does_not_hide_markers(package_factory, wire):
    services = load_services(package_factory)

    ctx = wire(services.Service, services.Client, services.Repo, properties={"port": "9090"})

    service = ctx.get_bean(services.Service)
    assert service.repo is ctx.get_bean(services.Repo)
    assert service.port == 9090
    assert service.request is None
    assert ctx.get_bean(services.Client).repo is service.repo


def test_unresolvable_annotation_without_marker_is_kept_as_text(package_factory):
    services = load_services(package_factory)

    points = {p.name: p for p in injection_points(services.Service)}

    assert set(points) == {"repo", "port"}
    assert type_hints(services.Service)["request"] == "RequestContext"


def test_unresolvable_marked_annotation_is_rejected(package_factory, wire):
    services = load_services(package_factory)

    with pytest.raises(ConfigurationError, match=r"Broken\.request"):
        wire(services.Broken, services.Repo)
