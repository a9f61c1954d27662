"""
Tests for the application registry: settings, registration, lookup and setup.
"""

from unittest.mock import Mock

import pytest

from service_kernel import (
    Application,
    ConfigurationLockedError,
    InvalidPathError,
    InvalidServiceObjectError,
    ServiceHandle,
    ServiceKind,
    classify_service,
    create_application,
    event_mixin,
    get_application,
    hooks_mixin
)

from .sample_services import MemoryService, SetupOnlyService


class TestSettings:
    """Test application settings accessors."""

    def test_get_and_set(self, app):
        assert app.set("port", 3030) is app
        assert app.get("port") == 3030
        assert app.get("missing") is None

    def test_enable_and_disable(self, app):
        app.enable("feature")
        assert app.enabled("feature") is True
        assert app.disabled("feature") is False

        app.disable("feature")
        assert app.enabled("feature") is False
        assert app.disabled("feature") is True

    def test_unset_setting_is_disabled(self, app):
        assert app.disabled("never_set") is True

    def test_configure_runs_with_application(self, app):
        configurator = Mock()
        assert app.configure(configurator) is app
        configurator.assert_called_once_with(app)


class TestInit:
    """Test the initial registry state."""

    def test_defaults(self, app):
        assert app.methods == ("find", "get", "create", "update", "patch", "remove")
        assert app.services == {}
        assert app.is_setup is False
        assert app.event_mappings == {
            "create": "created",
            "update": "updated",
            "remove": "removed",
            "patch": "patched"
        }
        assert app.mixins == (hooks_mixin, event_mixin)
        assert app.version

    def test_application_is_an_emitter(self, app):
        received = []
        app.on("login", received.append)
        assert app.emit("login", "user") is True
        assert received == ["user"]

    def test_factories(self):
        assert isinstance(create_application(), Application)
        assert get_application() is get_application()


class TestClassification:
    """Test structural classification of registered objects."""

    def test_sub_application(self):
        assert classify_service(Application(), ("find",)) is ServiceKind.SUB_APPLICATION

    def test_service_with_method(self, memory_service):
        assert classify_service(memory_service, ("find",)) is ServiceKind.SERVICE

    def test_service_with_setup_only(self):
        assert classify_service(SetupOnlyService(), ("find",)) is ServiceKind.SERVICE

    def test_invalid_object(self):
        assert classify_service(object(), ("find",)) is ServiceKind.INVALID


class TestUse:
    """Test service registration."""

    def test_register_and_lookup_variants(self, app, memory_service):
        app.use("/messages/", memory_service)
        handle = app.service("messages")

        assert isinstance(handle, ServiceHandle)
        assert app.service("/messages") is handle
        assert app.service("messages/") is handle
        assert list(app.services) == ["messages"]

    def test_root_path(self, app, memory_service):
        app.use("/", memory_service)
        assert "/" in app.services
        assert app.service("") is app.service("/")

    def test_non_string_path(self, app, memory_service):
        with pytest.raises(InvalidPathError):
            app.use(42, memory_service)

    def test_invalid_service_object(self, app):
        with pytest.raises(InvalidServiceObjectError) as exc_info:
            app.use("/things/", object())

        assert exc_info.value.path == "things"
        assert "things" in str(exc_info.value)

    def test_missing_service_returns_none(self, app):
        assert app.service("nothing") is None

    def test_last_registration_wins(self, app):
        first, second = MemoryService(), MemoryService()
        app.use("messages", first)
        app.use("messages", second)

        assert app.service("messages").original is second

    def test_handle_does_not_mutate_original(self, app, memory_service):
        app.use("messages", memory_service)
        handle = app.service("messages")
        handle.extra = "value"

        assert handle.extra == "value"
        assert not hasattr(memory_service, "extra")
        assert handle.store is memory_service.store

    def test_same_service_in_two_applications(self, memory_service):
        first, second = Application(), Application()
        first.use("messages", memory_service)
        second.use("other", memory_service)

        one = first.service("messages")
        two = second.service("other")
        received = []
        one.on("created", received.append)

        assert one is not two
        assert one.emitter is not two.emitter
        assert two.listeners("created") == []
        assert not hasattr(memory_service, "on")

    def test_mixins_and_providers_run_in_order(self, app, memory_service):
        calls = []

        @app.mixin
        def first_mixin(application, service, path, options):
            calls.append(("mixin", path, options))
            service.tag = "mixed"

        @app.provider
        def transport(application, service, path, options):
            calls.append(("provider", path, service.tag))

        app.use("messages", memory_service, {"paginate": 10})

        assert calls == [
            ("mixin", "messages", {"paginate": 10}),
            ("provider", "messages", "mixed")
        ]

    def test_internal_setup_runs_after_mixins(self, app):
        calls = []

        class WithInternalSetup(MemoryService):
            def _setup(self, application, path):
                calls.append((application, path))

        app.use("internal", WithInternalSetup())
        assert calls == [(app, "internal")]

    def test_mixin_errors_propagate(self, app, memory_service):
        def broken(application, service, path, options):
            raise RuntimeError("mixin failed")

        app.add_mixin(broken)
        with pytest.raises(RuntimeError, match="mixin failed"):
            app.use("messages", memory_service)
        assert app.service("messages") is None

    def test_configuration_locked_after_first_service(self, app, memory_service):
        app.use("messages", memory_service)

        with pytest.raises(ConfigurationLockedError):
            app.add_mixin(lambda *args: None)
        with pytest.raises(ConfigurationLockedError):
            app.add_provider(lambda *args: None)

    def test_reserved_handle_attributes(self, app):
        class Inbox(MemoryService):
            listeners = ["ops@example.com"]

        app.use("inbox", Inbox())
        handle = app.service("inbox")

        with pytest.raises(AttributeError):
            handle.original = object()
        with pytest.raises(AttributeError):
            handle.emitter = None
        assert handle.listeners("created") == []
        assert handle.original.listeners == ["ops@example.com"]


class TestSubApplications:
    """Test mounting nested applications."""

    def test_mount_flattens_paths(self, app, memory_service):
        sub_app = Application()
        sub_app.use("items", memory_service)

        app.use("api", sub_app)

        assert "api/items" in app.services
        assert "api" not in app.services
        assert app.service("api/items").original is memory_service

    def test_root_service_of_sub_application(self, app):
        sub_app = Application()
        root, items = MemoryService(), MemoryService()
        sub_app.use("/", root)
        sub_app.use("items", items)

        app.use("/api/", sub_app)

        assert app.service("api").original is root
        assert app.service("api/items").original is items

    def test_nested_mounts(self, app, memory_service):
        inner = Application()
        inner.use("users", memory_service)
        middle = Application()
        middle.use("v1", inner)

        app.use("api", middle)

        assert list(app.services) == ["api/v1/users"]

    def test_mounted_handle_is_separate(self, app, memory_service):
        sub_app = Application()
        sub_app.use("items", memory_service)
        app.use("api", sub_app)

        assert app.service("api/items") is not sub_app.service("items")

    def test_empty_sub_application(self, app):
        app.use("api", Application())
        assert app.services == {}


class TestDefaultService:
    """Test lazy service creation."""

    def test_default_service_factory(self, app):
        factory = Mock(side_effect=lambda path: MemoryService())
        app.default_service = factory

        handle = app.service("/lazy/")

        factory.assert_called_once_with("lazy")
        assert isinstance(handle, ServiceHandle)
        assert app.service("lazy") is handle
        assert factory.call_count == 1


class TestSetup:
    """Test service setup."""

    def test_setup_calls_each_service_once(self, app):
        services = [MemoryService(), MemoryService(), MemoryService()]
        for index, service in enumerate(services):
            app.use(f"service{index}", service)

        assert app.setup() is app

        assert app.is_setup is True
        for index, service in enumerate(services):
            assert service.setup_calls == [(app, f"service{index}")]

    def test_late_registration_is_set_up(self, app):
        app.use("early", MemoryService())
        app.setup()

        late = SetupOnlyService()
        app.use("late", late)

        assert late.calls == [(app, "late")]

    def test_not_set_up_before_setup(self, app):
        service = SetupOnlyService()
        app.use("early", service)
        assert service.calls == []

    def test_setup_twice_runs_again(self, app):
        service = SetupOnlyService()
        app.use("service", service)
        app.setup()
        app.setup()

        assert len(service.calls) == 2

    def test_setup_errors_propagate(self, app):
        class BrokenSetup:
            def setup(self, application, path):
                raise RuntimeError("setup failed")

        app.use("broken", BrokenSetup())
        with pytest.raises(RuntimeError, match="setup failed"):
            app.setup()
