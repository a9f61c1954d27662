"""
Application registry for the service kernel.

The application owns the path -> service mapping, the ordered mixin and
provider functions, global settings and the setup state. Registering a
service wraps it in a ServiceHandle, runs every mixin and provider on the
handle, and sets it up right away when the application already ran setup.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from custom_logging import get_logger, setup_logger
from service_kernel.version import __version__
from service_kernel.base import EmitterMixin, ServiceHandle, ServiceKind, classify_service
from service_kernel.events import events
from service_kernel.exceptions import (
    ConfigurationLockedError,
    InvalidPathError,
    InvalidServiceObjectError
)
from service_kernel.hooks import hooks
from service_kernel.paths import join_path, normalize_path

DEFAULT_METHODS = ("find", "get", "create", "update", "patch", "remove")

# Mixin and provider signature: fn(app, service, path, options)
RegistrationFunction = Callable[["Application", ServiceHandle, str, Dict[str, Any]], None]


class Application(EmitterMixin):
    """
    Registry composing services into a single addressable tree.

    Mixins and providers have to be added before the first service is
    registered; adding one later raises ConfigurationLockedError.
    """

    def __init__(self, config=None):
        """
        Initialize the application.

        Args:
            config: Optional KernelConfig providing settings, the recognized
                method names and the method -> event mappings; its logging
                section reconfigures the kernel logger
        """
        if config is not None:
            setup_logger(config.logging_options())

        self.logger = get_logger("application")
        self.config = config
        self.init()

    def __repr__(self):
        return f"Application<{len(self.services)} services, setup={self.is_setup}>"

    def init(self) -> None:
        """Reset the registry state and run the built-in configurators."""
        self.version = __version__
        self.methods: Tuple[str, ...] = tuple(self.config.methods) if self.config else DEFAULT_METHODS
        self.settings: Dict[str, Any] = dict(self.config.settings) if self.config else {}
        self.services: Dict[str, ServiceHandle] = {}
        self.event_mappings: Dict[str, str] = {}
        self.default_service: Optional[Callable[[str], Any]] = None
        self.is_setup = False
        self._mixins: List[RegistrationFunction] = []
        self._providers: List[RegistrationFunction] = []
        self._emitter = None

        self.configure(hooks())
        self.configure(events(self.config.event_mappings if self.config else None))

    # Settings

    def get(self, name: str) -> Any:
        """Get a setting value (None when unset)."""
        return self.settings.get(name)

    def set(self, name: str, value: Any) -> "Application":
        """Set a setting value."""
        self.settings[name] = value
        return self

    def enable(self, name: str) -> "Application":
        self.settings[name] = True
        return self

    def disable(self, name: str) -> "Application":
        self.settings[name] = False
        return self

    def enabled(self, name: str) -> bool:
        return bool(self.settings.get(name))

    def disabled(self, name: str) -> bool:
        return not self.settings.get(name)

    # Configuration

    def configure(self, fn: Callable[["Application"], Any]) -> "Application":
        """
        Run a configuration function with this application.

        Used to bundle setup steps such as adding mixins, providers, hooks
        and services.
        """
        fn(self)
        return self

    @property
    def mixins(self) -> Tuple[RegistrationFunction, ...]:
        return tuple(self._mixins)

    @property
    def providers(self) -> Tuple[RegistrationFunction, ...]:
        return tuple(self._providers)

    def add_mixin(self, fn: RegistrationFunction) -> "Application":
        """Append a mixin run on every newly registered service."""
        self._ensure_unlocked("mixin")
        self._mixins.append(fn)
        return self

    def add_provider(self, fn: RegistrationFunction) -> "Application":
        """Append a provider run on every newly registered service, after the mixins."""
        self._ensure_unlocked("provider")
        self._providers.append(fn)
        return self

    def mixin(self, fn: RegistrationFunction) -> RegistrationFunction:
        """
        Decorator form of ``add_mixin``.

        Example:
            @app.mixin
            def timestamps(app, service, path, options):
                ...
        """
        self.add_mixin(fn)
        return fn

    def provider(self, fn: RegistrationFunction) -> RegistrationFunction:
        """Decorator form of ``add_provider``."""
        self.add_provider(fn)
        return fn

    def _ensure_unlocked(self, kind: str) -> None:
        if self.services:
            raise ConfigurationLockedError(kind, list(self.services))

    def hooks(self, mapping: Dict[str, Any]) -> "Application":
        """Register application-wide hooks (see ``HookPipeline.register``)."""
        self.hook_pipeline.register(mapping)
        return self

    # Services

    def service(self, path: str) -> Optional[ServiceHandle]:
        """
        Look up the service registered at a path.

        When nothing is registered there and ``default_service`` is set, the
        factory creates a service for the path, which is registered and
        returned.

        Returns:
            The ServiceHandle, or None if there is no service at the path
        """
        if not isinstance(path, str):
            raise InvalidPathError(path)

        location = normalize_path(path)
        current = self.services.get(location)

        if current is None and callable(self.default_service):
            self.logger.debug(f"Creating default service for `{location}`")
            self.use(location, self.default_service(location))
            return self.services.get(location)

        return current

    def use(self, path: str, service: Any, options: Optional[Dict[str, Any]] = None) -> "Application":
        """
        Register a service or mount a sub-application at a path.

        Args:
            path: Service path; leading and trailing slashes are ignored
            service: Service object, or an application whose services are
                re-registered under ``path``
            options: Options passed on to mixins and providers

        Raises:
            InvalidPathError: If path is not a string
            InvalidServiceObjectError: If service is neither a service nor
                a sub-application
        """
        if not isinstance(path, str):
            raise InvalidPathError(path)

        options = {} if options is None else options
        location = normalize_path(path)
        kind = classify_service(service, self.methods)

        if kind is ServiceKind.SUB_APPLICATION:
            self.logger.debug(f"Mounting sub-application at `{location}`")
            for sub_path in list(service.services):
                self.use(join_path(location, sub_path), service.service(sub_path))
            return self

        if kind is ServiceKind.INVALID:
            raise InvalidServiceObjectError(location)

        handle = ServiceHandle(service)

        self.logger.debug(f"Registering new service at `{location}`")

        for mixin in self._mixins:
            mixin(self, handle, location, options)

        internal_setup = getattr(handle, "_setup", None)
        if callable(internal_setup):
            internal_setup(self, location)

        # Run the provider functions to register the service
        for provider in self._providers:
            provider(self, handle, location, options)

        # If we ran setup already, set this service up explicitly
        if self.is_setup and callable(getattr(handle, "setup", None)):
            self.logger.debug(f"Setting up service for `{location}`")
            handle.setup(self, location)

        if location in self.services:
            self.logger.warning(f"Service at `{location}` already registered, overriding")
        self.services[location] = handle

        return self

    def setup(self) -> "Application":
        """
        Call ``setup(app, path)`` on every registered service that has one.

        Services registered after this run are set up on registration.
        Calling setup() again runs every service's setup again.
        """
        if self.is_setup:
            self.logger.warning("Application setup already ran, setting up all services again")

        for path, service in list(self.services.items()):
            self.logger.debug(f"Setting up service for `{path}`")
            if callable(getattr(service, "setup", None)):
                service.setup(self, path)

        self.is_setup = True

        return self


# Global application instance
_application: Optional[Application] = None


def create_application(config=None) -> Application:
    """Create a new application, optionally from a KernelConfig."""
    return Application(config)


def get_application() -> Application:
    """Get the process-wide default application."""
    global _application
    if _application is None:
        _application = Application()
    return _application
