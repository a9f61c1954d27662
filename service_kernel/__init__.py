"""
Service Kernel Package.

This package composes independently written services into a single
addressable tree, runs every service method call through an ordered hook
pipeline, and publishes state-changing calls as service events.

Core components:
- Application: registry of services, mixins, providers and settings
- ServiceHandle: per-registration wrapper around a service object
- Hook pipeline: before/after/error/finally hooks around method calls
- Service events: event mixin and finally-stage event hook
"""

from .version import __version__

from .paths import (
    ROOT_PATH,
    normalize_path,
    strip_slashes,
    join_path
)

from .base import (
    ServiceKind,
    ServiceHandle,
    EmitterMixin,
    classify_service,
    is_event_emitter
)

from .hooks import (
    UNSET,
    STAGES,
    HookContext,
    HookPipeline,
    hooks,
    hooks_mixin,
    skip_event
)

from .events import (
    DEFAULT_EVENT_MAPPINGS,
    EventEmitter,
    DelegateEmitter,
    event_mixin,
    event_hook,
    events
)

from .application import (
    DEFAULT_METHODS,
    Application,
    create_application,
    get_application
)

from .decorators import declare_events

from .exceptions import (
    ServiceKernelError,
    InvalidPathError,
    InvalidServiceObjectError,
    ConfigurationLockedError,
    HookConfigurationError,
    ConfigurationError
)

__all__ = [
    '__version__',

    # Paths
    'ROOT_PATH',
    'normalize_path',
    'strip_slashes',
    'join_path',

    # Base types
    'ServiceKind',
    'ServiceHandle',
    'EmitterMixin',
    'classify_service',
    'is_event_emitter',

    # Hooks
    'UNSET',
    'STAGES',
    'HookContext',
    'HookPipeline',
    'hooks',
    'hooks_mixin',
    'skip_event',

    # Events
    'DEFAULT_EVENT_MAPPINGS',
    'EventEmitter',
    'DelegateEmitter',
    'event_mixin',
    'event_hook',
    'events',

    # Application
    'DEFAULT_METHODS',
    'Application',
    'create_application',
    'get_application',

    # Decorators
    'declare_events',

    # Exceptions
    'ServiceKernelError',
    'InvalidPathError',
    'InvalidServiceObjectError',
    'ConfigurationLockedError',
    'HookConfigurationError',
    'ConfigurationError'
]
