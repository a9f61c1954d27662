"""
Base types for the service kernel.

This module provides the structural pieces every registration goes through:
- ServiceKind: tagged result of classifying a registered object
- classify_service: capability check for sub-applications and leaf services
- EmitterMixin: the fixed on/once/off/emit interface backed by a chosen emitter
- ServiceHandle: per-registration wrapper that delegates to the original service
"""

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, List, Optional, Tuple


class ServiceKind(Enum):
    """Possible classifications of an object passed to ``Application.use``."""
    SUB_APPLICATION = "sub_application"  # Nested registry, flattened on mount
    SERVICE = "service"                  # Leaf service implementing known methods
    INVALID = "invalid"                  # Satisfies neither contract


def classify_service(obj: Any, methods: Iterable[str]) -> ServiceKind:
    """
    Classify an object by the capabilities it exposes.

    A sub-application exposes a callable ``service(path)`` lookup and a
    ``services`` mapping. A leaf service exposes at least one of ``methods``
    or a ``setup`` function.

    Args:
        obj: Object passed for registration
        methods: Recognized service method names

    Returns:
        The matching ServiceKind
    """
    if callable(getattr(obj, "service", None)) and isinstance(getattr(obj, "services", None), Mapping):
        return ServiceKind.SUB_APPLICATION

    for name in (*methods, "setup"):
        if callable(getattr(obj, name, None)):
            return ServiceKind.SERVICE

    return ServiceKind.INVALID


class EmitterMixin:
    """
    Event emitter interface forwarding to an attached emitter.

    The emitter is chosen once (see ``attach_emitter``): either an owned
    listener registry or a forwarder to an object that already emits.
    """

    __slots__ = ()

    @property
    def emitter(self):
        """The attached emitter, or None when none was attached yet."""
        return getattr(self, "_emitter", None)

    def attach_emitter(self, emitter) -> None:
        object.__setattr__(self, "_emitter", emitter)

    def _require_emitter(self):
        emitter = self.emitter
        if emitter is None:
            raise AttributeError(f"{self!r} is not an event emitter")
        return emitter

    def on(self, event_name: str, listener: Callable):
        """Register a listener for an event."""
        self._require_emitter().on(event_name, listener)
        return self

    def once(self, event_name: str, listener: Callable):
        """Register a listener that is removed after its first call."""
        self._require_emitter().once(event_name, listener)
        return self

    def off(self, event_name: str, listener: Optional[Callable] = None):
        """Remove one listener, or every listener of an event."""
        self._require_emitter().off(event_name, listener)
        return self

    def emit(self, event_name: str, *args, **kwargs) -> bool:
        """Call every listener of an event; True if there was at least one."""
        return self._require_emitter().emit(event_name, *args, **kwargs)

    def listeners(self, event_name: str) -> List[Callable]:
        """Listeners currently registered for an event."""
        return self._require_emitter().listeners(event_name)


def is_event_emitter(obj: Any) -> bool:
    """Check whether an object already provides on/emit."""
    if isinstance(obj, EmitterMixin):
        return obj.emitter is not None
    return callable(getattr(obj, "on", None)) and callable(getattr(obj, "emit", None))


class ServiceHandle(EmitterMixin):
    """
    Wrapper stored in the registry for a leaf service.

    Attribute lookups check the handle's own overlay first and fall through to
    the wrapped service. Attributes set on the handle (by mixins, providers or
    callers) live in the overlay only, so one service object can be registered
    by several applications without them seeing each other's additions.

    Event bookkeeping (``service_events`` and ``hook_events``) is kept outside
    the overlay and does not show up when iterating the handle's properties.
    A handle wrapping another handle (a service mounted from a sub-application)
    uses the wrapped handle's bookkeeping and emitter until it records its own.

    Names defined on the handle class are reserved and cannot be set on the
    handle: ``delegate``, ``original``, ``overlay``, ``emitter``,
    ``service_events``, ``hook_events``, ``record_events``, ``attach_emitter``
    and the emitter methods ``on``, ``once``, ``off``, ``emit`` and
    ``listeners``. A wrapped service attribute with one of these names is not
    reachable through the handle; use ``handle.original`` for it.
    """

    __slots__ = ("_delegate", "_overlay", "_emitter", "_service_events", "_hook_events", "__weakref__")

    def __init__(self, delegate: Any):
        object.__setattr__(self, "_delegate", delegate)
        object.__setattr__(self, "_overlay", {})
        object.__setattr__(self, "_emitter", None)
        object.__setattr__(self, "_service_events", None)
        object.__setattr__(self, "_hook_events", None)

    def __getattr__(self, name: str) -> Any:
        overlay = object.__getattribute__(self, "_overlay")
        if name in overlay:
            return overlay[name]
        return getattr(object.__getattribute__(self, "_delegate"), name)

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(type(self), name):
            raise AttributeError(f"Cannot override reserved service handle attribute: {name}")
        self._overlay[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._overlay[name]
        except KeyError:
            raise AttributeError(name) from None

    def __dir__(self):
        names = set(self._overlay)
        names.update(name for name in dir(self._delegate) if not name.startswith("_"))
        return sorted(names)

    def __repr__(self):
        return f"ServiceHandle<{type(self.original).__name__}>"

    @property
    def emitter(self):
        """The attached emitter, falling back to the one of a wrapped handle."""
        if self._emitter is None and isinstance(self._delegate, ServiceHandle):
            return self._delegate.emitter
        return self._emitter

    @property
    def delegate(self) -> Any:
        """The object this handle wraps (possibly another handle)."""
        return self._delegate

    @property
    def original(self) -> Any:
        """The innermost caller-supplied service object."""
        current = self._delegate
        while isinstance(current, ServiceHandle):
            current = current.delegate
        return current

    @property
    def overlay(self) -> Mapping:
        """Read-only view of the properties added on this handle."""
        return MappingProxyType(self._overlay)

    @property
    def service_events(self) -> Optional[Tuple[str, ...]]:
        """Events this service is known to send, None until the event mixin ran."""
        if self._service_events is None:
            if isinstance(self._delegate, ServiceHandle):
                return self._delegate.service_events
            return None
        return tuple(self._service_events)

    @property
    def hook_events(self) -> Tuple[str, ...]:
        """Events the kernel sends on this service's behalf."""
        if self._hook_events is None and isinstance(self._delegate, ServiceHandle):
            return self._delegate.hook_events
        return tuple(self._hook_events or ())

    def record_events(self, service_events: Iterable[str], hook_events: Iterable[str]) -> None:
        """
        Store event bookkeeping computed at registration time.

        Raises:
            RuntimeError: If bookkeeping was already recorded for this handle
        """
        if self._service_events is not None:
            raise RuntimeError(f"Event bookkeeping already recorded for {self!r}")
        object.__setattr__(self, "_service_events", list(service_events))
        object.__setattr__(self, "_hook_events", list(hook_events))
