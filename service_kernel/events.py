"""
Service events for the service kernel.

Provides the listener registry used for services that cannot emit on their
own, the mixin that decides which events a service sends itself, and the
finally-stage hook that sends the remaining ones on the service's behalf.
"""

import asyncio
import inspect
from collections.abc import Iterable
from typing import Any, Callable, Dict, List, Optional

from custom_logging import get_logger
from service_kernel.base import ServiceHandle, is_event_emitter

logger = get_logger("events")

# Mappings from service method to event name
DEFAULT_EVENT_MAPPINGS = {
    "create": "created",
    "update": "updated",
    "remove": "removed",
    "patch": "patched"
}


class EventEmitter:
    """
    Minimal synchronous event dispatcher.

    Listeners are called in registration order; exceptions bubble up to the
    emitter. Coroutine listeners are scheduled on the running loop.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}
        self._pending = set()

    def on(self, event_name: str, handler: Callable) -> None:
        """Register a handler for an event."""
        self._handlers.setdefault(event_name, []).append(handler)

    def once(self, event_name: str, handler: Callable) -> None:
        """Register a handler that is removed before its first call."""
        def wrapper(*args, **kwargs):
            self.off(event_name, wrapper)
            return handler(*args, **kwargs)

        wrapper.listener = handler
        self.on(event_name, wrapper)

    def off(self, event_name: str, handler: Optional[Callable] = None) -> None:
        """Remove a handler, or all handlers for the event when none is given."""
        if handler is None:
            self._handlers.pop(event_name, None)
            return

        handlers = self._handlers.get(event_name, [])
        for index, registered in enumerate(handlers):
            if registered is handler or getattr(registered, "listener", None) is handler:
                del handlers[index]
                break
        if not handlers:
            self._handlers.pop(event_name, None)

    def emit(self, event_name: str, *args, **kwargs) -> bool:
        """Call all handlers registered for this event."""
        handlers = list(self._handlers.get(event_name, []))
        for handler in handlers:
            outcome = handler(*args, **kwargs)
            if inspect.isawaitable(outcome):
                task = asyncio.get_running_loop().create_task(outcome)
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
        return bool(handlers)

    def listeners(self, event_name: str) -> List[Callable]:
        """Return the handlers registered for this event."""
        return list(self._handlers.get(event_name, []))


class DelegateEmitter:
    """Forwards emitter calls to an object that already emits events."""

    def __init__(self, target: Any):
        self.target = target

    def on(self, event_name: str, handler: Callable) -> None:
        self.target.on(event_name, handler)

    def once(self, event_name: str, handler: Callable) -> None:
        once = getattr(self.target, "once", None)
        if not callable(once):
            raise AttributeError(f"{type(self.target).__name__} does not support once()")
        once(event_name, handler)

    def off(self, event_name: str, handler: Optional[Callable] = None) -> None:
        off = getattr(self.target, "off", None) or getattr(self.target, "remove_listener", None)
        if not callable(off):
            raise AttributeError(f"{type(self.target).__name__} does not support off()")
        if handler is None:
            off(event_name)
        else:
            off(event_name, handler)

    def emit(self, event_name: str, *args, **kwargs) -> bool:
        return bool(self.target.emit(event_name, *args, **kwargs))

    def listeners(self, event_name: str) -> List[Callable]:
        listeners = getattr(self.target, "listeners", None)
        if callable(listeners):
            return list(listeners(event_name))
        return []


def event_mixin(app, service: ServiceHandle, path: str, options: Dict[str, Any]) -> None:
    """
    Mixin that turns a service into an event emitter.

    Records the events the service sends itself (its ``events`` list) and the
    events the event hook has to send for it: one per mapped method the
    service implements without already declaring the event.

    A handle wrapping an already processed handle (a service mounted from a
    sub-application) keeps that handle's bookkeeping and emitter.
    """
    if service.service_events is not None:
        return

    # Forward to the service when it already emits, otherwise own the listeners
    if is_event_emitter(service.delegate):
        service.attach_emitter(DelegateEmitter(service.delegate))
    else:
        service.attach_emitter(EventEmitter())

    declared = getattr(service, "events", None)
    if isinstance(declared, Iterable) and not isinstance(declared, (str, bytes)):
        service_events = list(dict.fromkeys(declared))
    else:
        service_events = []
    hook_events = []

    for method, event_name in app.event_mappings.items():
        if callable(getattr(service, method, None)) and event_name not in service_events:
            service_events.append(event_name)
            hook_events.append(event_name)

    service.record_events(service_events, hook_events)
    logger.debug(f"Service `{path}` sends {service_events}, hook sends {hook_events}")


def event_hook(context) -> None:
    """
    Finally-stage hook that emits derived events.

    Emits ``app.event_mappings[method]`` once per result element when the
    call succeeded and the service does not send the event itself. Setting
    ``context.event`` to None suppresses emission for that call. Never raises;
    a failing listener is logged and the remaining elements are still sent.
    """
    try:
        _emit_derived_events(context)
    except Exception as e:
        logger.exception(f"Error emitting event for `{context.path}` {context.method}: {e}")


def _emit_derived_events(context) -> None:
    if context.event is None:
        return

    event_name = context.app.event_mappings.get(context.method)
    service = context.service
    hook_events = service.hook_events if isinstance(service, ServiceHandle) else ()

    if not event_name or event_name not in hook_events or context.type == "error":
        return
    if not context.has_result:
        return

    result = context.result
    results = result if isinstance(result, (list, tuple)) else [result]
    for element in results:
        logger.debug(f"Emitting `{event_name}` for `{context.path}`")
        try:
            service.emit(event_name, element, context)
        except Exception as e:
            logger.exception(f"Listener error on `{event_name}` for `{context.path}`: {e}")


def events(event_mappings: Optional[Dict[str, str]] = None):
    """
    Configurator that adds service events to an application.

    Sets ``app.event_mappings``, registers the event hook as an application
    ``finally`` hook (finally hooks run last, after ``after`` and ``error``),
    makes the application an emitter and adds the event mixin.
    """
    def configure(app) -> None:
        app.event_mappings = dict(DEFAULT_EVENT_MAPPINGS if event_mappings is None else event_mappings)
        app.hooks({"finally": event_hook})
        app.attach_emitter(EventEmitter())
        app.add_mixin(event_mixin)

    return configure
