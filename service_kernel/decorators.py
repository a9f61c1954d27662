"""
Service Kernel Decorators.

This module provides decorators for declaring service behavior.
"""

from typing import Type, TypeVar

T = TypeVar("T")


def declare_events(*event_names: str):
    """
    Decorator declaring the events a service class emits itself.

    Declared events are not sent again by the event hook, even when the
    service implements the method mapped to them.

    Args:
        *event_names: Names of events the service emits

    Returns:
        Decorator function

    Example:
        @declare_events("created", "status")
        class MessageService(EventEmitter):
            def create(self, data, params=None):
                ...
                self.emit("created", message)
                return message
    """
    def decorator(cls: Type[T]) -> Type[T]:
        inherited = [name for name in getattr(cls, "events", None) or [] if name not in event_names]
        cls.events = inherited + list(event_names)
        return cls

    return decorator
