"""
Service Kernel Exceptions.

This module defines custom exceptions for the service kernel.
"""


class ServiceKernelError(Exception):
    """Base exception for all service kernel errors."""
    pass


class InvalidPathError(ServiceKernelError, TypeError):
    """Raised when a service path is not a string."""
    def __init__(self, path):
        super().__init__(f"'{path}' is not a valid service path.")
        self.path = path


class InvalidServiceObjectError(ServiceKernelError, TypeError):
    """Raised when an object is neither a service nor a sub-application."""
    def __init__(self, path):
        super().__init__(f"Invalid service object passed for path `{path}`")
        self.path = path


class ConfigurationLockedError(ServiceKernelError):
    """Raised when mixins or providers are added after services were registered."""
    def __init__(self, kind, registered_paths=None):
        message = f"Cannot add a {kind} after services have been registered"
        if registered_paths:
            message += f" (registered: {', '.join(registered_paths)})"
        super().__init__(message)
        self.kind = kind
        self.registered_paths = list(registered_paths or [])


class HookConfigurationError(ServiceKernelError, ValueError):
    """Raised when hooks are registered for an unknown stage or are not callable."""
    def __init__(self, stage, reason=None):
        message = f"Invalid hook registration for stage: {stage}"
        if reason:
            message += f" - {reason}"
        super().__init__(message)
        self.stage = stage
        self.reason = reason


class ConfigurationError(ServiceKernelError, ValueError):
    """Raised when kernel configuration fails validation."""
    def __init__(self, errors):
        super().__init__(f"Configuration validation failed: {errors}")
        self.errors = list(errors)
