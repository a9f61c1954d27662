"""
Hook pipeline for service method calls.

Every recognized method of a registered service is wrapped so that a call runs
through ordered stages:

    before -> method -> after          (success)
                     -> error          (the method or a hook raised)
    finally                            (always, exactly once)

Application hooks surround service hooks: application ``before`` hooks run
first, application ``after``, ``error`` and ``finally`` hooks run last.
"""

import functools
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from custom_logging import get_logger
from service_kernel.base import ServiceHandle
from service_kernel.exceptions import HookConfigurationError

logger = get_logger("hooks")

STAGES = ("before", "after", "error", "finally")
ALL_METHODS = "all"

# Positional arguments of the standard service methods
METHOD_ARGUMENTS = {
    "find": ("params",),
    "get": ("id", "params"),
    "create": ("data", "params"),
    "update": ("id", "data", "params"),
    "patch": ("id", "data", "params"),
    "remove": ("id", "params")
}


class _Unset:
    """Marker for context fields that were never assigned."""

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET = _Unset()


@dataclass
class HookContext:
    """State of a single service method call as it moves through the stages."""
    app: Any
    service: Any
    method: str
    path: str
    type: str = "before"
    stage: str = "before"
    id: Any = None
    data: Any = None
    params: Dict[str, Any] = field(default_factory=dict)
    arguments: Tuple[Any, ...] = ()
    result: Any = UNSET
    error: Optional[BaseException] = None
    # None suppresses the derived event for this call
    event: Any = UNSET

    @property
    def has_result(self) -> bool:
        return self.result is not UNSET

    def bind_arguments(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> None:
        """Map call arguments onto the context fields of a standard method."""
        names = METHOD_ARGUMENTS.get(self.method)
        if names is None:
            self.arguments = tuple(args)
            self.params = dict(kwargs)
            return

        if len(args) > len(names):
            raise TypeError(f"{self.method}() takes {len(names)} arguments but {len(args)} were given")
        bound = dict(zip(names, args))
        for name, value in kwargs.items():
            if name not in names or name in bound:
                raise TypeError(f"{self.method}() got an unexpected or duplicate argument '{name}'")
            bound[name] = value

        self.id = bound.get("id")
        self.data = bound.get("data")
        self.params = bound.get("params") or {}
        self.arguments = tuple(args)

    def method_arguments(self) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
        """Arguments to call the service implementation with."""
        names = METHOD_ARGUMENTS.get(self.method)
        if names is None:
            return self.arguments, self.params
        return tuple(getattr(self, name) for name in names), {}


class HookPipeline:
    """Ordered hook registrations for one application or one service."""

    def __init__(self, name: str):
        self.name = name
        self._hooks: Dict[str, Dict[str, List[Callable]]] = {stage: {} for stage in STAGES}

    def register(self, mapping: Dict[str, Any]) -> None:
        """
        Register hooks.

        Args:
            mapping: ``{stage: hooks}`` where hooks is a callable, a list of
                callables, or a ``{method or "all": callable or list}`` mapping
        """
        for stage, hooks in mapping.items():
            if stage not in STAGES:
                raise HookConfigurationError(stage, f"expected one of {', '.join(STAGES)}")

            per_method = hooks if isinstance(hooks, dict) else {ALL_METHODS: hooks}
            for method, method_hooks in per_method.items():
                method_hooks = list(method_hooks) if isinstance(method_hooks, (list, tuple)) else [method_hooks]
                for hook in method_hooks:
                    if not callable(hook):
                        raise HookConfigurationError(stage, f"hook for '{method}' is not callable: {hook!r}")
                self._hooks[stage].setdefault(method, []).extend(method_hooks)
                logger.debug(f"Registered {len(method_hooks)} {stage} hook(s) for {self.name}.{method}")

    def get_hooks(self, stage: str, method: str) -> List[Callable]:
        """Hooks for a stage: hooks for all methods first, then method hooks."""
        registered = self._hooks[stage]
        return registered.get(ALL_METHODS, []) + registered.get(method, [])


async def run_hooks(hooks: List[Callable], context: HookContext) -> HookContext:
    """Run hooks in order; a hook may return a replacement context."""
    for hook in hooks:
        outcome = hook(context)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        if outcome is None:
            continue
        if not isinstance(outcome, HookContext):
            raise TypeError(f"Hook {hook!r} returned {type(outcome).__name__}, expected HookContext or None")
        context = outcome
    return context


async def call_with_hooks(app, service, path: str, method: str,
                          implementation: Callable, args, kwargs) -> Any:
    """
    Run a service method through the application and service hooks.

    Returns:
        The (possibly hook-modified) result of the call

    Raises:
        The error left on the context after the error and finally stages
    """
    app_pipeline: HookPipeline = app.hook_pipeline
    service_pipeline: HookPipeline = service.hook_pipeline

    context = HookContext(app=app, service=service, method=method, path=path)

    try:
        context.bind_arguments(args, kwargs)
        context = await run_hooks(
            app_pipeline.get_hooks("before", method) + service_pipeline.get_hooks("before", method),
            context
        )

        # A before hook that set a result skips the method call
        if not context.has_result:
            call_args, call_kwargs = context.method_arguments()
            result = implementation(*call_args, **call_kwargs)
            if inspect.isawaitable(result):
                result = await result
            context.result = result

        context.type = context.stage = "after"
        context = await run_hooks(
            service_pipeline.get_hooks("after", method) + app_pipeline.get_hooks("after", method),
            context
        )
    except Exception as e:
        logger.debug(f"Error in {method} on `{path}`: {e!r}")
        context.error = e
        context.type = context.stage = "error"
        try:
            context = await run_hooks(
                service_pipeline.get_hooks("error", method) + app_pipeline.get_hooks("error", method),
                context
            )
        except Exception as hook_error:
            context.error = hook_error

    # type keeps the outcome (after or error) for finally hooks
    context.stage = "finally"
    context = await run_hooks(
        service_pipeline.get_hooks("finally", method) + app_pipeline.get_hooks("finally", method),
        context
    )

    if context.error is not None:
        raise context.error
    return context.result


def hooks_mixin(app, service, path: str, options: Dict[str, Any]) -> None:
    """
    Mixin that routes a service's recognized methods through the hook pipeline.

    Adds ``hook_pipeline`` and ``hooks(mapping)`` for service-level hooks, and
    replaces each recognized method with a coroutine function running
    ``call_with_hooks``. A service mounted from a sub-application already went
    through this mixin there: its handle keeps the sub-application's hooked
    methods, so calls run the sub-application's hooks and its events.
    """
    if _has_hook_pipeline(service):
        return

    pipeline = HookPipeline(f"service:{path}")
    service.hook_pipeline = pipeline

    def register_hooks(mapping: Dict[str, Any]):
        pipeline.register(mapping)
        return service

    service.hooks = register_hooks

    original = service.original
    for method in app.methods:
        implementation = getattr(original, method, None)
        if callable(implementation):
            setattr(service, method, _hooked_method(app, service, path, method, implementation))


def _has_hook_pipeline(service) -> bool:
    while isinstance(service, ServiceHandle):
        if "hook_pipeline" in service.overlay:
            return True
        service = service.delegate
    return False


def _hooked_method(app, service, path: str, method: str, implementation: Callable):
    @functools.wraps(implementation)
    async def hooked(*args, **kwargs):
        return await call_with_hooks(app, service, path, method, implementation, args, kwargs)

    return hooked


def skip_event(context: HookContext) -> None:
    """Hook that suppresses the derived service event for this call."""
    context.event = None


def hooks():
    """
    Configurator that adds the hook pipeline to an application.

    Attaches ``app.hook_pipeline`` (used by ``app.hooks(mapping)``) and
    registers the hooks mixin, which must run before other mixins look at
    service methods.
    """
    def configure(app) -> None:
        app.hook_pipeline = HookPipeline("app")
        app.add_mixin(hooks_mixin)

    return configure
