"""
Handler registry

Handlers are plain async functions taking a request model and returning a
response model. `api_handler` records the route metadata so a transport
(HTTP app, IPC bridge) can expose them without importing each module.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

from smartwebp.models.base import BaseModel


@dataclass(frozen=True)
class HandlerSpec:
    """Route metadata for one registered handler"""

    func: Callable[..., Any]
    method: str
    path: str
    body: Optional[Type[BaseModel]] = None
    tags: List[str] = field(default_factory=list)


_registry: Dict[str, HandlerSpec] = {}


def api_handler(
    body: Optional[Type[BaseModel]] = None,
    method: str = "POST",
    path: str = "",
    tags: Optional[List[str]] = None,
):
    """Register a handler under its path; the function itself is returned unchanged"""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        route = path or f"/{func.__name__}"
        if route in _registry and _registry[route].func is not func:
            raise ValueError(f"Handler path already registered: {route}")
        _registry[route] = HandlerSpec(
            func=func,
            method=method.upper(),
            path=route,
            body=body,
            tags=list(tags or []),
        )
        return func

    return decorator


def get_registered_handlers() -> Dict[str, HandlerSpec]:
    """Snapshot of the registry, keyed by path"""
    return dict(_registry)


from . import image  # noqa: E402,F401  registers image handlers
