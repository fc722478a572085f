from __future__ import annotations

from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

T = TypeVar("T")


def status_tuple(
    fn: Callable[..., Coroutine[Any, Any, T]],
) -> Callable[..., Coroutine[Any, Any, tuple[bool, T | str]]]:
    """Wrap an async read to return ``(True, result)`` or ``(False, error_str)``.

    Exceptions are logged via ``self.logger`` and returned as ``(False, str(e))``.
    """

    @wraps(fn)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> tuple[bool, T | str]:
        try:
            result = await fn(self, *args, **kwargs)
            return (True, result)
        except Exception as exc:
            self.logger.error(f"Error in {fn.__name__}: {exc}")
            return (False, str(exc))

    return wrapper  # type: ignore[return-value]


def best_effort(
    fn: Callable[..., Coroutine[Any, Any, T]],
) -> Callable[..., Coroutine[Any, Any, T | None]]:
    """Wrap an async telemetry write so it never raises.

    Failures are logged via ``self.logger`` and turned into ``None``.
    """

    @wraps(fn)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T | None:
        try:
            return await fn(self, *args, **kwargs)
        except Exception as exc:
            self.logger.error(f"{fn.__name__} failed (ignored): {exc}")
            return None

    return wrapper


def require_configured(
    *attrs: str, default: Any = None
) -> Callable[[Callable[..., Coroutine[Any, Any, Any]]], Callable[..., Any]]:
    """Skip the call with a warning when any of ``attrs`` is unset on ``self``."""

    def decorator(fn: Callable[..., Coroutine[Any, Any, Any]]) -> Callable[..., Any]:
        @wraps(fn)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            missing = [a for a in attrs if not getattr(self, a, None)]
            if missing:
                self.logger.warning(
                    f"{fn.__name__} skipped: {', '.join(missing)} not configured"
                )
                return default
            return await fn(self, *args, **kwargs)

        return wrapper

    return decorator
