import functools
import inspect
import logging
from typing import Any, Awaitable, Callable, TypeVar, Union

from fastapi import Depends, Request, Response

from ..core.errors import PortalAuthRequired
from .session import CookieTransport, PortalSession, PortalSessionStore


logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_session_store(request: Request, response: Response) -> PortalSessionStore:
    return PortalSessionStore(CookieTransport(request, response))


def require_portal_session(store: PortalSessionStore = Depends(get_session_store)) -> PortalSession:
    """Route dependency: the current portal session, or a 401."""
    return store.require_session()


async def run_guarded(
    store: PortalSessionStore,
    operation: Callable[..., Union[T, Awaitable[T]]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run ``operation(session, *args, **kwargs)`` only when a session resolves.

    Without a session the operation is never called and ``PortalAuthRequired``
    is raised.
    """
    session = store.read()
    if session is None:
        logger.info("Refused %s: no portal session", getattr(operation, "__name__", operation))
        raise PortalAuthRequired()

    result = operation(session, *args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def portal_guarded(get_store: Callable[..., PortalSessionStore]):
    """Decorator form of ``run_guarded``.

    ``get_store`` receives the wrapped call's arguments and returns the store to
    read the session from.
    """
    def decorator(operation):
        @functools.wraps(operation)
        async def wrapper(*args, **kwargs):
            store = get_store(*args, **kwargs)
            return await run_guarded(store, operation, *args, **kwargs)
        return wrapper
    return decorator
