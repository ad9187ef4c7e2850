from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.core.config.settings import settings


def key_func(request: Request) -> str:
    """Determines the rate-limiting key for a given request.

    Every caller is keyed by its remote address; the service has no user
    identities to key on.

    Args:
        request (Request): The incoming Starlette request object.

    Returns:
        str: The rate-limiting key.
    """
    return get_remote_address(request)


def get_limiter() -> Limiter:
    """Factory function for the rate limiter.

    This function creates and returns a Limiter instance based on the
    settings. The factory allows late initialization, so tests can change the
    settings before an application is built.

    Returns:
        Limiter: A configured slowapi.Limiter instance.
    """
    return Limiter(
        key_func=key_func,
        enabled=settings.RATE_LIMIT_ENABLED,
        default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
        storage_uri="memory://",
    )
