"""
Helpers shared by the jobs sub-routers.
"""

import functools
import hmac
import logging
from typing import Any, Callable, Coroutine, Optional

from fastapi import Header, HTTPException
from fastapi.responses import JSONResponse

from freight_sync.core.config import settings

logger = logging.getLogger(__name__)


async def verify_cron_secret(
    authorization: Optional[str] = Header(None),
) -> None:
    """
    Checks the `Authorization: Bearer <CRON_SECRET>` header.

    Runs before any handler dependency, so a rejected trigger never touches
    the store.
    """
    expected = settings.CRON_SECRET
    if not expected:
        logger.error("CRON_SECRET not configured, rejecting job trigger")
        raise HTTPException(500, "Cron secret not configured")

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token.strip(), expected):
        logger.warning("Job trigger rejected: invalid or missing cron secret")
        raise HTTPException(401, "Unauthorized")


def job_endpoint(name: str):
    """
    Decorator for job endpoints.

    Wraps the common try/except/JSONResponse pattern.

    Args:
        name: Job name used in error logs.

    Usage:
        @router.post("/my-job")
        @job_endpoint("my-job")
        async def job_my_job():
            return {"status": "ok", "message": "done"}
    """

    def decorator(
        func: Callable[..., Coroutine[Any, Any, dict | JSONResponse]],
    ) -> Callable[..., Coroutine[Any, Any, JSONResponse]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> JSONResponse:
            try:
                result = await func(*args, **kwargs)
                if isinstance(result, JSONResponse):
                    return result
                return JSONResponse(result)
            except Exception as e:
                logger.error(f"Error in job {name}: {e}")
                return JSONResponse(
                    {"status": "error", "message": str(e)},
                    status_code=500,
                )

        return wrapper

    return decorator
