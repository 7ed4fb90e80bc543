"""
Run blocking catalog calls off the event loop.
"""
import asyncio
from typing import Any, Callable

from assetdex_backend.config import TO_THREAD_TIMEOUT_S
from assetdex_backend.shared import ErrorCode, Result, get_logger

from .response import safe_error_message

logger = get_logger(__name__)


async def _offload(fn: Callable[..., Any], *args: Any, timeout: float | None = None, label: str = "Operation", **kwargs: Any) -> Result[Any]:
    """
    Run `fn(*args, **kwargs)` in a worker thread with a timeout.

    `fn` is expected to return a Result; plain values are wrapped in Result.Ok.
    """
    limit = float(timeout) if timeout is not None else float(TO_THREAD_TIMEOUT_S)
    try:
        out = await asyncio.wait_for(asyncio.to_thread(fn, *args, **kwargs), timeout=limit)
    except asyncio.TimeoutError:
        return Result.Err(ErrorCode.TIMEOUT, f"{label} timed out")
    except Exception as exc:
        logger.error("%s failed: %s", label, exc, exc_info=True)
        return Result.Err(ErrorCode.DB_ERROR, safe_error_message(exc, f"{label} failed"))
    if isinstance(out, Result):
        return out
    return Result.Ok(out)
