import asyncio
import threading
from typing import Any, Callable, Optional, TypeVar

from loguru import logger

from config.settings import settings
from core.repositories.cancellation import current_cancel_event

T = TypeVar("T")


def _drain(task: asyncio.Future) -> None:
    if not task.cancelled():
        task.exception()


async def call_store(fn: Callable[..., T], *args: Any, timeout: Optional[float] = None, **kwargs: Any) -> T:
    # по таймауту вызов отменяется: cancel() прерывает запрос, а commit после отмены откатывается
    limit = settings.STORE_TIMEOUT_SEC if timeout is None else timeout
    cancelled = threading.Event()
    token = current_cancel_event.set(cancelled)
    try:
        task = asyncio.ensure_future(asyncio.to_thread(fn, *args, **kwargs))
    finally:
        current_cancel_event.reset(token)

    try:
        return await asyncio.wait_for(asyncio.shield(task), timeout=limit)
    except asyncio.TimeoutError:
        cancelled.set()
        cancel = getattr(getattr(fn, "__self__", None), "cancel", None)
        if cancel is not None:
            cancel()
        done, _ = await asyncio.wait({task}, timeout=limit)
        name = getattr(fn, "__qualname__", repr(fn))
        if not done:
            task.add_done_callback(_drain)
            logger.error("Store call {} still running after timeout, outcome unknown; run reconcile", name)
            raise
        if not task.cancelled() and task.exception() is None:
            logger.warning("Store call {} finished after its timeout", name)
            return task.result()
        logger.error("Store call {} timed out and was rolled back", name)
        raise
