from __future__ import annotations

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def run_blocking(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Await a blocking call (DB driver, OpenCV, dlib) without stalling the event loop."""
    return await asyncio.to_thread(fn, *args, **kwargs)
