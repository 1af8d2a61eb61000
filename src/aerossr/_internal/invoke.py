"""Call sync or async callables uniformly.

Route handlers, route middleware and error handlers may be ``def`` or
``async def``. This is the one place that tells them apart.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
