from typing import Any, Callable

from fastapi import BackgroundTasks


def run_detached(
    background: BackgroundTasks | None,
    func: Callable[..., Any],
    *args: Any,
    **kwargs: Any,
) -> None:
    """Queue ``func`` on the response's background tasks, or run it now when there is none.

    ``func`` is expected to handle its own errors.
    """
    if background is not None:
        background.add_task(func, *args, **kwargs)
        return
    func(*args, **kwargs)
