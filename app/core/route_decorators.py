"""
Route decorators
"""

import functools
import logging
from typing import Callable, Any

logger = logging.getLogger("app.audit")


def log_route_access(func: Callable) -> Callable:
    """Record which identity invoked a route, for auditing privileged endpoints."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> Any:
        current_user = kwargs.get("current_user")

        log_data = {
            "function": func.__name__,
            "module": func.__module__
        }

        if current_user is not None:
            log_data.update({
                "user_id": str(current_user.id),
                "user_email": current_user.email,
                "user_role": current_user.role.value
            })

        target = {k: str(v) for k, v in kwargs.items() if k.endswith("_id") or k == "role"}
        if target:
            log_data["target"] = target

        logger.info(f"Route access: {func.__name__}", extra=log_data)

        return await func(*args, **kwargs)

    return wrapper
