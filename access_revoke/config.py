"""
Configuration for the revoke access action.

Settings are read from the ``environment`` section of the execution context
supplied by the host framework. Numeric values arrive as strings and fall
back to their defaults when they cannot be parsed.
"""

import logging
import math
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from .models import ExecutionContext

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT_BACKOFF_MS = 30000
DEFAULT_SERVICE_ERROR_BACKOFF_MS = 10000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


def _number(environment: Mapping[str, Any], key: str, default: float) -> float:
    raw = environment.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid {key}={raw!r}, using default {default}")
        return default
    if not math.isfinite(value):
        logger.warning(f"Ignoring invalid {key}={raw!r}, using default {default}")
        return default
    if value < 0:
        logger.warning(f"Ignoring negative {key}={raw!r}, using default {default}")
        return default
    return value


class ActionSettings(BaseModel):
    """Tunable settings of the action."""
    address: Optional[str] = Field(None, description="Default API base URL (ADDRESS)")
    rate_limit_backoff_ms: int = Field(DEFAULT_RATE_LIMIT_BACKOFF_MS, ge=0)
    service_error_backoff_ms: int = Field(DEFAULT_SERVICE_ERROR_BACKOFF_MS, ge=0)
    request_timeout: float = Field(DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0)

    @classmethod
    def from_context(cls, context: Any) -> "ActionSettings":
        """Build settings from an execution context or a plain mapping."""
        environment = ExecutionContext.coerce(context).environment

        timeout = _number(environment, "REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS)
        return cls(
            address=environment.get("ADDRESS") or None,
            rate_limit_backoff_ms=int(_number(environment, "RATE_LIMIT_BACKOFF_MS",
                                              DEFAULT_RATE_LIMIT_BACKOFF_MS)),
            service_error_backoff_ms=int(_number(environment, "SERVICE_ERROR_BACKOFF_MS",
                                                 DEFAULT_SERVICE_ERROR_BACKOFF_MS)),
            request_timeout=timeout or DEFAULT_REQUEST_TIMEOUT_SECONDS,
        )
