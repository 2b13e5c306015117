"""
Revoke Access Workflow.

Creates an access request in SailPoint IdentityNow revoking an access
profile, role or entitlement from an identity. The action exposes the three
entry points the host framework calls:

- ``invoke``: resolve templates, validate, authenticate and POST the request
- ``error``: re-raise, or retry once on rate limiting / service errors
- ``halt``: acknowledge a halt; a single POST needs no cleanup

Collaborators (HTTP session, clock, UUID factory, sleep) are injected through
the constructor.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

import requests

from ..config import ActionSettings
from ..connectors import BaseConnector, SailPointConnector
from ..engine.authorization import get_authorization_header
from ..engine.template_resolver import resolve_json_path_templates
from ..exceptions import ActionError, UnrecoverableActionError, UpstreamAPIError
from ..models import AccessRequest, ExecutionContext, HaltResult, RequestedItem, RevokeAccessParams, RevokeResult
from .helpers import format_timestamp, validate_revoke_params

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRY = "rate_limit_retry"
SERVICE_ERROR_RETRY = "service_error_retry"
SERVICE_ERROR_STATUS_CODES = (502, 503, 504)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_uuid() -> str:
    return str(uuid.uuid4())


def build_access_request(params: RevokeAccessParams) -> AccessRequest:
    """Build the REVOKE_ACCESS request body for validated parameters."""
    item = RequestedItem(
        type=params.item_type,
        id=params.item_id,
        comment=params.item_comment,
        remove_date=params.item_remove_date,
        client_metadata=params.item_client_metadata,
    )
    return AccessRequest(
        requested_for=[params.identity_id],
        requested_items=[item],
        client_metadata=params.client_metadata,
    )


def describe_error(error: Any) -> Tuple[str, Optional[int]]:
    """Return (message, status code) for an exception or an error mapping."""
    if isinstance(error, ActionError):
        return error.message, error.status_code
    if isinstance(error, BaseException):
        status_code = getattr(error, "status_code", None) or getattr(error, "statusCode", None)
        return str(error), status_code
    if isinstance(error, Mapping):
        status_code = error.get("statusCode") or error.get("status_code")
        try:
            status_code = int(status_code) if status_code else None
        except (TypeError, ValueError):
            status_code = None
        return str(error.get("message") or ""), status_code
    if error is None:
        return "", None
    return str(error), None


def as_exception(error: Any) -> BaseException:
    """Turn whatever the host passed as ``error`` into an exception to raise."""
    if isinstance(error, BaseException):
        return error
    if error is None:
        return ActionError("Error handler invoked without an error")
    message, status_code = describe_error(error)
    return UpstreamAPIError(message, status_code=status_code)


class RevokeAccessAction:
    """
    SailPoint IdentityNow revoke access action.

    Each call is independent; the instance holds only injected collaborators.
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 uuid_factory: Optional[Callable[[], str]] = None,
                 sleep: Optional[Callable[[float], None]] = None,
                 retry_errors: bool = False,
                 resolve_templates: bool = True,
                 connector_class: Type[BaseConnector] = SailPointConnector):
        """
        Initialize the action.

        Args:
            session: HTTP session used for every outbound request
            clock: Returns the current time as an aware UTC datetime
            uuid_factory: Returns a new random identifier string
            sleep: Blocks for the given number of seconds (backoff)
            retry_errors: If True the error handler retries rate limit and
                service errors once instead of re-raising
            resolve_templates: Resolve ``{$.path}`` templates in parameters
            connector_class: Connector used to submit the request
        """
        self.session = session or requests.Session()
        self.clock = clock or _utc_now
        self.uuid_factory = uuid_factory or _new_uuid
        self.sleep = sleep or time.sleep
        self.retry_errors = retry_errors
        self.resolve_templates = resolve_templates
        self.connector_class = connector_class

    def invoke(self, params: Mapping[str, Any], context: Any) -> Dict[str, Any]:
        """
        Create a revoke access request.

        Args:
            params: identityId, itemType, itemId, itemComment and the optional
                itemRemoveDate, clientMetadata, itemClientMetadata, address
            context: Execution context with environment, secrets and data

        Returns:
            Result mapping with requestId, identityId, itemType, itemId,
            status, requestedAt and address

        Raises:
            ValidationError: If a parameter is missing or invalid
            AuthConfigurationError: If no credentials are usable
            UpstreamAPIError: If the API rejects the request
        """
        context = ExecutionContext.coerce(context)
        resolved = self._resolve_params(params, context)

        logger.info(f"Starting SailPoint IdentityNow revoke access request for identity: "
                    f"{resolved.get('identityId')}")
        logger.info(f"Revoking {resolved.get('itemType')}: {resolved.get('itemId')}")

        return self._submit(resolved, context).to_wire()

    def error(self, params: Mapping[str, Any], context: Any) -> Dict[str, Any]:
        """
        Handle an error raised by ``invoke``.

        By default the error is re-raised so the host applies its own retry
        policy. With ``retry_errors`` a rate limit (429 or a rate limit
        message) or a 502/503/504 is retried once after the configured
        backoff; anything else is raised as UnrecoverableActionError.

        Args:
            params: Original parameters plus ``error``
            context: Execution context

        Returns:
            Result mapping of the retried request, with ``recoveryMethod``
        """
        params = dict(params or {})
        error = params.pop("error", None)

        if not self.retry_errors:
            raise as_exception(error)

        context = ExecutionContext.coerce(context)
        settings = ActionSettings.from_context(context)
        message, status_code = describe_error(error)

        if status_code == 429 or "rate limit" in message.lower():
            recovery_method, backoff_ms = RATE_LIMIT_RETRY, settings.rate_limit_backoff_ms
        elif status_code in SERVICE_ERROR_STATUS_CODES:
            recovery_method, backoff_ms = SERVICE_ERROR_RETRY, settings.service_error_backoff_ms
        else:
            identity_id = params.get("identityId") or "unknown"
            cause = error if isinstance(error, BaseException) else None
            raise UnrecoverableActionError(
                f"Unrecoverable error creating revoke access request for identity {identity_id}: {message}",
                status_code=status_code,
            ) from cause

        logger.warning(f"Retrying revoke access request after {recovery_method.replace('_', ' ')} "
                       f"(status {status_code}), waiting {backoff_ms}ms")
        self.sleep(backoff_ms / 1000.0)

        resolved = self._resolve_params(params, context)
        result = self._submit(resolved, context, recovery_method=recovery_method)
        logger.info(f"Recovered revoke access request {result.request_id} via {recovery_method}")
        return result.to_wire()

    def halt(self, params: Mapping[str, Any], context: Any) -> Dict[str, Any]:
        """
        Acknowledge a halt.

        The POST either completed or it did not, so there is nothing to
        cancel or release.
        """
        params = dict(params or {})
        reason = params.get("reason")
        identity_id = params.get("identityId")

        logger.info(f"Revoke access request job is being halted ({reason}) for identity {identity_id}")

        return HaltResult(
            identity_id=str(identity_id or "unknown"),
            item_type=str(params.get("itemType") or "unknown"),
            item_id=str(params.get("itemId") or "unknown"),
            reason=str(reason) if reason is not None else None,
            halted_at=format_timestamp(self.clock()),
        ).to_wire()

    def _resolve_params(self, params: Optional[Mapping[str, Any]],
                        context: ExecutionContext) -> Dict[str, Any]:
        params = dict(params or {})
        if not self.resolve_templates:
            return params

        resolution = resolve_json_path_templates(
            params,
            context.data,
            now=self.clock(),
            random_uuid=self.uuid_factory(),
        )
        if resolution.errors:
            logger.warning(f"Template resolution errors: {resolution.errors}")
        return resolution.result

    def _submit(self, resolved: Mapping[str, Any], context: ExecutionContext,
                recovery_method: Optional[str] = None) -> RevokeResult:
        settings = ActionSettings.from_context(context)
        request_params = validate_revoke_params(resolved, settings)

        authorization = get_authorization_header(context, self.session, settings.request_timeout)

        connector = self.connector_class(
            request_params.address,
            authorization,
            session=self.session,
            timeout=settings.request_timeout,
        )
        data = connector.revoke_access(build_access_request(request_params))

        request_id = data.get("id")
        return RevokeResult(
            request_id=str(request_id) if request_id is not None else None,
            identity_id=request_params.identity_id,
            item_type=request_params.item_type.value,
            item_id=request_params.item_id,
            status=str(data.get("status") or "PENDING"),
            requested_at=format_timestamp(self.clock()),
            address=request_params.address,
            recovery_method=recovery_method,
        )
