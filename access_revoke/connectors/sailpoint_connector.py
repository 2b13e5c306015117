"""
SailPoint IdentityNow Connector.

Creates REVOKE_ACCESS access requests through the IdentityNow v3 API and maps
error responses onto UpstreamAPIError.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import requests

from ..exceptions import UpstreamAPIError
from ..models import AccessRequest
from .base_connector import BaseConnector

logger = logging.getLogger(__name__)

ACCESS_REQUESTS_PATH = "/v3/access-requests"
ERROR_PREFIX = "Failed to create revoke access request"


def describe_error_response(response: requests.Response) -> Tuple[str, Optional[Any]]:
    """
    Build an error message from an IdentityNow error response.

    The API reports errors as ``detailCode``/``trackingId``, as a ``messages``
    list, or as a plain ``message``. Non-JSON bodies are used verbatim.

    Returns:
        Tuple of (message, parsed body or raw text)
    """
    message = f"{ERROR_PREFIX}: HTTP {response.status_code}"

    try:
        error_body = response.json()
    except ValueError:
        error_text = response.text
        if error_text:
            message = f"{ERROR_PREFIX}: {error_text}"
        logger.error("Failed to parse error response")
        return message, error_text or None

    if isinstance(error_body, dict):
        messages = error_body.get("messages")
        if error_body.get("detailCode"):
            message = f"{ERROR_PREFIX}: {error_body['detailCode']} - {error_body.get('trackingId') or ''}"
        elif isinstance(messages, list) and messages:
            first = messages[0]
            text = first.get("text") if isinstance(first, dict) else first
            message = f"{ERROR_PREFIX}: {text}"
        elif error_body.get("message"):
            message = f"{ERROR_PREFIX}: {error_body['message']}"

    logger.error(f"SailPoint API error response: {error_body}")
    return message, error_body


class SailPointConnector(BaseConnector):
    """Connector for SailPoint IdentityNow access requests."""

    def revoke_access(self, access_request: AccessRequest) -> Dict[str, Any]:
        """Create a REVOKE_ACCESS request; 202 Accepted is the expected answer."""
        body = access_request.to_wire()
        identity_id = ", ".join(access_request.requested_for)

        response = self._post_json(ACCESS_REQUESTS_PATH, body)

        if response.ok:
            try:
                data = response.json()
            except ValueError as e:
                raise UpstreamAPIError(
                    f"{ERROR_PREFIX}: response was not valid JSON",
                    status_code=response.status_code,
                ) from e
            if not isinstance(data, dict):
                data = {}
            logger.info(f"Successfully created revoke access request {data.get('id')} "
                        f"for identity {identity_id}")
            return data

        message, error_body = describe_error_response(response)
        raise UpstreamAPIError(message, status_code=response.status_code, response_body=error_body)
