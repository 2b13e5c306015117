"""
Base Connector Class for the revoke access action.

This module provides the foundation for identity-governance connectors:
an injected HTTP session, the resolved base URL and Authorization header,
and the JSON request plumbing shared by every concrete connector.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from ..config import DEFAULT_REQUEST_TIMEOUT_SECONDS
from ..exceptions import UpstreamAPIError
from ..models import AccessRequest

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """
    Abstract base class for identity-governance connectors.

    The HTTP session is injected so callers (and tests) control transport.
    """

    def __init__(self, base_url: str, authorization: str,
                 session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS):
        """
        Initialize the connector.

        Args:
            base_url: API base URL without trailing slash
            authorization: Complete Authorization header value
            session: HTTP session; a new requests.Session is created if omitted
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.authorization = authorization
        self.session = session or requests.Session()
        self.timeout = timeout
        self.system_name = self.__class__.__name__.replace("Connector", "").lower()

        logger.debug(f"Initialized {self.__class__.__name__} for {self.base_url}")

    @abstractmethod
    def revoke_access(self, access_request: AccessRequest) -> Dict[str, Any]:
        """
        Submit a request revoking access from an identity.

        Args:
            access_request: Request body to send

        Returns:
            Parsed JSON body of the successful response

        Raises:
            UpstreamAPIError: If the API rejects the request
        """
        pass

    def get_system_name(self) -> str:
        """Get the name of the system this connector manages."""
        return self.system_name

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def default_headers(self) -> Dict[str, str]:
        return {
            "Authorization": self.authorization,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def _post_json(self, path: str, body: Dict[str, Any]) -> requests.Response:
        """POST a JSON body, wrapping transport failures in UpstreamAPIError."""
        url = self.url_for(path)
        try:
            return self.session.post(url, json=body, headers=self.default_headers(),
                                     timeout=self.timeout)
        except requests.RequestException as e:
            error_msg = f"Request to {url} failed: {e}"
            logger.error(error_msg)
            raise UpstreamAPIError(error_msg) from e
