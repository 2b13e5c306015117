"""
Authorization header resolution.

The action supports four credential schemes. Which one is used depends on the
secrets present in the execution context, probed in this order:

1. ``BEARER_AUTH_TOKEN``: a ready-made bearer token
2. ``BASIC_USERNAME`` / ``BASIC_PASSWORD``: HTTP Basic credentials
3. ``OAUTH2_AUTHORIZATION_CODE_ACCESS_TOKEN``: a pre-issued OAuth2 access token
4. ``OAUTH2_CLIENT_CREDENTIALS_CLIENT_SECRET``: OAuth2 client credentials grant,
   configured through the ``OAUTH2_CLIENT_CREDENTIALS_*`` environment values

Only the client credentials scheme performs network I/O.
"""

import base64
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from ..exceptions import AuthConfigurationError
from ..models import ExecutionContext

logger = logging.getLogger(__name__)

AUTH_STYLE_IN_PARAMS = "InParams"
AUTH_STYLE_IN_HEADER = "InHeader"

NO_AUTH_MESSAGE = (
    "No authentication configured. Provide one of: "
    "BEARER_AUTH_TOKEN, BASIC_USERNAME/BASIC_PASSWORD, "
    "OAUTH2_AUTHORIZATION_CODE_ACCESS_TOKEN, or OAUTH2_CLIENT_CREDENTIALS_*"
)


def _bearer(token: str) -> str:
    return token if token.startswith("Bearer ") else f"Bearer {token}"


def _basic(username: str, password: str) -> str:
    credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {credentials}"


class AuthMethod(ABC):
    """A credential scheme able to produce an Authorization header value."""

    name = "auth"

    @classmethod
    @abstractmethod
    def from_context(cls, environment: Dict[str, Any], secrets: Dict[str, Any]) -> Optional["AuthMethod"]:
        """Build the method from the context, or return None if it is not configured."""
        pass

    @abstractmethod
    def authorization_header(self, session: Optional[requests.Session] = None,
                             timeout: Optional[float] = None) -> str:
        """Return the complete Authorization header value."""
        pass

    def __repr__(self) -> str:
        # Never expose secrets in logs or tracebacks
        return f"<{self.__class__.__name__}>"


class BearerToken(AuthMethod):
    name = "bearer"

    def __init__(self, token: str):
        self.token = token

    @classmethod
    def from_context(cls, environment, secrets):
        token = secrets.get("BEARER_AUTH_TOKEN")
        return cls(token) if token else None

    def authorization_header(self, session=None, timeout=None) -> str:
        return _bearer(self.token)


class BasicAuth(AuthMethod):
    name = "basic"

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    @classmethod
    def from_context(cls, environment, secrets):
        username = secrets.get("BASIC_USERNAME")
        password = secrets.get("BASIC_PASSWORD")
        return cls(username, password) if username and password else None

    def authorization_header(self, session=None, timeout=None) -> str:
        return _basic(self.username, self.password)


class PreissuedOAuthToken(AuthMethod):
    name = "oauth2_authorization_code"

    def __init__(self, access_token: str):
        self.access_token = access_token

    @classmethod
    def from_context(cls, environment, secrets):
        token = secrets.get("OAUTH2_AUTHORIZATION_CODE_ACCESS_TOKEN")
        return cls(token) if token else None

    def authorization_header(self, session=None, timeout=None) -> str:
        return _bearer(self.access_token)


class ClientCredentials(AuthMethod):
    """OAuth2 client credentials grant against a token endpoint."""

    name = "oauth2_client_credentials"

    def __init__(self, token_url: Optional[str], client_id: Optional[str], client_secret: str,
                 scope: Optional[str] = None, audience: Optional[str] = None,
                 auth_style: Optional[str] = None):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.audience = audience
        self.auth_style = auth_style or AUTH_STYLE_IN_HEADER

    @classmethod
    def from_context(cls, environment, secrets):
        client_secret = secrets.get("OAUTH2_CLIENT_CREDENTIALS_CLIENT_SECRET")
        if not client_secret:
            return None

        method = cls(
            token_url=environment.get("OAUTH2_CLIENT_CREDENTIALS_TOKEN_URL"),
            client_id=environment.get("OAUTH2_CLIENT_CREDENTIALS_CLIENT_ID"),
            client_secret=client_secret,
            scope=environment.get("OAUTH2_CLIENT_CREDENTIALS_SCOPE"),
            audience=environment.get("OAUTH2_CLIENT_CREDENTIALS_AUDIENCE"),
            auth_style=environment.get("OAUTH2_CLIENT_CREDENTIALS_AUTH_STYLE"),
        )
        method.validate()
        return method

    def validate(self):
        """Ensure the token endpoint and client id are configured."""
        if not self.token_url or not self.client_id:
            raise AuthConfigurationError(
                "OAuth2 Client Credentials flow requires TOKEN_URL and CLIENT_ID in env"
            )

    def fetch_access_token(self, session: Optional[requests.Session] = None,
                           timeout: Optional[float] = None) -> str:
        """
        Exchange the client credentials for an access token.

        Args:
            session: HTTP session used for the token request
            timeout: Request timeout in seconds

        Returns:
            The access token string

        Raises:
            AuthConfigurationError: If the endpoint fails or returns no token
        """
        self.validate()
        session = session or requests.Session()

        form: Dict[str, str] = {"grant_type": "client_credentials"}
        if self.scope:
            form["scope"] = self.scope
        if self.audience:
            form["audience"] = self.audience

        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        if self.auth_style == AUTH_STYLE_IN_PARAMS:
            form["client_id"] = self.client_id
            form["client_secret"] = self.client_secret
        else:
            headers["Authorization"] = _basic(self.client_id, self.client_secret)

        logger.info(f"Requesting OAuth2 client credentials token from {self.token_url}")
        try:
            response = session.post(self.token_url, data=form, headers=headers, timeout=timeout)
        except requests.RequestException as e:
            raise AuthConfigurationError(f"OAuth2 token request failed: {e}") from e

        if not response.ok:
            try:
                error_text = _compact_json(response.json())
            except ValueError:
                error_text = response.text
            raise AuthConfigurationError(
                f"OAuth2 token request failed: {response.status_code} {response.reason} - {error_text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            data = None

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise AuthConfigurationError("No access_token in OAuth2 response")

        return access_token

    def authorization_header(self, session=None, timeout=None) -> str:
        return f"Bearer {self.fetch_access_token(session, timeout)}"


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


# Probed in this order; the first configured method wins
AUTH_METHODS = (BearerToken, BasicAuth, PreissuedOAuthToken, ClientCredentials)


def select_auth_method(context: Any) -> AuthMethod:
    """
    Pick the credential scheme for the given execution context.

    Args:
        context: ExecutionContext or mapping with ``environment``/``secrets``

    Returns:
        The highest-priority configured AuthMethod

    Raises:
        AuthConfigurationError: If no credentials are configured
    """
    context = ExecutionContext.coerce(context)
    for method_class in AUTH_METHODS:
        method = method_class.from_context(context.environment, context.secrets)
        if method is not None:
            return method

    raise AuthConfigurationError(NO_AUTH_MESSAGE)


def get_authorization_header(context: Any, session: Optional[requests.Session] = None,
                             timeout: Optional[float] = None) -> str:
    """Resolve the Authorization header value for the execution context."""
    method = select_auth_method(context)
    logger.info(f"Using {method.name} authentication")
    return method.authorization_header(session, timeout)
