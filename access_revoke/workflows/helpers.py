"""
Workflow Helper Functions for the revoke access action.

Utility functions for parameter validation, base URL resolution and the
normalization of dates and metadata before a request is built.
"""

import json
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Mapping, Optional

from ..config import ActionSettings
from ..exceptions import ValidationError
from ..models import ItemType, RevokeAccessParams

logger = logging.getLogger(__name__)

ITEM_TYPE_MESSAGE = "itemType must be ACCESS_PROFILE, ROLE, or ENTITLEMENT"
NO_URL_MESSAGE = "No URL specified. Provide address parameter or ADDRESS environment variable"


def format_timestamp(moment: datetime) -> str:
    """
    Format a datetime as UTC ISO 8601 with millisecond precision.

    Example: ``2025-12-04T17:30:00.123Z``
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def normalize_remove_date(value: Any) -> Optional[str]:
    """
    Re-format a remove date as RFC3339.

    Dates without an offset are taken as UTC. Values that cannot be parsed
    are dropped (None) rather than rejected.
    """
    if not value:
        return None

    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return format_timestamp(datetime.combine(value, time.min))

    text = str(value).strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"

    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Ignoring unparseable itemRemoveDate {value!r}")
        return None

    return format_timestamp(moment)


def parse_metadata(value: Any, name: str) -> Optional[Dict[str, Any]]:
    """
    Decode a JSON-encoded metadata object.

    Args:
        value: JSON string, mapping, or empty value
        name: Parameter name used in error messages

    Returns:
        The decoded mapping, or None when no metadata was given

    Raises:
        ValidationError: If the value is not a JSON object
    """
    if value is None or value == "":
        return None

    if isinstance(value, Mapping):
        return dict(value)

    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            return decoded

    raise ValidationError(f"{name} must be a JSON object")


def get_base_url(params: Mapping[str, Any], settings: ActionSettings) -> str:
    """
    Resolve the API base URL.

    The ``address`` parameter wins over the ``ADDRESS`` environment value.
    A trailing slash is removed.
    """
    address = params.get("address") or settings.address
    if not address:
        raise ValidationError(NO_URL_MESSAGE)

    address = str(address)
    return address[:-1] if address.endswith("/") else address


def _required_string(params: Mapping[str, Any], key: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Invalid or missing {key} parameter")
    return value


def validate_revoke_params(params: Mapping[str, Any], settings: ActionSettings) -> RevokeAccessParams:
    """
    Validate raw action parameters.

    Checks run in a fixed order and the first failure is raised, so the
    error always names the offending field.

    Args:
        params: Parameters after template resolution
        settings: Action settings (for the default address)

    Returns:
        Validated RevokeAccessParams

    Raises:
        ValidationError: If a parameter is missing or invalid
    """
    identity_id = _required_string(params, "identityId")

    item_type = params.get("itemType")
    if item_type not in ItemType.values():
        raise ValidationError(ITEM_TYPE_MESSAGE)

    item_id = _required_string(params, "itemId")

    item_comment = params.get("itemComment")
    if not item_comment:
        raise ValidationError("itemComment is required for REVOKE_ACCESS requests")

    client_metadata = parse_metadata(params.get("clientMetadata"), "clientMetadata")
    item_client_metadata = parse_metadata(params.get("itemClientMetadata"), "itemClientMetadata")

    address = get_base_url(params, settings)

    return RevokeAccessParams(
        identity_id=identity_id,
        item_type=ItemType(item_type),
        item_id=item_id,
        item_comment=str(item_comment),
        item_remove_date=normalize_remove_date(params.get("itemRemoveDate")),
        client_metadata=client_metadata,
        item_client_metadata=item_client_metadata,
        address=address,
    )
