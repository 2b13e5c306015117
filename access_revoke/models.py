"""
Core data models for the revoke access action.

This module defines the Pydantic models used for the execution context,
action parameters, the access request body sent to the identity-governance
API, and the result shapes returned to the host framework.

Field names are snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ItemType(str, Enum):
    """Kinds of access item that can be revoked."""
    ACCESS_PROFILE = "ACCESS_PROFILE"
    ROLE = "ROLE"
    ENTITLEMENT = "ENTITLEMENT"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]


class WireModel(BaseModel):
    """Base model serialising to camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the camelCase mapping exchanged with the API and the host."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ExecutionContext(BaseModel):
    """Execution context supplied by the host framework."""
    model_config = ConfigDict(extra="allow")

    environment: Dict[str, Any] = Field(default_factory=dict, description="Configuration values")
    secrets: Dict[str, Any] = Field(default_factory=dict, description="Credential values")
    data: Dict[str, Any] = Field(default_factory=dict, description="Job context used for templates")

    @classmethod
    def coerce(cls, context: Any) -> "ExecutionContext":
        """Accept an ExecutionContext, a mapping, or None."""
        if isinstance(context, cls):
            return context
        context = dict(context or {})
        # The host may send explicit nulls for unused sections
        for key in ("environment", "secrets", "data"):
            if context.get(key) is None:
                context.pop(key, None)
        return cls.model_validate(context)


class RevokeAccessParams(WireModel):
    """Validated action parameters."""
    identity_id: str = Field(..., description="Identity whose access is revoked")
    item_type: ItemType = Field(..., description="ACCESS_PROFILE, ROLE or ENTITLEMENT")
    item_id: str = Field(..., description="Identifier of the access item")
    item_comment: str = Field(..., description="Justification for the revoke request")
    item_remove_date: Optional[str] = Field(None, description="RFC3339 date the access should end")
    client_metadata: Optional[Dict[str, Any]] = Field(None, description="Request level metadata")
    item_client_metadata: Optional[Dict[str, Any]] = Field(None, description="Item level metadata")
    address: str = Field(..., description="Base URL of the API, without trailing slash")


class RequestedItem(WireModel):
    """One item of an access request."""
    type: ItemType
    id: str
    comment: str
    remove_date: Optional[str] = None
    client_metadata: Optional[Dict[str, Any]] = None


class AccessRequest(WireModel):
    """Body of POST /v3/access-requests."""
    requested_for: List[str]
    request_type: str = "REVOKE_ACCESS"
    requested_items: List[RequestedItem]
    client_metadata: Optional[Dict[str, Any]] = None


class RevokeResult(WireModel):
    """Result of a successful invoke (or a recovered error)."""
    request_id: Optional[str] = None
    identity_id: str
    item_type: str
    item_id: str
    status: str = "PENDING"
    requested_at: str
    address: str
    recovery_method: Optional[str] = None


class HaltResult(WireModel):
    """Acknowledgement returned by the halt handler."""
    identity_id: str = "unknown"
    item_type: str = "unknown"
    item_id: str = "unknown"
    reason: Optional[str] = None
    halted_at: str
    cleanup_completed: bool = True
