# =============================================================================
# File: messaging_core/conversation/value_objects.py
# Description: Value objects passed between the API layer and the mediators
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from messaging_core.conversation.enums import Role, UniquePropertyKind

T = TypeVar("T")


class UserIdentifier(BaseModel):
    """
    A user referenced by exactly one of email, phone or username.

    Role only applies when adding to a group or meeting.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    email: Optional[str] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    role: Optional[Role] = None

    @model_validator(mode="after")
    def _exactly_one_identifier(self) -> "UserIdentifier":
        provided = [value for value in (self.email, self.phone, self.username) if value]
        if len(provided) != 1:
            raise ValueError("Exactly one of email, phone or username is required")
        return self

    def kind_and_value(self) -> Tuple[UniquePropertyKind, str]:
        if self.email:
            return UniquePropertyKind.EMAIL, self.email
        if self.phone:
            return UniquePropertyKind.PHONE, self.phone
        return UniquePropertyKind.USERNAME, self.username  # type: ignore[return-value]

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class BatchResult(BaseModel, Generic[T]):
    """
    Outcome of a best-effort batch: every input lands in exactly one list.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    successes: List[T] = Field(default_factory=list)
    failures: List[UserIdentifier] = Field(default_factory=list)
