# =============================================================================
# File: messaging_core/processors/records.py
# Description: Normalized inbound records handed to processors
# =============================================================================

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class DynamoStreamRecord:
    """One table change with both images already unmarshalled."""
    table_name: str = ""
    event_name: str = ""
    old_image: Dict[str, Any] = field(default_factory=dict)
    new_image: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "DynamoStreamRecord":
        """Stand-in for a malformed record; no processor supports it."""
        return cls()

    @property
    def image(self) -> Dict[str, Any]:
        """The image describing the entity: old for REMOVE, new otherwise."""
        return self.old_image if self.event_name == "REMOVE" else self.new_image

    def to_log_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SnsRecord:
    """One SNS delivery with its JSON body decoded."""
    topic_arn: str = ""
    message: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "SnsRecord":
        return cls()

    def to_log_dict(self) -> Dict[str, Any]:
        return asdict(self)
