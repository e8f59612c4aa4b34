"""Trace ids that group the log events of one registration run or poll cycle."""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class TraceContext:
    """Identifies one logical operation in the logs.

    Attributes:
        trace_id: UUID string shared by every event of the operation.
        kind: What started the operation, e.g. ``registration`` or ``poll``.
    """

    trace_id: str
    kind: str | None = None

    @classmethod
    def new_trace(cls, kind: str | None = None) -> "TraceContext":
        return cls(trace_id=str(uuid.uuid4()), kind=kind)

    def log_fields(self) -> dict[str, str]:
        """Fields to bind onto log events of this operation."""
        fields = {"trace_id": self.trace_id}
        if self.kind:
            fields["trace_kind"] = self.kind
        return fields
