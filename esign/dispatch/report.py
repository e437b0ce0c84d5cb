"""Per-address dispatch records and the aggregate run report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DispatchOutcome(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


@dataclass(slots=True)
class DispatchRecord:
    """One notification attempt for one address.

    The outcome moves from pending to sent or failed exactly once.
    """

    address: str
    recipient_id: str
    order_number: Optional[int]
    token: str
    outcome: DispatchOutcome = DispatchOutcome.PENDING
    reason: Optional[str] = None
    message_id: Optional[str] = None

    def mark_sent(self, message_id: Optional[str] = None) -> None:
        self._require_pending()
        self.outcome = DispatchOutcome.SENT
        self.message_id = message_id

    def mark_failed(self, reason: str) -> None:
        self._require_pending()
        self.outcome = DispatchOutcome.FAILED
        self.reason = reason

    def _require_pending(self) -> None:
        if self.outcome is not DispatchOutcome.PENDING:
            raise RuntimeError(
                f"Dispatch record for {self.address} is already {self.outcome.value}"
            )


@dataclass(frozen=True, slots=True)
class DispatchReport:
    """Outcome of one dispatch run."""

    success: bool
    sent_emails: tuple[str, ...]
    errors: tuple[str, ...]
    attempted: int
    records: tuple[DispatchRecord, ...] = field(default=(), repr=False)

    @property
    def sent_count(self) -> int:
        return len(self.sent_emails)

    def summary(self) -> str:
        """One consolidated, user-facing line plus any failure reasons."""
        head = f"{self.sent_count} of {self.attempted} emails sent"
        if not self.errors:
            return head
        return head + "\n" + "\n".join(f"- {error}" for error in self.errors)

    @classmethod
    def from_records(
        cls,
        records: list[DispatchRecord],
        aborted_reason: Optional[str] = None,
    ) -> "DispatchReport":
        """Freeze the records of a finished run.

        When the run was aborted, the single aggregate reason replaces the
        per-address failures in ``errors``; sent addresses are kept.
        """
        sent = tuple(r.address for r in records if r.outcome is DispatchOutcome.SENT)
        if aborted_reason is not None:
            errors: tuple[str, ...] = (aborted_reason,)
        else:
            errors = tuple(
                r.reason or f"Failed to send to {r.address}"
                for r in records
                if r.outcome is DispatchOutcome.FAILED
            )
        attempted = sum(1 for r in records if r.outcome is not DispatchOutcome.PENDING)
        return cls(
            success=not errors,
            sent_emails=sent,
            errors=errors,
            attempted=attempted,
            records=tuple(records),
        )
