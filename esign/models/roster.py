"""
Recipient and field bookkeeping for a signature request.

The roster keeps recipients in signing order and owns the list of field
placements. Every placement references a live recipient; removing a
recipient removes its placements.

A request is built in one shot with `Roster.build`; the editing operations
(rename, remove, reorder, remove_email, remove_field) are for callers that
assemble a roster step by step, such as a draft editor.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

from email_validator import EmailNotValidError, validate_email

from esign.core.config import MAX_EMAILS_PER_RECIPIENT
from esign.core.exceptions import ResourceNotFoundError, ValidationError
from esign.models.domain import FieldKind, FieldPlacement, Recipient, RecipientRole


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def normalize_email(email: str) -> str:
    """Validate address syntax and return its normalized form."""
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(
            message=f"Invalid email address: {email}",
            field="email",
            details={"detail": str(e)},
        ) from e
    return result.normalized


class Roster:
    """Ordered recipients plus the fields placed for them."""

    def __init__(self) -> None:
        self._recipients: list[Recipient] = []
        self._fields: list[FieldPlacement] = []

    @property
    def recipients(self) -> list[Recipient]:
        return list(self._recipients)

    @property
    def fields(self) -> list[FieldPlacement]:
        return list(self._fields)

    def get_recipient(self, recipient_id: str) -> Recipient:
        for recipient in self._recipients:
            if recipient.id == recipient_id:
                return recipient
        raise ResourceNotFoundError("Recipient", recipient_id)

    # ------------------------------------------------------------------
    # Recipients
    # ------------------------------------------------------------------

    def add_recipient(
        self,
        name: Optional[str] = None,
        role: RecipientRole = RecipientRole.SIGNER,
        recipient_id: Optional[str] = None,
    ) -> Recipient:
        recipient_id = recipient_id or _new_id("recipient")
        if any(r.id == recipient_id for r in self._recipients):
            raise ValidationError(
                message=f"Duplicate recipient id: {recipient_id}",
                field="recipients",
            )
        recipient = Recipient(id=recipient_id, name=name, role=RecipientRole(role))
        self._recipients.append(recipient)
        return recipient

    def rename_recipient(self, recipient_id: str, name: Optional[str]) -> None:
        recipient = self.get_recipient(recipient_id)
        recipient.name = name.strip() if name else None

    def remove_recipient(self, recipient_id: str) -> None:
        recipient = self.get_recipient(recipient_id)
        self._recipients.remove(recipient)
        self._fields = [f for f in self._fields if f.recipient_id != recipient_id]

    def reorder(self, recipient_ids: list[str]) -> None:
        current = {r.id: r for r in self._recipients}
        if sorted(recipient_ids) != sorted(current):
            raise ValidationError(
                message="New order must list every recipient exactly once",
                field="recipients",
            )
        self._recipients = [current[rid] for rid in recipient_ids]

    def add_email(self, recipient_id: str, email: str) -> None:
        """Append an address; an address already on the recipient is ignored."""
        recipient = self.get_recipient(recipient_id)
        normalized = normalize_email(email)
        if normalized in recipient.emails:
            return
        if len(recipient.emails) >= MAX_EMAILS_PER_RECIPIENT:
            raise ValidationError(
                message=f"A recipient may have at most {MAX_EMAILS_PER_RECIPIENT} emails",
                field="emails",
            )
        recipient.emails.append(normalized)

    def remove_email(self, recipient_id: str, index: int) -> None:
        recipient = self.get_recipient(recipient_id)
        if not 0 <= index < len(recipient.emails):
            raise ValidationError(
                message=f"Email index out of range: {index}",
                field="emails",
            )
        del recipient.emails[index]

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def place_field(
        self,
        recipient_id: str,
        kind: FieldKind,
        x: float,
        y: float,
        field_id: Optional[str] = None,
    ) -> FieldPlacement:
        self.get_recipient(recipient_id)
        placement = FieldPlacement(
            id=field_id or _new_id("field"),
            kind=FieldKind(kind),
            x=float(x),
            y=float(y),
            recipient_id=recipient_id,
        )
        self._fields.append(placement)
        return placement

    def remove_field(self, field_id: str) -> None:
        remaining = [f for f in self._fields if f.id != field_id]
        if len(remaining) == len(self._fields):
            raise ResourceNotFoundError("Field", field_id)
        self._fields = remaining

    def field_count(self, recipient_id: str, kind: FieldKind) -> int:
        return sum(
            1 for f in self._fields if f.recipient_id == recipient_id and f.kind == kind
        )

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    def validate_ready(self, title: str) -> None:
        """Check the roster can be dispatched.

        Raises:
            ValidationError: naming the first rule that is not satisfied
        """
        if not title or not title.strip():
            raise ValidationError(message="Document title is required", field="title")

        if not self._recipients:
            raise ValidationError(
                message="At least one recipient is required", field="recipients"
            )

        for recipient in self._recipients:
            if not recipient.emails:
                raise ValidationError(
                    message=f"Recipient {recipient.name or recipient.id} has no email address",
                    field="recipients",
                    details={"recipient_id": recipient.id},
                )

        for recipient in self._recipients:
            if recipient.role != RecipientRole.SIGNER:
                continue
            if self.field_count(recipient.id, FieldKind.SIGNATURE) == 0:
                raise ValidationError(
                    message=f"Signer {recipient.name or recipient.id} has no signature field",
                    field="fields",
                    details={"recipient_id": recipient.id},
                )

    @classmethod
    def build(
        cls,
        recipients: Iterable[dict],
        fields: Iterable[dict],
    ) -> "Roster":
        """Build a roster from plain request dicts, preserving client ids.

        Each recipient dict carries ``id``, ``name``, ``emails`` and ``role``;
        each field dict carries ``id``, ``kind``, ``x``, ``y`` and
        ``recipient_id``.
        """
        roster = cls()
        for item in recipients:
            recipient = roster.add_recipient(
                name=item.get("name"),
                role=item.get("role", RecipientRole.SIGNER),
                recipient_id=item.get("id"),
            )
            for email in item.get("emails", []):
                roster.add_email(recipient.id, email)
        for item in fields:
            try:
                roster.place_field(
                    recipient_id=item["recipient_id"],
                    kind=item["kind"],
                    x=item["x"],
                    y=item["y"],
                    field_id=item.get("id"),
                )
            except ResourceNotFoundError as e:
                raise ValidationError(
                    message=f"Field references unknown recipient: {item['recipient_id']}",
                    field="fields",
                ) from e
        return roster
