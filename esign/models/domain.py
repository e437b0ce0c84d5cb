"""
Core domain types shared by the roster, the coordinate mapper and dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class FieldKind(str, Enum):
    SIGNATURE = "signature"
    INITIAL = "initial"
    DATE = "date"


class RecipientRole(str, Enum):
    SIGNER = "signer"
    REVIEWER = "reviewer"
    CC = "cc"


@dataclass(slots=True)
class Recipient:
    """A signing party; may be reachable at several addresses."""

    id: str
    name: Optional[str] = None
    emails: list[str] = field(default_factory=list)
    role: RecipientRole = RecipientRole.SIGNER


@dataclass(slots=True)
class FieldPlacement:
    """A field marker in preview-surface pixels, bound to one recipient."""

    id: str
    kind: FieldKind
    x: float
    y: float
    recipient_id: str


@dataclass(frozen=True, slots=True)
class PageCoordinate:
    """A placement restated in output-page units (millimetres)."""

    field_id: str
    recipient_id: str
    kind: FieldKind
    page_number: int
    x: float
    y: float
    width: float
    height: float
