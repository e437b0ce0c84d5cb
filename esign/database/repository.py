"""SQL access for signature requests, recipients, tokens and fields."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import asyncpg

from esign.core.config import STATUS_COMPLETED, STATUS_PENDING, STATUS_SIGNED
from esign.database.manager import DatabaseManager
from esign.dispatch.links import hash_token
from esign.dispatch.report import DispatchOutcome, DispatchRecord
from esign.models.domain import PageCoordinate, Recipient
from esign.models.dto import SignatureRequestPayload

logger = logging.getLogger(__name__)


INSERT_REQUEST_SQL = """
INSERT INTO signature_requests
    (id, title, message, sender_email, sender_name, document_url, status, sign_in_order)
VALUES ($1::uuid, $2, $3, $4, $5, $6, $7, $8)
"""

INSERT_RECIPIENT_SQL = """
INSERT INTO recipients
    (request_id, email, name, role, signing_order_index, status)
VALUES ($1::uuid, $2, $3, $4, $5, $6)
RETURNING id
"""

INSERT_FIELD_SQL = """
INSERT INTO signature_fields
    (request_id, recipient_id, type, page_number, x, y, width, height)
VALUES ($1::uuid, $2::uuid, $3, $4, $5, $6, $7, $8)
"""

INSERT_TOKEN_SQL = """
INSERT INTO recipient_tokens (recipient_id, email, token_hash)
VALUES ($1::uuid, $2, $3)
"""


@dataclass(frozen=True)
class CreatedRequest:
    request_id: str
    # client-side recipient id -> generated database id
    recipient_ids: dict[str, str]


class SignatureRepository:
    """Queries used by request creation and the signing flow."""

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def create_request(
        self,
        request_id: str,
        payload: SignatureRequestPayload,
        document_url: Optional[str],
        recipients: Sequence[Recipient],
        coordinates: Sequence[PageCoordinate],
    ) -> CreatedRequest:
        """Insert the request, its recipients and its fields atomically.

        Recipient rows are inserted one by one in signing order so that the
        generated ids can be matched back to the client ids used by fields.
        """
        recipient_ids: dict[str, str] = {}
        async with self.db.transaction() as conn:
            await conn.execute(
                INSERT_REQUEST_SQL,
                request_id,
                payload.title,
                payload.message,
                payload.sender_email,
                payload.sender_name,
                document_url,
                STATUS_PENDING,
                payload.sign_in_order,
            )

            for index, recipient in enumerate(recipients):
                db_id = await conn.fetchval(
                    INSERT_RECIPIENT_SQL,
                    request_id,
                    recipient.emails[0],
                    recipient.name,
                    recipient.role.value,
                    index if payload.sign_in_order else None,
                    STATUS_PENDING,
                )
                recipient_ids[recipient.id] = str(db_id)

            await conn.executemany(
                INSERT_FIELD_SQL,
                [
                    (
                        request_id,
                        recipient_ids[c.recipient_id],
                        c.kind.value,
                        c.page_number,
                        c.x,
                        c.y,
                        c.width,
                        c.height,
                    )
                    for c in coordinates
                ],
            )

        logger.info(
            "Signature request persisted: %d recipients, %d fields",
            len(recipient_ids),
            len(coordinates),
            extra={"request_id": request_id},
        )
        return CreatedRequest(request_id=request_id, recipient_ids=recipient_ids)

    async def store_tokens(self, records: Iterable[DispatchRecord]) -> int:
        """Persist hashes of tokens that were actually delivered."""
        rows = [
            (r.recipient_id, r.address, hash_token(r.token))
            for r in records
            if r.outcome is DispatchOutcome.SENT
        ]
        if not rows:
            return 0
        async with self.db.acquire() as conn:
            await conn.executemany(INSERT_TOKEN_SQL, rows)
        return len(rows)

    async def get_request(self, request_id: str) -> Optional[asyncpg.Record]:
        async with self.db.acquire() as conn:
            return await conn.fetchrow(
                "SELECT * FROM signature_requests WHERE id = $1::uuid", request_id
            )

    async def get_recipient(
        self, request_id: str, recipient_id: str
    ) -> Optional[asyncpg.Record]:
        async with self.db.acquire() as conn:
            return await conn.fetchrow(
                "SELECT * FROM recipients WHERE id = $1::uuid AND request_id = $2::uuid",
                recipient_id,
                request_id,
            )

    async def get_token_hashes(self, recipient_id: str) -> list[str]:
        async with self.db.acquire() as conn:
            rows = await conn.fetch(
                "SELECT token_hash FROM recipient_tokens WHERE recipient_id = $1::uuid",
                recipient_id,
            )
        return [row["token_hash"] for row in rows]

    async def list_fields(
        self, request_id: str, recipient_id: str
    ) -> list[asyncpg.Record]:
        async with self.db.acquire() as conn:
            return await conn.fetch(
                """
                SELECT * FROM signature_fields
                WHERE request_id = $1::uuid AND recipient_id = $2::uuid
                ORDER BY page_number, y, x
                """,
                request_id,
                recipient_id,
            )

    async def update_field_value(
        self, field_id: str, recipient_id: str, value: str
    ) -> Optional[asyncpg.Record]:
        """Set a field's value; returns None if the recipient does not own it."""
        async with self.db.acquire() as conn:
            return await conn.fetchrow(
                """
                UPDATE signature_fields
                SET value = $3, signed_at = NOW()
                WHERE id = $1::uuid AND recipient_id = $2::uuid
                RETURNING *
                """,
                field_id,
                recipient_id,
                value,
            )

    async def complete_recipient(self, request_id: str, recipient_id: str) -> bool:
        """Mark a recipient signed; complete the request once everyone has.

        Returns:
            True if this completion finished the whole request
        """
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                UPDATE recipients SET status = $3, signed_at = NOW()
                WHERE id = $1::uuid AND request_id = $2::uuid
                """,
                recipient_id,
                request_id,
                STATUS_SIGNED,
            )
            statuses = await conn.fetch(
                "SELECT status FROM recipients WHERE request_id = $1::uuid",
                request_id,
            )
            all_signed = all(row["status"] == STATUS_SIGNED for row in statuses)
            if all_signed:
                await conn.execute(
                    """
                    UPDATE signature_requests SET status = $2, updated_at = NOW()
                    WHERE id = $1::uuid
                    """,
                    request_id,
                    STATUS_COMPLETED,
                )
        return all_signed
