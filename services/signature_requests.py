"""Create a signature request end to end and dispatch its invitations."""

import asyncio
import base64
import binascii
import logging
import re
import time
import uuid

from api.schemas import SignatureRequestCreate, SignatureRequestResponse
from esign.core.config import MAX_CAPTURE_SIZE_MB
from esign.core.exceptions import BaseError, StageError, ValidationError
from esign.database.repository import SignatureRepository
from esign.dispatch.report import DispatchReport
from esign.dispatch.sequencer import DispatchRecipient, DispatchSequencer
from esign.models.dto import SignatureRequestPayload
from esign.models.roster import Roster
from esign.placement.coordinates import A4, PageLayout, Size, map_fields_to_page
from esign.placement.page_renderer import open_capture, render_page_pdf
from services.s3_client import S3Client

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._ -]+")


def document_file_name(title: str, document_name: str | None = None) -> str:
    """Object-store friendly ``<name>.pdf`` derived from the document name or title."""
    base = (document_name or title or "document").strip()
    if base.lower().endswith(".pdf"):
        base = base[:-4]
    base = _UNSAFE_NAME_CHARS.sub("", base).strip(" .") or "document"
    return f"{base.replace(' ', '_')}.pdf"


def document_object_key(request_id: str, file_name: str) -> str:
    return f"signature-requests/{request_id}/{file_name}"


def decode_capture(capture_base64: str) -> bytes:
    """Decode the base64 capture, accepting an optional ``data:`` URL prefix.

    Raises:
        ValidationError: Not base64 or larger than the allowed size
    """
    data = capture_base64
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(
            message="Capture is not valid base64", field="capture_base64"
        ) from e

    max_bytes = MAX_CAPTURE_SIZE_MB * 1024 * 1024
    if len(raw) > max_bytes:
        raise ValidationError(
            message=f"Capture exceeds {MAX_CAPTURE_SIZE_MB} MB",
            field="capture_base64",
        )
    return raw


def build_response(
    request_id: str, report: DispatchReport, extra_errors: list[str] | None = None
) -> SignatureRequestResponse:
    errors = list(report.errors) + list(extra_errors or [])
    return SignatureRequestResponse(
        request_id=request_id,
        success=report.success and not extra_errors,
        sent_count=report.sent_count,
        attempted_count=report.attempted,
        sent_emails=list(report.sent_emails),
        errors=errors,
        message=report.summary(),
    )


class SignatureRequestService:
    """Runs one signature request through rendering, storage, persistence and dispatch."""

    def __init__(
        self,
        repository: SignatureRepository,
        storage: S3Client,
        sequencer: DispatchSequencer,
    ):
        self.repository = repository
        self.storage = storage
        self.sequencer = sequencer

    async def create(self, body: SignatureRequestCreate) -> SignatureRequestResponse:
        """
        Validate, render, store, persist and dispatch a signature request.

        Args:
            body: Validated request payload

        Returns:
            SignatureRequestResponse with the dispatch report

        Raises:
            ValidationError: Roster or capture is not acceptable
            StageError: Rendering, storage or persistence failed for the whole run
        """
        start = time.perf_counter()
        request_id = str(uuid.uuid4())
        log_extra = {"request_id": request_id}

        roster = Roster.build(
            recipients=[r.model_dump() for r in body.recipients],
            fields=[f.model_dump() for f in body.fields],
        )
        roster.validate_ready(body.title)

        file_name = document_file_name(body.title, body.document_name)
        payload = SignatureRequestPayload(
            title=body.title.strip(),
            message=body.message,
            sign_in_order=body.sign_in_order,
            document_name=file_name,
            sender_name=body.sender_name,
            sender_email=str(body.sender_email),
        )

        capture, layout = await self._decode(body, roster)

        logger.info(
            "Mapped %d fields for %d recipients",
            len(layout.coordinates),
            len(roster.recipients),
            extra=log_extra,
        )

        pdf_bytes = await self._render(capture, layout, request_id)
        document_url = await self._upload(request_id, file_name, pdf_bytes)

        try:
            created = await self.repository.create_request(
                request_id=request_id,
                payload=payload,
                document_url=document_url,
                recipients=roster.recipients,
                coordinates=layout.coordinates,
            )
        except BaseError:
            raise
        except Exception as e:
            raise StageError("persistence", str(e)) from e

        dispatch_recipients = [
            DispatchRecipient(created.recipient_ids[r.id], list(r.emails))
            for r in roster.recipients
        ]
        report = await self.sequencer.dispatch(
            recipients=dispatch_recipients,
            request=payload,
            pdf_url=document_url,
            request_id=request_id,
        )

        extra_errors: list[str] = []
        try:
            await self.repository.store_tokens(report.records)
        except Exception as e:
            logger.error(
                f"Failed to store signing tokens: {e}",
                extra={**log_extra, "stage": "persistence"},
                exc_info=True,
            )
            extra_errors.append(f"Signing links could not be stored: {e}")

        logger.info(
            "Signature request processed",
            extra={
                **log_extra,
                "sent_count": report.sent_count,
                "attempted_count": report.attempted,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return build_response(request_id, report, extra_errors)

    async def _decode(self, body: SignatureRequestCreate, roster: Roster):
        def work():
            capture = open_capture(decode_capture(body.capture_base64))
            layout = map_fields_to_page(
                roster.fields,
                surface=Size(body.surface.width, body.surface.height),
                capture=Size(capture.width, capture.height),
            )
            return capture, layout

        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, work)

    async def _render(self, capture, layout: PageLayout, request_id: str) -> bytes:
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(
                None, lambda: render_page_pdf(capture, layout.fit, A4)
            )
        except Exception as e:
            logger.error(
                f"Page rendering failed: {e}",
                extra={"request_id": request_id, "stage": "rendering"},
            )
            raise StageError("rendering", str(e)) from e

    async def _upload(self, request_id: str, file_name: str, data: bytes) -> str:
        object_key = document_object_key(request_id, file_name)
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(
                None, lambda: self.storage.upload_pdf(object_key, data)
            )
        except Exception as e:
            logger.error(
                f"Document upload failed: {e}",
                extra={"request_id": request_id, "stage": "storage"},
            )
            raise StageError("storage", str(e)) from e
