"""
Lightweight DTO models used as typed contracts between the dispatch core and
the delivery channel.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SignatureRequestPayload(BaseModel):
    """
    Shared description of the action every recipient is asked to take.
    """

    title: str
    message: str | None = None
    sign_in_order: bool = False
    document_name: str
    sender_name: str
    sender_email: str


class EmailTemplate(BaseModel):
    """
    Rendered subject and bodies for one signing invitation.
    """

    subject: str
    html_body: str
    text_body: str


class OutboundEmail(BaseModel):
    """
    Outbound notification request, serialised in the delivery function's
    camelCase wire format.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: str
    subject: str
    html_body: str = Field(..., alias="htmlBody")
    text_body: str = Field("", alias="textBody")
    pdf_url: str | None = Field(None, alias="pdfUrl")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class DeliveryReceipt(BaseModel):
    """
    Successful delivery acknowledgement.
    """

    message_id: str | None = None
