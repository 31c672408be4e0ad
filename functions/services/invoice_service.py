"""Invoice extraction service for SiteLedger.

Sends an invoice image or PDF to the model and validates the returned JSON
against InvoiceData.
"""

import base64
import json
from typing import Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import ErrorCode, RemoteCallError, ValidationError
from models.invoice import InvoiceData
from services.llm_service import LLMService

logger = structlog.get_logger()

SUPPORTED_MIME_TYPES = frozenset({
    "image/png",
    "image/jpeg",
    "image/webp",
    "application/pdf",
})

INVOICE_EXTRACTION_PROMPT = """Extract the following details from this invoice. Return JSON.

Use exactly this JSON schema:
{schema}

Required fields: vendor_name, total_amount, confidence_score, suggested_gl_account.
Use null for any other field that is not visible on the invoice.
Respond with valid JSON only. No markdown, no explanation."""


def _invoice_schema() -> str:
    return json.dumps(InvoiceData.model_json_schema()["properties"], indent=2)


class InvoiceExtractionService:
    """Service that turns an invoice image into structured InvoiceData."""

    def __init__(self, llm_service: LLMService):
        self.llm = llm_service

    async def extract(
        self,
        image: Union[bytes, str],
        mime_type: str
    ) -> Optional[InvoiceData]:
        """Extract invoice fields from an image.

        Args:
            image: Raw image bytes, or an already base64-encoded string.
            mime_type: Mime type of the image.

        Returns:
            InvoiceData, or None if the model returned nothing.

        Raises:
            ValidationError: If the input is empty or the mime type unsupported.
            RemoteCallError: If the model output is not a valid invoice.
        """
        if mime_type not in SUPPORTED_MIME_TYPES:
            raise ValidationError(
                f"Unsupported invoice file type: {mime_type}",
                field="mime_type",
                details={"supported": sorted(SUPPORTED_MIME_TYPES)}
            )
        if not image:
            raise ValidationError("Invoice image is empty", field="image")

        if isinstance(image, bytes):
            image_base64 = base64.b64encode(image).decode("ascii")
        else:
            image_base64 = image

        result = await self.llm.generate_json_from_image(
            INVOICE_EXTRACTION_PROMPT.format(schema=_invoice_schema()),
            image_base64,
            mime_type
        )

        content = result["content"]
        if content is None:
            logger.warning("invoice_extraction_empty", mime_type=mime_type)
            return None

        try:
            invoice = InvoiceData.model_validate(content)
        except PydanticValidationError as e:
            raise RemoteCallError(
                "Model returned invoice data that does not match the schema",
                code=ErrorCode.LLM_INVALID_RESPONSE,
                details={"errors": e.errors(include_url=False), "raw_content": content}
            ) from e

        logger.info(
            "invoice_extracted",
            vendor=invoice.vendor_name,
            confidence=invoice.confidence_score,
            tokens_used=result["tokens_used"]
        )
        return invoice
