"""
Payment provider API client
Issues invoices and reads their status over the provider's REST API
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
import structlog
from dateutil import parser as date_parser

from estimatekit.config import Settings
from estimatekit.domain.collaborators import InvoiceProvider, InvoiceRequest, InvoiceResponse
from estimatekit.domain.entities import PaymentStatus
from estimatekit.domain.errors import ExternalServiceError, ValidationError

logger = structlog.get_logger(__name__)

CURRENCY = "RUB"

_STATUS_MAP = {
    "pending": PaymentStatus.PENDING,
    "waiting_for_capture": PaymentStatus.PENDING,
    "succeeded": PaymentStatus.SUCCEEDED,
    "canceled": PaymentStatus.CANCELED,
}


class HttpInvoiceProvider(InvoiceProvider):
    """Client for a YooKassa-style payments API"""

    def __init__(
        self,
        shop_id: str,
        secret_key: str,
        base_url: str,
        return_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not shop_id or not secret_key:
            raise ValidationError(
                "Payment provider credentials are not configured. "
                "Set ESTIMATEKIT_PROVIDER_SHOP_ID and ESTIMATEKIT_PROVIDER_SECRET_KEY."
            )
        self.shop_id = shop_id
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.return_url = return_url
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "HttpInvoiceProvider":
        return cls(
            shop_id=settings.provider_shop_id or "",
            secret_key=settings.provider_secret_key or "",
            base_url=settings.provider_base_url,
            return_url=settings.provider_return_url,
            timeout=settings.http_timeout,
            transport=transport,
        )

    def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        """Make an authenticated request and return the decoded JSON body"""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            with httpx.Client(
                timeout=self.timeout,
                auth=(self.shop_id, self.secret_key),
                transport=self.transport,
            ) as client:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "provider_api_error",
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            raise ExternalServiceError(
                f"Payment provider error: {exc.response.status_code} {exc.response.text[:200]}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("provider_request_failed", url=url, error=str(exc))
            raise ExternalServiceError(f"Payment provider request failed: {exc}") from exc

    @staticmethod
    def _to_response(data: Dict[str, Any]) -> InvoiceResponse:
        try:
            invoice_id = data["id"]
        except (KeyError, TypeError) as exc:
            raise ExternalServiceError("Payment provider response has no id") from exc
        status = _STATUS_MAP.get(data.get("status", "pending"), PaymentStatus.PENDING)
        confirmation = data.get("confirmation") or {}
        paid_at: Optional[datetime] = None
        if data.get("paid_at"):
            paid_at = date_parser.isoparse(data["paid_at"])
        return InvoiceResponse(
            invoice_id=invoice_id,
            status=status,
            payment_url=confirmation.get("confirmation_url"),
            payment_id=invoice_id if status is PaymentStatus.SUCCEEDED else None,
            paid_at=paid_at,
        )

    def build_payload(self, request: InvoiceRequest) -> Dict[str, Any]:
        """Translate an invoice request into the provider's JSON body"""
        payload: Dict[str, Any] = {
            "amount": {"value": f"{request.amount:.2f}", "currency": CURRENCY},
            "description": request.description[:128],
            "capture": True,
            "confirmation": {"type": "redirect", "return_url": self.return_url},
            "metadata": dict(request.metadata),
        }
        if request.customer:
            payload["receipt"] = {
                "customer": {k: v for k, v in request.customer.items() if v},
                "items": [
                    {
                        "description": line.description[:128],
                        "quantity": "1",
                        "amount": {"value": f"{line.amount:.2f}", "currency": CURRENCY},
                        "vat_code": 1,
                    }
                    for line in request.lines
                ],
            }
        return payload

    def create_invoice(self, request: InvoiceRequest) -> InvoiceResponse:
        data = self._request(
            "POST",
            "/payments",
            json=self.build_payload(request),
            headers={"Idempotence-Key": str(uuid.uuid4())},
        )
        response = self._to_response(data)
        logger.info("provider_invoice_issued", invoice_id=response.invoice_id)
        return response

    def get_status(self, invoice_id: str) -> InvoiceResponse:
        data = self._request("GET", f"/payments/{invoice_id}")
        return self._to_response(data)
