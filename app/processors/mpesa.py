import base64
import logging
from datetime import datetime
from typing import Dict, Any, Optional

import httpx

from app.config import Settings
from app.errors import ConfigurationError, UpstreamError
from app.processors.base import BaseProcessor

logger = logging.getLogger(__name__)


def stk_timestamp(now: Optional[datetime] = None) -> str:
    """Daraja timestamp format: YYYYMMDDHHMMSS."""
    return (now or datetime.now()).strftime("%Y%m%d%H%M%S")


def stk_password(shortcode: str, passkey: str, timestamp: str) -> str:
    return base64.b64encode(f"{shortcode}{passkey}{timestamp}".encode()).decode()


class MpesaProcessor(BaseProcessor):
    """
    Safaricom Daraja STK Push client.

    Token: GET {base}/oauth/v1/generate?grant_type=client_credentials (Basic auth)
    Push:  POST {base}/mpesa/stkpush/v1/processrequest (Bearer token)
    Every call is bounded by MPESA_TIMEOUT_SECONDS; timeouts surface as UpstreamError.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    @property
    def processor_name(self) -> str:
        return "mpesa"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.MPESA_API_BASE_URL,
            timeout=self.settings.MPESA_TIMEOUT_SECONDS,
            transport=self._transport,
        )

    def _check_configured(self) -> None:
        missing = self.settings.missing_payment_settings()
        if missing:
            logger.error("M-Pesa configuration incomplete, missing: %s", ", ".join(missing))
            raise ConfigurationError("M-Pesa credentials not configured on server.")

    async def get_access_token(self, client: httpx.AsyncClient) -> str:
        try:
            resp = await client.get(
                "/oauth/v1/generate",
                params={"grant_type": "client_credentials"},
                auth=(self.settings.MPESA_CONSUMER_KEY, self.settings.MPESA_CONSUMER_SECRET),
            )
            resp.raise_for_status()
            token = resp.json().get("access_token")
        except (httpx.HTTPError, ValueError) as e:
            logger.error("M-Pesa token failure: %s", e)
            raise UpstreamError("Failed to get M-Pesa token") from e
        if not token:
            logger.error("M-Pesa token response carried no access_token")
            raise UpstreamError("Failed to get M-Pesa token")
        return token

    async def stk_push(
        self,
        phone: str,
        amount: int,
        callback_url: str,
        account_reference: str,
        description: str,
    ) -> Dict[str, Any]:
        self._check_configured()

        shortcode = self.settings.MPESA_SHORTCODE
        timestamp = stk_timestamp()
        payload = {
            "BusinessShortCode": shortcode,
            "Password": stk_password(shortcode, self.settings.MPESA_PASSKEY, timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": amount,
            "PartyA": phone,
            "PartyB": shortcode,
            "PhoneNumber": phone,
            "CallBackURL": callback_url,
            "AccountReference": account_reference,
            "TransactionDesc": description,
        }

        async with self._client() as client:
            token = await self.get_access_token(client)
            try:
                resp = await client.post(
                    "/mpesa/stkpush/v1/processrequest",
                    json=payload,
                    headers={"Authorization": f"Bearer {token}"},
                )
                resp.raise_for_status()
                return resp.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error("STK Push failure: %s", e)
                raise UpstreamError("Failed to initiate payment. Check M-Pesa API logs.") from e
