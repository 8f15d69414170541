"""
Twilio SMS transport and webhook signature check.

TwilioGateway.send() never raises: every outcome comes back as a
SendResult so callers can record the delivery status.
"""
import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from backend.config import settings
from backend.services.phone import to_e164

logger = logging.getLogger("leadline")

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"


@dataclass
class SendResult:
    success: bool
    message_sid: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None


class TwilioGateway:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 15,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout

    def send(self, to: str, body: str) -> SendResult:
        if not self.account_sid or not self.auth_token:
            return SendResult(
                success=False,
                error="Missing required Twilio environment variables: "
                "TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN",
            )
        if not self.from_number:
            return SendResult(
                success=False,
                error="Missing required Twilio environment variable: TWILIO_PHONE_NUMBER",
            )

        url = TWILIO_MESSAGES_URL.format(account_sid=self.account_sid)
        data = {"From": self.from_number, "To": to_e164(to), "Body": body}
        try:
            resp = requests.post(
                url, data=data, auth=(self.account_sid, self.auth_token), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Twilio SMS error: {e}")
            return SendResult(success=False, error=str(e))

        try:
            payload = resp.json()
        except ValueError:
            payload = {}

        if resp.status_code >= 400:
            error = payload.get("message") or f"HTTP {resp.status_code}: {resp.text[:200]}"
            logger.error(f"Twilio rejected message to {data['To']}: {error}")
            return SendResult(success=False, error=error)

        return SendResult(
            success=True,
            message_sid=payload.get("sid"),
            status=payload.get("status"),
        )


def get_sms_gateway() -> TwilioGateway:
    """FastAPI dependency returning a gateway configured from settings."""
    return TwilioGateway(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_phone_number,
        timeout=settings.sms_timeout_seconds,
    )


def compute_twilio_signature(auth_token: str, url: str, params: dict[str, str]) -> str:
    """HMAC-SHA1 of the URL followed by each sorted param name and value, base64 encoded."""
    data = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), data.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def validate_twilio_signature(
    auth_token: str, signature: str, url: str, params: dict[str, str]
) -> bool:
    if not auth_token:
        logger.warning("TWILIO_AUTH_TOKEN not set - skipping webhook validation")
        return True
    expected = compute_twilio_signature(auth_token, url, params)
    return hmac.compare_digest(expected, signature or "")
