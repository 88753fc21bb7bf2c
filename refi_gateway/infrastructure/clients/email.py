"""Rate alert email client (Resend) with exponential backoff retry logic"""

import asyncio
import logging
import httpx
from refi_gateway.config import settings
from refi_gateway.infrastructure.database.repositories import hash_email
from refi_gateway.infrastructure.observability.metrics import email_failure_counter
from refi_gateway.utils.money import format_percent

logger = logging.getLogger(__name__)


def build_alert_subject(current_rate: float) -> str:
    return f"Mortgage rates hit {format_percent(current_rate)}%: your refinance alert triggered"


def build_alert_html(alert_id: str, trigger_rate: float, current_rate: float, base_url: str) -> str:
    """Alert email body with a link back to the calculator and an unsubscribe link"""
    trigger_display = format_percent(trigger_rate)
    current_display = format_percent(current_rate)
    unsubscribe_url = f"{base_url}/unsubscribe?token={alert_id}"

    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8" /></head>
<body style="font-family:system-ui,sans-serif;background:#f9fafb;">
  <div style="max-width:480px;margin:40px auto;background:#fff;border:1px solid #e5e7eb;">
    <h1 style="font-size:20px;color:#15803d;">Rates dropped to your target</h1>
    <p>30-year rates are now at <strong>{current_display}%</strong>,
       at or below your alert threshold of <strong>{trigger_display}%</strong>.</p>
    <p>Based on your loan details, this is the point where refinancing could start
       saving you money. Run a fresh calculation to confirm.</p>
    <p><a href="{base_url}">Check My Numbers</a></p>
    <p style="font-size:12px;color:#9ca3af;">This is a one-time rate alert.
       <a href="{unsubscribe_url}">Unsubscribe from rate alerts</a></p>
  </div>
</body>
</html>"""


class EmailClient:
    """Client for sending alert emails through the Resend API"""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        from_email: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.api_url = api_url or settings.resend_api_url
        self.from_email = from_email or settings.from_email
        self.max_retries = settings.email_max_retries
        self.backoff_base = settings.email_backoff_base
        self.transport = transport

    @property
    def dry_run(self) -> bool:
        return not self.api_key

    async def send(self, to: str, subject: str, html: str) -> bool:
        """
        Send one email with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s (base * 2^attempt)
        - Retries on 5xx errors and network failures; 4xx and malformed requests fail immediately
        - Dry-run (no API key) logs and reports success without sending

        Returns:
            True when delivered (or dry-run), False after the final failure
        """
        if self.dry_run:
            logger.info(
                "Dry run: alert email not sent",
                extra={"step": "send_email", "email_hash": hash_email(to), "subject": subject},
            )
            return True

        attempt = 0
        async with httpx.AsyncClient(transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    response = await client.post(
                        self.api_url,
                        headers={"Authorization": f"Bearer {self.api_key}"},
                        json={"from": self.from_email, "to": to, "subject": subject, "html": html},
                        timeout=settings.http_timeout_seconds,
                    )
                    response.raise_for_status()
                    return True

                except httpx.HTTPStatusError as e:
                    email_failure_counter.inc()
                    status = e.response.status_code
                    logger.error(
                        "Resend rejected alert email",
                        extra={"step": "send_email", "email_hash": hash_email(to), "status": status, "body": e.response.text},
                    )
                    if status < 500:
                        return False
                    attempt += 1

                except httpx.RequestError as e:
                    email_failure_counter.inc()
                    logger.error(
                        "Resend request failed",
                        extra={"step": "send_email", "email_hash": hash_email(to), "error": str(e)},
                    )
                    attempt += 1

                except (httpx.HTTPError, httpx.InvalidURL) as e:
                    email_failure_counter.inc()
                    logger.error(
                        "Resend request could not be made",
                        extra={"step": "send_email", "email_hash": hash_email(to), "error": str(e)},
                    )
                    return False

                if attempt < self.max_retries:
                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)

        return False
