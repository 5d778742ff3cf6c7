"""
Email notification through the Resend HTTP API.
"""

import asyncio
import html
import logging

import aiohttp

from ...core.interfaces import Notifier
from ...core.models.pipeline import Account


logger = logging.getLogger(__name__)

RESEND_ENDPOINT = "https://api.resend.com/emails"

_EMAIL_TEMPLATE = """<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>Your Brief is Ready</title></head>
  <body style="font-family: Arial, sans-serif; background-color: #f7f7f7; padding: 40px 20px;">
    <div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 12px; padding: 40px;">
      <h1 style="margin: 0 0 20px;">Your Brief is Ready!</h1>
      <p>Hi {name},</p>
      <p>Your content brief for <strong>"{topic}"</strong> has been generated.</p>
      <p><a href="{artifact_url}">Download PDF</a></p>
      <p><a href="{brief_url}">View in Dashboard</a></p>
      <p style="color: #64748B; font-size: 12px;">
        The PDF link will remain active for 30 days. You can also access this brief anytime from your dashboard.
      </p>
    </div>
  </body>
</html>
"""


class ResendEmailNotifier(Notifier):
    """
    Sends a "brief ready" email with download and dashboard links.
    """

    def __init__(
        self,
        api_key: str,
        from_email: str,
        app_url: str,
        timeout: int = 10
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.app_url = app_url.rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> 'ResendEmailNotifier':
        return cls(
            api_key=config.RESEND_API_KEY,
            from_email=config.RESEND_FROM_EMAIL,
            app_url=config.APP_URL
        )

    def build_payload(self, account: Account, brief_id: str, topic: str, artifact_url: str) -> dict:
        body = _EMAIL_TEMPLATE.format(
            name=html.escape(account.name or "there"),
            topic=html.escape(topic),
            artifact_url=html.escape(artifact_url, quote=True),
            brief_url=html.escape(f"{self.app_url}/brief/{brief_id}", quote=True)
        )
        return {
            "from": self.from_email,
            "to": [account.email],
            "subject": f'Your brief for "{topic}" is ready! 🎉',
            "html": body
        }

    async def notify(self, account: Account, brief_id: str, topic: str, artifact_url: str) -> bool:
        """
        Send the notification email.

        Returns:
            True when the provider accepted the message
        """
        if not self.api_key:
            logger.warning("RESEND_API_KEY not configured; skipping email")
            return False

        if not account.email:
            logger.warning(f"No email address for user {account.user_id}; skipping email")
            return False

        payload = self.build_payload(account, brief_id, topic, artifact_url)
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    RESEND_ENDPOINT,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status in (200, 201):
                        data = await response.json(content_type=None)
                        logger.info(f"Brief email sent to user {account.user_id}: {data.get('id')}")
                        return True
                    error_text = await response.text()
                    logger.warning(f"Email send failed: {response.status} - {error_text[:200]}")
                    return False

        except asyncio.TimeoutError:
            logger.warning(f"Email send timeout for user {account.user_id}")
            return False
