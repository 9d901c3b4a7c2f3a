"""Forwarding of out-of-scope requests to a human agent (Twilio SMS)."""

from __future__ import annotations

import asyncio
from typing import Any

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from hospital_match.config import Settings
from hospital_match.core.logging import get_logger

logger = get_logger(__name__)

HANDOFF_SMS_TEMPLATE = 'Hospital assistant forwarded an out-of-scope request: "{text}"'


class HumanHandoffNotifier:
    """Forwards requests the assistant cannot handle to a human agent.

    An SMS goes out through Twilio when the account sid, auth token, sender
    and recipient numbers are all configured. Otherwise the request is only
    logged. Delivery failures are logged and never reach the caller.
    """

    def __init__(self, settings: Settings, client: Any | None = None):
        self.from_number = settings.twilio_from_number
        self.to_number = settings.twilio_notify_number
        sid = settings.twilio_account_sid
        token = settings.twilio_auth_token
        configured = all((sid, token, self.from_number, self.to_number))
        if configured and client is None:
            client = Client(sid, token)
        self._client = client if configured else None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def notify(self, session_id: str, text: str) -> None:
        logger.warning("Forwarding out-of-scope request (session=%s): %r", session_id, text)
        if self._client is None:
            return

        try:
            # The Twilio REST client is blocking.
            message = await asyncio.to_thread(
                self._client.messages.create,
                body=HANDOFF_SMS_TEMPLATE.format(text=text),
                from_=self.from_number,
                to=self.to_number,
            )
        except (TwilioException, OSError) as exc:
            logger.error("Human handoff SMS failed (session=%s): %s", session_id, exc)
            return
        logger.info("Human handoff SMS sent (session=%s, sid=%s)", session_id, message.sid)
