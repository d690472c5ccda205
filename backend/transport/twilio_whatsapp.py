# backend/transport/twilio_whatsapp.py
import logging
from typing import Optional
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from data.phone import whatsapp_address

logger = logging.getLogger(__name__)

class WhatsAppMessenger:
    """
    Outbound WhatsApp delivery through Twilio. send() is fire-and-forget:
    failures are logged and reported as False, never raised.
    """

    def __init__(self, client: Optional[Client], from_number: str, dry_run: bool = False):
        self.client = client
        self.from_address = whatsapp_address(from_number)
        self.dry_run = dry_run

    def send(self, to: str, body: str) -> bool:
        to_address = whatsapp_address(to)
        if not to_address:
            logger.error("Invalid WhatsApp destination %r", to)
            return False

        if self.dry_run or self.client is None:
            logger.info("[WHATSAPP DRY-RUN] to=%s body=%r", to_address, body)
            return True

        try:
            message = self.client.messages.create(from_=self.from_address, to=to_address, body=body)
            logger.info("WhatsApp message sent sid=%s to=%s", message.sid, to_address)
            return True
        except TwilioException as e:
            logger.error("Twilio send error to=%s: %s", to_address, e)
            return False
        except Exception:
            # network errors from the http client surface as plain exceptions
            logger.exception("Unexpected error sending WhatsApp to=%s", to_address)
            return False


def build_client(account_sid: str, auth_token: str) -> Optional[Client]:
    if not (account_sid and auth_token):
        return None
    return Client(account_sid, auth_token)
