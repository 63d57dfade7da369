import logging
from typing import Dict, Optional

import requests
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from app.core.config import TWILIO_CREDENTIALS, Settings
from app.core.errors import ConfigurationError, UpstreamError
from app.domain.formatting import normalize_phone
from app.interfaces.INotificationSender import INotificationSender

logger = logging.getLogger(__name__)


class TwilioNotificationService(INotificationSender):
    def __init__(self, settings: Settings):
        self.settings = settings
        self.client = None
        self.enabled = False

        # Only initialize if credentials exist in the environment
        if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            try:
                self.client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
                self.enabled = True
                logger.info("✅ NotificationService: Twilio Client Initialized")
            except TwilioException as e:
                logger.error(f"❌ Failed to initialize Twilio Client: {e}")
        else:
            logger.warning("⚠️ NotificationService: Twilio credentials missing. Notifications disabled.")

    def send(self, body: str, from_: Optional[str] = None, to: Optional[str] = None) -> Dict[str, str]:
        """Sends one SMS, by default from the Twilio number to the business number."""
        if not self.enabled:
            self.settings.require(*TWILIO_CREDENTIALS[:2])
            raise ConfigurationError("SMS service not configured")

        from_number = from_ or self.settings.TWILIO_PHONE_NUMBER
        to_number = to or self.settings.BUSINESS_PHONE_NUMBER
        if not from_number or not to_number:
            self.settings.require(*TWILIO_CREDENTIALS[2:])

        from_number = normalize_phone(from_number)
        to_number = normalize_phone(to_number)

        try:
            message = self.client.messages.create(from_=from_number, body=body, to=to_number)
        except (TwilioException, requests.RequestException) as e:
            logger.error(f"❌ Failed to send SMS to {to_number}: {e}")
            raise UpstreamError("Failed to send SMS") from e

        logger.info(f"✅ SMS sent to {to_number}: {message.sid} ({message.status})")
        return {"id": message.sid, "status": message.status}
