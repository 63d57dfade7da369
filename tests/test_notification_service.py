"""
Tests for the Twilio SMS sender, with the Twilio client patched out.
"""
from unittest.mock import MagicMock, patch

import pytest
from twilio.base.exceptions import TwilioRestException

from app.core.errors import ConfigurationError, UpstreamError
from app.infrastructure.notification_service import TwilioNotificationService


@pytest.fixture
def twilio_client():
    with patch("app.infrastructure.notification_service.Client") as client_cls:
        client = client_cls.return_value
        client.messages.create.return_value = MagicMock(sid="SM123", status="queued")
        yield client


class TestTwilioNotificationService:
    def test_sends_to_business_number_in_e164(self, settings, twilio_client):
        service = TwilioNotificationService(settings)
        sent = service.send("🍕 NEW ORDER RECEIVED!")

        assert sent == {"id": "SM123", "status": "queued"}
        twilio_client.messages.create.assert_called_once_with(
            from_="+16175550100", body="🍕 NEW ORDER RECEIVED!", to="+16175550199"
        )

    def test_explicit_numbers_override_defaults(self, settings, twilio_client):
        service = TwilioNotificationService(settings)
        service.send("hi", from_="(617) 555-0111", to="1-617-555-0122")
        kwargs = twilio_client.messages.create.call_args.kwargs
        assert kwargs["from_"] == "+16175550111"
        assert kwargs["to"] == "+16175550122"

    def test_provider_error_is_upstream(self, settings, twilio_client):
        twilio_client.messages.create.side_effect = TwilioRestException(400, "https://api.twilio.com", "bad number")
        service = TwilioNotificationService(settings)
        with pytest.raises(UpstreamError, match="Failed to send SMS"):
            service.send("hi")

    def test_disabled_without_credentials(self, settings, twilio_client):
        service = TwilioNotificationService(settings.model_copy(update={"TWILIO_AUTH_TOKEN": None}))
        assert not service.enabled
        with pytest.raises(ConfigurationError) as exc_info:
            service.send("hi")
        assert exc_info.value.missing == ["TWILIO_AUTH_TOKEN"]
        twilio_client.messages.create.assert_not_called()

    def test_missing_business_number(self, settings, twilio_client):
        service = TwilioNotificationService(settings.model_copy(update={"BUSINESS_PHONE_NUMBER": None}))
        with pytest.raises(ConfigurationError) as exc_info:
            service.send("hi")
        assert exc_info.value.missing == ["BUSINESS_PHONE_NUMBER"]
