"""
Request-scoped access to the services built in the composition root
(app.main.create_app), plus the cron bearer-token guard.
"""
import hmac
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.availability import SlotAvailabilityService
from app.application.maintenance import MaintenanceJobs
from app.application.order_intake import OrderIntakeService
from app.core.config import Settings
from app.core.errors import AuthorizationError
from app.interfaces.INotificationSender import INotificationSender
from app.interfaces.IPaymentGateway import IPaymentGateway

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_availability(request: Request) -> SlotAvailabilityService:
    return request.app.state.availability


def get_order_intake(request: Request) -> OrderIntakeService:
    return request.app.state.order_intake


def get_maintenance(request: Request) -> MaintenanceJobs:
    return request.app.state.maintenance


def get_notifier(request: Request) -> INotificationSender:
    return request.app.state.notifier


def get_payments(request: Request) -> IPaymentGateway:
    return request.app.state.payments


def require_cron_secret(
    settings: Settings = Depends(get_settings),
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> None:
    """
    Scheduled-job guard. Without CRON_SECRET configured the jobs run
    unauthenticated; with it, only `Authorization: Bearer <secret>` passes.
    """
    secret = settings.cron_secret
    if not secret:
        return

    supplied = bearer.credentials if bearer else ""
    if not hmac.compare_digest(supplied.encode(), secret.encode()):
        logger.warning("⚠️ Rejected maintenance call with missing or wrong bearer token")
        raise AuthorizationError()
