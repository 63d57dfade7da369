import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from app.application.availability import SlotAvailabilityService
from app.application.maintenance import MaintenanceJobs
from app.application.order_intake import OrderIntakeService
from app.core.config import Settings, get_settings
from app.core.errors import ConfigurationError, PaymentDeclinedError, StorefrontError
from app.infrastructure.notification_service import TwilioNotificationService
from app.infrastructure.payment_service import SquarePaymentGateway
from app.infrastructure.repositories.order_repository import SheetsOrderRepository
from app.infrastructure.sheets_client import SheetsRowStore
from app.interfaces import cron_api, notifications_api, orders_api, payment_api, storefront
from app.interfaces.INotificationSender import INotificationSender
from app.interfaces.IOrderRepository import IOrderRepository
from app.interfaces.IPaymentGateway import IPaymentGateway

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    order_repo: Optional[IOrderRepository] = None,
    notifier: Optional[INotificationSender] = None,
    payments: Optional[IPaymentGateway] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title=settings.PROJECT_NAME)

    # ---------------------------------------------------------
    # COMPOSITION ROOT
    # ---------------------------------------------------------
    order_repo = order_repo or SheetsOrderRepository(SheetsRowStore(settings), settings)
    notifier = notifier or TwilioNotificationService(settings)
    payments = payments or SquarePaymentGateway(settings)

    app.state.settings = settings
    app.state.notifier = notifier
    app.state.payments = payments
    app.state.availability = SlotAvailabilityService(order_repo)
    app.state.order_intake = OrderIntakeService(order_repo, notifier, settings, clock=clock)
    app.state.maintenance = MaintenanceJobs(order_repo, notifier, settings, clock=clock)

    logger.info(f"✅ {settings.PROJECT_NAME} ready. Credentials: {settings.credential_status()}")

    register_error_handlers(app)

    app.include_router(storefront.router)
    app.include_router(orders_api.router)
    app.include_router(payment_api.router)
    app.include_router(notifications_api.router)
    app.include_router(cron_api.router)

    @app.get("/health")
    def health_check():
        return {"status": "active", "system": settings.PROJECT_NAME, "credentials": settings.credential_status()}

    return app


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        if isinstance(exc, ConfigurationError):
            logger.error(f"❌ Configuration error on {request.url.path}: missing {exc.missing or 'credentials'}")
        elif exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path} failed: {exc.detail}")

        body = {"success": False, "message": exc.detail}
        if isinstance(exc, PaymentDeclinedError) and exc.errors:
            body["details"] = exc.errors
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning(f"⚠️ Malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"success": False, "message": "Invalid request body"})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


def cli():
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)


app = create_app()
