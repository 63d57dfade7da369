import logging
from typing import Optional

import requests
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from app.application.maintenance import DailySummary, MaintenanceJobs, PurgeReport
from app.application.order_intake import utc_timestamp
from app.core.config import Settings
from app.core.errors import UpstreamError
from app.interfaces.dependencies import get_maintenance, get_settings, require_cron_secret

router = APIRouter(dependencies=[Depends(require_cron_secret)])
logger = logging.getLogger(__name__)

CALLBACK_TIMEOUT = 30


class SummaryRequest(BaseModel):
    date: Optional[str] = None


def purge_response(report: PurgeReport, count_key: str) -> dict:
    return {
        "success": True,
        "message": report.message,
        count_key: report.deleted_count,
        "failedCount": report.failed_count,
        "cutoffDate": report.cutoff_date,
        "results": [result.model_dump(exclude_none=True) for result in report.results],
        "timestamp": report.timestamp,
    }


def summary_response(summary: DailySummary) -> dict:
    if summary.order_count == 0:
        message = "Daily summary sent (no orders)"
    else:
        message = "Daily summary sent successfully"
    return {
        "success": True,
        "message": message,
        "orderCount": summary.order_count,
        "totalRevenue": float(summary.total_revenue),
        "cashOrders": summary.cash_orders,
        "cardOrders": summary.card_orders,
        "date": summary.date,
        "messageId": summary.message_id,
    }


@router.api_route("/cron/cleanup-orders", methods=["GET", "POST"])
def cleanup_orders(jobs: MaintenanceJobs = Depends(get_maintenance)):
    logger.info("⏰ Running scheduled order cleanup...")
    return purge_response(jobs.cleanup_orders(), "deletedCount")


@router.api_route("/cron/archive-orders", methods=["GET", "POST"])
def archive_orders(jobs: MaintenanceJobs = Depends(get_maintenance)):
    logger.info("⏰ Running scheduled order archiving...")
    return purge_response(jobs.archive_orders(), "archivedCount")


@router.api_route("/cron/cleanup-test-orders", methods=["GET", "POST"])
def cleanup_test_orders(jobs: MaintenanceJobs = Depends(get_maintenance)):
    logger.info("🧪 Starting test order cleanup...")
    return purge_response(jobs.cleanup_test_orders(), "deletedCount")


@router.api_route("/cron/daily-summary", methods=["GET", "POST"])
def trigger_daily_summary(
    request: Request,
    jobs: MaintenanceJobs = Depends(get_maintenance),
    settings: Settings = Depends(get_settings),
):
    """
    Scheduler entry point. With PUBLIC_BASE_URL set the summary is computed
    by POSTing to the deployed /daily-summary; otherwise it runs in-process.
    """
    logger.info("⏰ Running scheduled daily summary...")
    today = jobs.clock().date().isoformat()

    if settings.PUBLIC_BASE_URL:
        url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/daily-summary"
        headers = {}
        if request.headers.get("authorization"):
            headers["Authorization"] = request.headers["authorization"]
        try:
            resp = requests.post(url, json={"date": today}, headers=headers, timeout=CALLBACK_TIMEOUT)
            resp.raise_for_status()
            result = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"❌ Daily summary callback failed: {e}")
            raise UpstreamError("Failed to send daily summary") from e
    else:
        result = summary_response(jobs.daily_summary(today))

    logger.info(f"✅ Daily summary completed: {result}")
    return {
        "success": True,
        "message": "Daily summary sent successfully",
        "data": result,
        "timestamp": utc_timestamp(jobs.clock()),
    }


@router.post("/daily-summary")
def daily_summary(payload: Optional[SummaryRequest] = None, jobs: MaintenanceJobs = Depends(get_maintenance)):
    target = payload.date if payload else None
    return summary_response(jobs.daily_summary(target))
