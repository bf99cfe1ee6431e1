"""
Critical Item Alert Bridge

Hands the critical items of a freshly completed inspection to the hub's
notifier (which emails the administrators). Delivery is best effort: the
completion is already committed when the alert goes out, and a failed
delivery is logged and reported back, never raised.
"""

import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.schemas.inspection import CriticalItem, InspectionSummary

logger = logging.getLogger(__name__)

ALERT_FIELDS = {
    "id",
    "location_id",
    "department",
    "inspector_name",
    "inspection_date",
    "property_code",
    "property_name",
    "average_score",
}


class CriticalAlertBridge:
    """Bridge to the notifier webhook for critical inspection items."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    async def notify_critical_items(self, inspection: InspectionSummary, items: list[CriticalItem]) -> bool:
        """Post one alert for the inspection; True when the notifier accepted it."""
        if not items:
            return False
        if not self.is_configured:
            logger.info(f"[ALERTS] No notifier configured; {len(items)} critical items of {inspection.id} not sent")
            return False

        payload = {
            "inspection": inspection.model_dump(mode="json", include=ALERT_FIELDS),
            "critical_items": [item.model_dump(mode="json") for item in items],
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
            if response.status_code >= 300:
                logger.warning(f"[ALERTS] Notifier refused {inspection.id}: {response.status_code} {response.text}")
                return False
            logger.info(f"[ALERTS] Sent {len(items)} critical items of inspection {inspection.id}")
            return True
        except httpx.HTTPError as e:
            logger.error(f"[ALERTS] Delivery error for {inspection.id}: {e}")
            return False


def get_alert_bridge() -> CriticalAlertBridge:
    return CriticalAlertBridge(webhook_url=settings.CRITICAL_ALERT_WEBHOOK_URL)
