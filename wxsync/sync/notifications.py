"""New-weather notifications, throttled to one per rolling day."""

import logging
from typing import Protocol

import httpx

from wxsync import dates
from wxsync.errors import NotificationError
from wxsync.models.forecast import ForecastBatch, ForecastDay
from wxsync.preferences import Preferences

logger = logging.getLogger(__name__)


class NotificationGate:
    def __init__(self, preferences: Preferences):
        self.preferences = preferences

    def should_notify(self, now_ms: int) -> bool:
        if not self.preferences.notifications_enabled():
            return False
        elapsed = now_ms - self.preferences.last_notification_ms()
        return elapsed >= dates.DAY_IN_MILLIS

    def record_notified(self, now_ms: int) -> None:
        self.preferences.set_last_notification_ms(now_ms)


def describe_condition(condition_id: int) -> str:
    """Coarse description for an OpenWeatherMap condition id."""
    if condition_id == 800:
        return "Clear"
    group = condition_id // 100
    return {
        2: "Storm",
        3: "Drizzle",
        5: "Rain",
        6: "Snow",
        7: "Fog",
        8: "Clouds",
        9: "Extreme",
    }.get(group, "Unknown")


def format_notification(today: ForecastDay) -> str:
    return (
        f"Forecast: {describe_condition(today.condition_id)} - "
        f"High {today.max_temp:.0f}° Low {today.min_temp:.0f}°"
    )


class Notifier(Protocol):
    def notify_new_weather(self, today: ForecastDay, batch: ForecastBatch) -> None: ...


class LogNotifier:
    def notify_new_weather(self, today: ForecastDay, batch: ForecastBatch) -> None:
        logger.info("%s (%s)", format_notification(today), batch.city_name or "?")


class WebhookNotifier:
    """POSTs a JSON summary of today's forecast to a webhook URL."""

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def notify_new_weather(self, today: ForecastDay, batch: ForecastBatch) -> None:
        payload = {
            "text": format_notification(today),
            "city": batch.city_name,
            "date": dates.to_date_string(today.date),
            "condition_id": today.condition_id,
            "max_temp": today.max_temp,
            "min_temp": today.min_temp,
        }
        try:
            resp = httpx.post(self.webhook_url, json=payload, timeout=self.timeout)
        except httpx.RequestError as e:
            raise NotificationError(f"webhook request failed: {e}") from e
        if resp.status_code >= 400:
            raise NotificationError(f"webhook returned HTTP {resp.status_code}")
