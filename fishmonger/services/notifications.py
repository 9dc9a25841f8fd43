"""Order-ready SMS notifications.

Synopsis:
`SmsGatewayNotifier` performs one send attempt against the HTTP SMS gateway and
records it in `SmsLog`. `NotificationDispatcher` runs sends off the request path
on a small thread pool, each worker inside its own app context.

Glossary:
- Notification request: Plain data (phone, message, order id) captured after commit.
- Attempt: One gateway call; every attempt leaves exactly one SmsLog row.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import requests

from ..extensions import db
from ..logging_config import redact_phone
from ..models import SmsLog
from ..utils.error_messages import ErrorMessages as EM
from ..utils.quantities import format_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationRequest:
    phone: str
    message: str
    order_id: Optional[str] = None


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: Optional[str] = None


def build_order_ready_message(customer_name: str, items: Iterable[Tuple[str, object, str]]) -> str:
    """Customer-facing text listing each (product name, quantity, unit)."""
    products_text = ", ".join(
        f"{name} ({format_quantity(quantity)} {unit})" for name, quantity, unit in items
    )
    return f"Bonjour {customer_name}, votre commande est prête : {products_text}. Merci !"


# --- SmsGatewayNotifier ---
# Purpose: Send one SMS through the configured gateway and log the attempt.
class SmsGatewayNotifier:
    def __init__(
        self,
        *,
        enabled: bool,
        gateway_url: Optional[str],
        api_key: Optional[str],
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.enabled = enabled
        self.gateway_url = (gateway_url or "").strip() or None
        self.api_key = (api_key or "").strip() or None
        self.timeout = timeout
        self.http = session or requests

    @classmethod
    def from_config(cls, config) -> "SmsGatewayNotifier":
        return cls(
            enabled=bool(config.get("SMS_ENABLED")),
            gateway_url=config.get("SMS_GATEWAY_URL"),
            api_key=config.get("SMS_GATEWAY_API_KEY"),
            timeout=float(config.get("SMS_TIMEOUT_SECONDS") or 10),
        )

    def notify(self, phone: Optional[str], message: str, order_id: Optional[str] = None) -> NotificationResult:
        if not self.enabled:
            logger.info("SMS disabled; would have notified %s for order %s", redact_phone(phone), order_id)
            self._log_attempt(phone, message, order_id, True, EM.SMS_DISABLED)
            return NotificationResult(success=True)

        if not self.gateway_url or not self.api_key:
            return self._fail(phone, message, order_id, EM.SMS_NOT_CONFIGURED)

        if not phone or not phone.strip():
            return self._fail(phone, message, order_id, EM.SMS_INVALID_PHONE)

        try:
            response = self.http.get(
                self.gateway_url,
                params={"phone": phone, "text": message, "apikey": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("SMS gateway request failed for order %s: %s", order_id, exc.__class__.__name__)
            return self._fail(phone, message, order_id, EM.SMS_SEND_FAILED.format(reason=exc.__class__.__name__))

        if not 200 <= response.status_code < 300:
            return self._fail(phone, message, order_id, EM.SMS_GATEWAY_STATUS.format(status=response.status_code))

        self._log_attempt(phone, message, order_id, True, None)
        logger.info("SMS sent to %s for order %s", redact_phone(phone), order_id)
        return NotificationResult(success=True)

    def _fail(self, phone, message, order_id, error: str) -> NotificationResult:
        logger.warning("SMS not sent for order %s: %s", order_id, error)
        self._log_attempt(phone, message, order_id, False, error)
        return NotificationResult(success=False, error=error)

    def _log_attempt(self, phone, message, order_id, success: bool, error: Optional[str]) -> None:
        # A logging failure must not turn into a failed notification
        try:
            db.session.add(SmsLog(
                telephone=(phone or "").strip(),
                message=message,
                order_id=order_id,
                success=success,
                error_message=error,
            ))
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.exception("Failed to record SMS attempt for order %s", order_id)


# --- NotificationDispatcher ---
# Purpose: Run notifier calls detached from the committing request.
class NotificationDispatcher:
    def __init__(self, app, notifier: SmsGatewayNotifier, *, asynchronous: bool = True, max_workers: int = 2):
        self.app = app
        self.notifier = notifier
        self.asynchronous = asynchronous
        self._executor = (
            ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="sms-notify")
            if asynchronous
            else None
        )

    def dispatch(self, request: NotificationRequest) -> Future:
        """Queue one send; the returned future never raises."""
        if self._executor is not None:
            return self._executor.submit(self._run, request)
        future: Future = Future()
        future.set_result(self._run(request))
        return future

    def send_now(self, request: NotificationRequest) -> NotificationResult:
        """Synchronous send on the caller's thread, used by the manual notify endpoint."""
        return self.notifier.notify(request.phone, request.message, request.order_id)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    def _run(self, request: NotificationRequest) -> NotificationResult:
        with self.app.app_context():
            try:
                return self.notifier.notify(request.phone, request.message, request.order_id)
            except Exception as exc:
                logger.exception("Notification dispatch failed for order %s", request.order_id)
                return NotificationResult(success=False, error=str(exc))
