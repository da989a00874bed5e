from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from alarm_service.notification.base import NotificationError, NotificationEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmsGatewayConfig:
    """
    Configuration for the SMS notifications API.

    Parameters
    ----------
    url
        Notifications API endpoint.
    token
        Value of the ``X-TOKEN-AUTH`` header. Sending is refused without it.
    timeout_s
        HTTP request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    """

    url: str
    token: Optional[str] = None
    timeout_s: float = 10.0
    verify_tls: bool = True


class SmsGatewayNotifier:
    """
    Notification sender that delivers events as SMS via an HTTP gateway.

    The request body is ``{"recipients": "<comma-separated>", "message": ...}``.

    Notes
    -----
    - This class performs side effects (network I/O).
    - HTTP errors are surfaced via ``raise_for_status()``.
    """

    def __init__(self, cfg: SmsGatewayConfig):
        self._cfg = cfg

    def notify(self, event: NotificationEvent) -> None:
        """
        Send one SMS to all recipients of ``event``.

        Raises
        ------
        NotificationError
            If no token is configured or the event has no recipients.
        requests.HTTPError
            If the HTTP response status indicates an error.
        requests.RequestException
            For network-related errors.
        """
        if not self._cfg.token:
            raise NotificationError("SMS API token is not configured")
        if not event.recipients:
            raise NotificationError("No recipients provided for SMS notification")

        logger.info("Sending SMS notification to %d recipients", len(event.recipients))
        r = requests.post(
            self._cfg.url,
            json={"recipients": ",".join(event.recipients), "message": event.message},
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "X-TOKEN-AUTH": self._cfg.token,
            },
            timeout=self._cfg.timeout_s,
            verify=self._cfg.verify_tls,
        )
        r.raise_for_status()
        logger.info("SMS sent. Status: %s", r.status_code)
