"""Outbound email relay and push-notification request checks.

Email reports are delivered through the EmailJS REST endpoint.  Push delivery
itself belongs to an external service; only the request validation it expects
lives here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests

from .config import EMAIL_TIMEOUT_SECONDS, emailjs_settings
from .exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailReportSender:
    """Send template parameters to EmailJS."""

    def __init__(
        self,
        service_id: Optional[str] = None,
        template_id: Optional[str] = None,
        public_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = EMAIL_TIMEOUT_SECONDS,
    ):
        settings = emailjs_settings()
        self.service_id = service_id if service_id is not None else settings['service_id']
        self.template_id = template_id if template_id is not None else settings['template_id']
        self.public_key = public_key if public_key is not None else settings['public_key']
        self.api_url = api_url or settings['api_url']
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.service_id and self.template_id and self.public_key)

    def send(self, template_params: Mapping[str, Any]) -> Dict[str, Any]:
        if not self.configured:
            raise EmailDeliveryError('EmailJS configuration missing (service id, template id or public key)')

        payload = {
            'service_id': self.service_id,
            'template_id': self.template_id,
            'user_id': self.public_key,
            'template_params': dict(template_params),
        }
        logger.info("Sending email report to %s", template_params.get('to_email'))
        try:
            response = requests.post(
                self.api_url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("EmailJS error: %s", exc)
            raise EmailDeliveryError(str(exc)) from exc

        return {'status': 'success', 'data': response.text}


@dataclass(frozen=True)
class NotificationCheck:
    status: int
    message: str

    @property
    def ok(self) -> bool:
        return self.status < 400


def validate_notification_request(body: Optional[Mapping[str, Any]]) -> NotificationCheck:
    """Check a ``{token, title, body}`` push request before it is forwarded."""
    body = body or {}
    if not body.get('token') or not body.get('title') or not body.get('body'):
        return NotificationCheck(400, 'Missing token, title, or body')
    return NotificationCheck(200, 'Notification accepted')


def notification_message(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Message shape expected by the push delivery service."""
    return {
        'notification': {'title': body['title'], 'body': body['body']},
        'token': body['token'],
    }
