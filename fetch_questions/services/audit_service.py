"""
Audit events for the KBV credential issuer.

An audit event describes who was being verified (taken from the session
item) and what happened. Events are POSTed to the audit endpoint when one is
configured, otherwise written to the log.
"""

import json
import logging
import time
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from fetch_questions.config import AuditConfig, audit_config

logger = logging.getLogger(__name__)


class AuditEventType(str, Enum):
    THIN_FILE_ENCOUNTERED = "THIN_FILE_ENCOUNTERED"


def _attribute(item: Dict[str, Any], name: str) -> Optional[str]:
    """Unwrap a ``{"S": ...}`` / ``{"N": ...}`` session attribute."""
    value = item.get(name)
    if isinstance(value, dict):
        return value.get("S", value.get("N"))
    return value


class AuditService:

    def __init__(self,
                 config: Optional[AuditConfig] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.config = config or audit_config
        self.client = client or httpx.AsyncClient(timeout=self.config.timeout)

    def build_audit_event(self,
                          event_type: AuditEventType,
                          session_item: Dict[str, Any],
                          hmrc_iv_response: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        item = (session_item or {}).get("Item", {})
        now_ms = int(time.time() * 1000)

        event = {
            "event_name": f"{self.config.event_prefix}_{event_type.value}",
            "component_id": self.config.component_id,
            "timestamp": now_ms // 1000,
            "event_timestamp_ms": now_ms,
            "user": {
                "user_id": _attribute(item, "subject"),
                "ip_address": _attribute(item, "clientIpAddress"),
                "session_id": _attribute(item, "sessionId"),
                "persistent_session_id": _attribute(item, "persistentSessionId"),
                "govuk_signin_journey_id": _attribute(item, "clientSessionId"),
            }
        }
        if hmrc_iv_response is not None:
            event["extensions"] = {"hmrc_iv_response": hmrc_iv_response}
        return event

    async def send_audit_event(self,
                               event_type: AuditEventType,
                               session_item: Dict[str, Any],
                               hmrc_iv_response: Optional[Dict[str, Any]] = None) -> bool:
        """
        Send an audit event.

        Delivery failures are logged and reported through the return value;
        they never propagate to the caller.
        """
        event = self.build_audit_event(event_type, session_item, hmrc_iv_response)

        if not self.config.url:
            logger.info(f"Audit event: {json.dumps(event)}")
            return True

        try:
            response = await self.client.post(self.config.url, json=event)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send audit event {event['event_name']}: {e}")
            return False

        logger.info(f"Sent audit event {event['event_name']}")
        return True

    async def close(self):
        await self.client.aclose()
