"""
Validation of the raw fetch-questions input event.

The event arrives as an untyped dictionary from the step that looked up the
session. Checks run in a fixed order and the first failure is reported, so a
given malformed event always produces the same single error message.
"""

import logging
import time
from typing import Any, Dict, Optional

from fetch_questions.errors import SessionItemError, ValidationError
from fetch_questions.models import FetchQuestionInputs

logger = logging.getLogger(__name__)

# Attributes every session item must carry, in the order they are checked
SESSION_ITEM_FIELDS = (
    "sessionId",
    "expiryDate",
    "clientIpAddress",
    "redirectUri",
    "clientSessionId",
    "createdDate",
    "clientId",
    "subject",
    "persistentSessionId",
    "attemptCount",
    "state",
)


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _nested_value(container: Any, key: str) -> Optional[Any]:
    """Read ``container[key]["value"]``, tolerating missing levels."""
    if not isinstance(container, dict):
        return None
    entry = container.get(key)
    if not isinstance(entry, dict):
        return None
    return entry.get("value")


def validate_session_item(session_item: Any) -> int:
    """
    Check the session item and return the session expiry.

    Raises:
        ValidationError: if the session item is absent
        SessionItemError: if the item is missing an attribute, the expiry
            is not a positive integer or the session has already expired
    """
    if session_item is None:
        raise ValidationError("Session item was not provided")

    item = session_item.get("Item") if isinstance(session_item, dict) else None
    if not isinstance(item, dict):
        raise SessionItemError("Session item missing Item")

    for name in SESSION_ITEM_FIELDS:
        if not _present(item.get(name)):
            raise SessionItemError(f"Session item missing {name}")

    expiry = item["expiryDate"]
    raw_expiry = expiry.get("N") if isinstance(expiry, dict) else expiry
    try:
        session_ttl = int(raw_expiry)
    except (TypeError, ValueError, OverflowError):
        raise SessionItemError("Session item expiryDate is not a valid expiry")
    if session_ttl <= 0:
        raise SessionItemError("Session item expiryDate is not a valid expiry")
    # Saved questions expire with the session, so an expired session cannot be resumed
    if session_ttl <= time.time():
        raise SessionItemError("Session item has expired")

    return session_ttl


def validate_input_event(event: Optional[Dict[str, Any]]) -> FetchQuestionInputs:
    """
    Turn a raw input event into FetchQuestionInputs.

    Raises:
        ValidationError: naming the first missing or invalid field
    """
    if not event or not isinstance(event, dict):
        raise ValidationError("input event is empty")

    session_id = event.get("sessionId")
    if not _present(session_id):
        raise ValidationError("sessionId was not provided")

    session_item = event.get("sessionItem")
    session_ttl = validate_session_item(session_item)

    parameters = event.get("parameters")
    if not parameters:
        raise ValidationError("event parameters not found")

    questions_url = _nested_value(parameters, "url")
    if not _present(questions_url):
        raise ValidationError("questionsUrl was not provided")

    user_agent = _nested_value(parameters, "userAgent")
    if not _present(user_agent):
        raise ValidationError("userAgent was not provided")

    bearer_token = _nested_value(event, "bearerToken")
    if not _present(bearer_token):
        raise ValidationError("bearerToken was not provided")

    person_identity_item = event.get("personIdentityItem")
    if not person_identity_item:
        raise ValidationError("personIdentityItem not found")

    nino = person_identity_item.get("nino") if isinstance(person_identity_item, dict) else None
    if not _present(nino):
        raise ValidationError("nino was not provided")

    inputs = FetchQuestionInputs(
        session_id=session_id,
        session_ttl=session_ttl,
        questions_url=questions_url,
        user_agent=user_agent,
        bearer_token=bearer_token,
        nino=nino,
        session_item=session_item
    )
    logger.debug(f"Validated input event for session {session_id}")
    return inputs
