"""
Shared fixtures for the fetch-questions tests
"""

import copy
import time

import pytest

SESSION_TTL = int(time.time()) + 7200

VALID_INPUT_EVENT = {
    "sessionId": "sessionId",
    "sessionItem": {
        "Item": {
            "expiryDate": {"N": str(SESSION_TTL)},
            "clientIpAddress": {"S": "127.0.0.1"},
            "redirectUri": {"S": "http://localhost:8085/callback"},
            "clientSessionId": {"S": "2d35a412-125e-423e-835e-ca66111a38a1"},
            "createdDate": {"N": "1722954983024"},
            "clientId": {"S": "unit-test-clientid"},
            "subject": {"S": "urn:fdc:gov.uk:2022:6dab2b2d-5fcb-43a3-b682-9484db4a2ca5"},
            "persistentSessionId": {"S": "6c33f1e4-70a9-41f6-a335-7bb036edd3ca"},
            "attemptCount": {"N": "0"},
            "sessionId": {"S": "665ed4d5-7576-4c4b-84ff-99af3a57ea64"},
            "state": {"S": "7f42f0cc-1681-4455-872f-dd228103a12e"},
        }
    },
    "parameters": {
        "url": {"value": "https://question-bank.test/questions"},
        "userAgent": {"value": "TEST_USER_AGENT"},
    },
    "bearerToken": {
        "expiry": (SESSION_TTL + 7200) * 1000,
        "value": "TEST_TOKEN_VALUE",
    },
    "personIdentityItem": {
        "nino": "TEST_NINO",
    },
}


@pytest.fixture
def input_event():
    """A complete, valid input event that tests may modify freely."""
    return copy.deepcopy(VALID_INPUT_EVENT)
