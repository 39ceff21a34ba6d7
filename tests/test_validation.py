"""
Tests for input event validation
"""

import time

import pytest

from fetch_questions.errors import SessionItemError, ValidationError
from fetch_questions.validation import SESSION_ITEM_FIELDS, validate_input_event


class TestValidInputEvent:
    """Test conversion of a valid event."""

    def test_inputs_taken_from_event(self, input_event):
        inputs = validate_input_event(input_event)

        assert inputs.session_id == "sessionId"
        assert inputs.session_ttl == int(input_event["sessionItem"]["Item"]["expiryDate"]["N"])
        assert inputs.questions_url == "https://question-bank.test/questions"
        assert inputs.user_agent == "TEST_USER_AGENT"
        assert inputs.bearer_token == "TEST_TOKEN_VALUE"
        assert inputs.nino == "TEST_NINO"
        assert inputs.session_item == input_event["sessionItem"]

    def test_bearer_token_not_in_repr(self, input_event):
        """The token must never reach a log line through repr."""
        inputs = validate_input_event(input_event)
        assert "TEST_TOKEN_VALUE" not in repr(inputs)
        assert "TEST_NINO" not in repr(inputs)


class TestMissingFields:
    """Test the message reported for each missing field."""

    @pytest.mark.parametrize("event", [None, {}])
    def test_empty_event(self, event):
        with pytest.raises(ValidationError, match="^input event is empty$"):
            validate_input_event(event)

    def test_missing_session_id(self):
        with pytest.raises(ValidationError, match="^sessionId was not provided$"):
            validate_input_event({"sessionId": None})

    def test_missing_session_item(self, input_event):
        del input_event["sessionItem"]
        with pytest.raises(ValidationError) as exc_info:
            validate_input_event(input_event)
        assert not isinstance(exc_info.value, SessionItemError)
        assert str(exc_info.value) == "Session item was not provided"

    def test_session_item_without_item(self, input_event):
        input_event["sessionItem"] = {}
        with pytest.raises(SessionItemError) as exc_info:
            validate_input_event(input_event)
        assert str(exc_info.value) == "Session item was malformed : Session item missing Item"

    @pytest.mark.parametrize("field", SESSION_ITEM_FIELDS)
    def test_session_item_missing_attribute(self, input_event, field):
        del input_event["sessionItem"]["Item"][field]
        with pytest.raises(SessionItemError) as exc_info:
            validate_input_event(input_event)
        assert str(exc_info.value) == f"Session item was malformed : Session item missing {field}"

    @pytest.mark.parametrize("expiry", ["not-a-number", "0", "-5", float("inf"), float("nan")])
    def test_session_item_invalid_expiry(self, input_event, expiry):
        input_event["sessionItem"]["Item"]["expiryDate"] = {"N": expiry}
        with pytest.raises(SessionItemError, match="expiryDate is not a valid expiry"):
            validate_input_event(input_event)

    @pytest.mark.parametrize("expiry", ["1234", str(int(time.time()) - 1)])
    def test_session_item_expired(self, input_event, expiry):
        input_event["sessionItem"]["Item"]["expiryDate"] = {"N": expiry}
        with pytest.raises(SessionItemError) as exc_info:
            validate_input_event(input_event)
        assert str(exc_info.value) == "Session item was malformed : Session item has expired"

    def test_missing_parameters(self, input_event):
        input_event["parameters"] = None
        with pytest.raises(ValidationError, match="^event parameters not found$"):
            validate_input_event(input_event)

    def test_missing_url(self, input_event):
        input_event["parameters"]["url"] = None
        with pytest.raises(ValidationError, match="^questionsUrl was not provided$"):
            validate_input_event(input_event)

    def test_missing_user_agent(self, input_event):
        del input_event["parameters"]["userAgent"]
        with pytest.raises(ValidationError, match="^userAgent was not provided$"):
            validate_input_event(input_event)

    @pytest.mark.parametrize("bearer_token", [None, {}, {"value": None}, {"value": ""}])
    def test_missing_bearer_token(self, input_event, bearer_token):
        input_event["bearerToken"] = bearer_token
        with pytest.raises(ValidationError, match="^bearerToken was not provided$"):
            validate_input_event(input_event)

    def test_missing_person_identity_item(self, input_event):
        input_event["personIdentityItem"] = None
        with pytest.raises(ValidationError, match="^personIdentityItem not found$"):
            validate_input_event(input_event)

    def test_missing_nino(self, input_event):
        input_event["personIdentityItem"] = {"nino": None}
        with pytest.raises(ValidationError, match="^nino was not provided$"):
            validate_input_event(input_event)


class TestCheckOrder:
    """Only the first failing check is reported."""

    def test_parameters_reported_before_bearer_token(self, input_event):
        del input_event["parameters"]
        del input_event["bearerToken"]
        with pytest.raises(ValidationError, match="^event parameters not found$"):
            validate_input_event(input_event)

    def test_session_id_reported_before_everything_else(self):
        event = {"sessionItem": {}, "parameters": None}
        with pytest.raises(ValidationError, match="^sessionId was not provided$"):
            validate_input_event(event)

    def test_session_item_reported_before_parameters(self, input_event):
        del input_event["sessionItem"]["Item"]["state"]
        del input_event["parameters"]
        with pytest.raises(SessionItemError, match="missing state$"):
            validate_input_event(input_event)

    def test_first_item_attribute_reported(self, input_event):
        item = input_event["sessionItem"]["Item"]
        del item["redirectUri"]
        del item["clientIpAddress"]
        del item["attemptCount"]
        with pytest.raises(SessionItemError, match="missing clientIpAddress$"):
            validate_input_event(input_event)

    def test_nino_checked_last(self, input_event):
        input_event["personIdentityItem"]["nino"] = ""
        input_event["parameters"]["userAgent"] = {"value": ""}
        with pytest.raises(ValidationError, match="^userAgent was not provided$"):
            validate_input_event(input_event)
