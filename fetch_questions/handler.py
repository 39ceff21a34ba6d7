"""
Fetch-questions handler for the KBV credential issuer.

Decides whether enough questions exist to run a knowledge-based verification
interview for a session:

1. Validate the input event
2. Look for questions already saved against the session
3. If there are none, retrieve questions from the question bank, filter
   them, save them and compare the count against the sufficiency threshold
4. Audit a thin file when a first retrieval comes back short
5. Record a completion-status metric for every invocation

Saved questions make the handler safe to retry: a second invocation for the
same session answers from the store without calling the question bank again.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

from fetch_questions.config import policy_config
from fetch_questions.errors import (
    CollaboratorError,
    FetchQuestionsError,
    SaveQuestionsError,
    SavedQuestionsConflictError,
)
from fetch_questions.models import FetchQuestionInputs, FetchQuestionsState, SavedQuestionsState
from fetch_questions.services.audit_service import AuditEventType, AuditService
from fetch_questions.services.filter_questions import FilterQuestionsService
from fetch_questions.services.metrics_probe import (
    CompletionStatus,
    HandlerMetric,
    MetricsProbe,
    MetricUnit,
)
from fetch_questions.services.questions_retrieval import QuestionsRetrievalService
from fetch_questions.services.save_questions import SavedQuestionsStore, build_saved_questions_store
from fetch_questions.validation import validate_input_event

logger = logging.getLogger(__name__)


@contextmanager
def collaborator_call(action: str):
    """Re-raise any collaborator failure as a CollaboratorError with the same message."""
    try:
        yield
    except FetchQuestionsError:
        raise
    except Exception as e:
        logger.error(f"{action} failed: {type(e).__name__}: {e}")
        raise CollaboratorError(str(e) or type(e).__name__) from e


class FetchQuestionsHandler:

    def __init__(self,
                 metrics_probe: MetricsProbe,
                 questions_retrieval_service: QuestionsRetrievalService,
                 save_questions_service: SavedQuestionsStore,
                 filter_questions_service: FilterQuestionsService,
                 audit_service: AuditService,
                 minimum_question_count: Optional[int] = None):
        """
        Args:
            metrics_probe: records the completion-status metric
            questions_retrieval_service: client for the question bank
            save_questions_service: store of questions saved per session
            filter_questions_service: drops ineligible questions
            audit_service: receives thin-file audit events
            minimum_question_count: sufficiency threshold (config default if None)
        """
        self.metrics_probe = metrics_probe
        self.questions_retrieval_service = questions_retrieval_service
        self.save_questions_service = save_questions_service
        self.filter_questions_service = filter_questions_service
        self.audit_service = audit_service
        self.minimum_question_count = (
            minimum_question_count
            if minimum_question_count is not None
            else policy_config.minimum_question_count
        )

    async def handler(self, event: Optional[Dict[str, Any]], context: Any = None) -> Dict[str, str]:
        """
        Run one invocation.

        Returns either ``{"fetchQuestionsState": <state>}`` or
        ``{"error": "FetchQuestionsHandler : <message>"}``; failures are never
        raised to the caller.
        """
        try:
            inputs = validate_input_event(event)
            state = await self.fetch_questions_state(inputs)
        except FetchQuestionsError as e:
            logger.error(f"{type(self).__name__} failed: {e}")
            self._capture_completion(CompletionStatus.ERROR)
            return {"error": f"{type(self).__name__} : {e}"}
        except Exception as e:
            logger.exception(f"{type(self).__name__} failed unexpectedly")
            self._capture_completion(CompletionStatus.ERROR)
            return {"error": f"{type(self).__name__} : {str(e) or type(e).__name__}"}

        self._capture_completion(CompletionStatus.OK)
        return {"fetchQuestionsState": state.value}

    async def fetch_questions_state(self, inputs: FetchQuestionInputs) -> FetchQuestionsState:
        with collaborator_call("Saved questions lookup"):
            saved = await self.save_questions_service.get_existing_saved_item(inputs.session_id)

        if saved is not None:
            logger.info(f"Session {inputs.session_id} already has {len(saved.questions)} saved questions")
            return self._resumed_state(saved)

        return await self._first_retrieval(inputs)

    def _resumed_state(self, saved: SavedQuestionsState) -> FetchQuestionsState:
        if saved.questions:
            return FetchQuestionsState.CONTINUE_SUFFICIENT_QUESTION_ALREADY_RETRIEVED
        return FetchQuestionsState.INSUFFICIENT_QUESTIONS

    async def _first_retrieval(self, inputs: FetchQuestionInputs) -> FetchQuestionsState:
        with collaborator_call("Question retrieval"):
            result = await self.questions_retrieval_service.retrieve_questions(inputs)

        with collaborator_call("Question filtering"):
            questions = self.filter_questions_service.filter_questions(result.questions, inputs)

        if len(questions) < self.minimum_question_count:
            state = FetchQuestionsState.INSUFFICIENT_QUESTIONS
        else:
            state = FetchQuestionsState.SUFFICIENT_QUESTIONS

        logger.info(
            f"Session {inputs.session_id}: {len(questions)} of {result.question_count} "
            f"questions eligible, {state.value}"
        )

        try:
            with collaborator_call("Saving questions"):
                saved_ok = await self.save_questions_service.save_questions(
                    inputs.session_id,
                    inputs.session_ttl,
                    result.correlation_id,
                    questions
                )
            if not saved_ok:
                raise SaveQuestionsError("Unable to save questions")
        except SavedQuestionsConflictError:
            # Another invocation for this session saved first; its record decides
            logger.warning(f"Questions for session {inputs.session_id} were saved concurrently")
            with collaborator_call("Saved questions lookup"):
                saved = await self.save_questions_service.get_existing_saved_item(inputs.session_id)
            if saved is None:
                raise
            return self._resumed_state(saved)

        if state == FetchQuestionsState.INSUFFICIENT_QUESTIONS:
            await self._audit_thin_file(inputs, state)

        return state

    async def _audit_thin_file(self, inputs: FetchQuestionInputs, state: FetchQuestionsState):
        try:
            await self.audit_service.send_audit_event(
                AuditEventType.THIN_FILE_ENCOUNTERED,
                inputs.session_item,
                {"outcome": state.value}
            )
        except Exception as e:
            logger.error(f"Thin file audit for session {inputs.session_id} not sent: {e}")

    def _capture_completion(self, status: CompletionStatus):
        try:
            self.metrics_probe.capture_metric(
                HandlerMetric.COMPLETION_STATUS, MetricUnit.COUNT, status
            )
        except Exception as e:
            logger.error(f"Completion status metric not captured: {e}")

    async def close(self):
        """Close the HTTP clients held by the services."""
        await self.questions_retrieval_service.close()
        await self.audit_service.close()


def build_fetch_questions_handler() -> FetchQuestionsHandler:
    """Wire the handler with the configured services."""
    metrics_probe = MetricsProbe()
    return FetchQuestionsHandler(
        metrics_probe=metrics_probe,
        questions_retrieval_service=QuestionsRetrievalService(metrics_probe),
        save_questions_service=build_saved_questions_store(),
        filter_questions_service=FilterQuestionsService(),
        audit_service=AuditService()
    )
