"""
Client for the external question bank.

Posts the user's NINO to the questions URL supplied in the event and turns the
response into a QuestionsResult.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from fetch_questions.config import QuestionsApiConfig, questions_api_config
from fetch_questions.errors import QuestionsRetrievalError
from fetch_questions.models import FetchQuestionInputs, Question, QuestionsResult
from fetch_questions.services.metrics_probe import MetricsProbe, MetricUnit

logger = logging.getLogger(__name__)


class QuestionsRetrievalMetric:
    RESPONSE_LATENCY = "QuestionsRetrievalResponseLatency"
    HTTP_STATUS = "QuestionsRetrievalHttpStatus"
    QUESTIONS_RETURNED = "QuestionsReturned"


class QuestionsRetrievalService:

    def __init__(self,
                 metrics_probe: Optional[MetricsProbe] = None,
                 config: Optional[QuestionsApiConfig] = None,
                 client: Optional[httpx.AsyncClient] = None):
        self.metrics_probe = metrics_probe or MetricsProbe()
        self.config = config or questions_api_config
        self.client = client or httpx.AsyncClient(timeout=self.config.timeout)

    async def retrieve_questions(self, inputs: FetchQuestionInputs) -> QuestionsResult:
        """
        Fetch candidate questions for the user in ``inputs``.

        Raises:
            QuestionsRetrievalError: on transport failure, timeout, a non-2xx
                status or an unreadable body
        """
        headers = {
            "Content-Type": "application/json",
            "User-Agent": inputs.user_agent,
            "Authorization": f"Bearer {inputs.bearer_token}",
        }

        loop = asyncio.get_event_loop()
        start_time = loop.time()
        try:
            response = await self.client.post(
                inputs.questions_url,
                headers=headers,
                json={"nino": inputs.nino}
            )
        except httpx.TimeoutException as e:
            logger.error(f"Question retrieval timed out for session {inputs.session_id}")
            raise QuestionsRetrievalError("Timed out retrieving questions") from e
        except httpx.HTTPError as e:
            logger.error(f"Question retrieval failed for session {inputs.session_id}: {e}")
            raise QuestionsRetrievalError(f"Unable to retrieve questions: {e}") from e

        latency_ms = (loop.time() - start_time) * 1000
        self.metrics_probe.capture_metric(
            QuestionsRetrievalMetric.RESPONSE_LATENCY, MetricUnit.MILLISECONDS, latency_ms
        )
        self.metrics_probe.capture_metric(
            QuestionsRetrievalMetric.HTTP_STATUS, MetricUnit.COUNT, response.status_code
        )

        if not response.is_success:
            logger.error(
                f"Question retrieval for session {inputs.session_id} returned HTTP {response.status_code}"
            )
            raise QuestionsRetrievalError(
                f"Unexpected response from questions endpoint: HTTP {response.status_code}"
            )

        try:
            result = self._parse_response(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise QuestionsRetrievalError(f"Unable to read questions response: {e}") from e

        self.metrics_probe.capture_metric(
            QuestionsRetrievalMetric.QUESTIONS_RETURNED, MetricUnit.COUNT, result.question_count
        )
        logger.info(
            f"Retrieved {result.question_count} questions for session {inputs.session_id} "
            f"(correlationId {result.correlation_id})"
        )
        return result

    def _parse_response(self, body: Dict[str, Any]) -> QuestionsResult:
        correlation_id = body["correlationId"]
        if not correlation_id:
            raise ValueError("correlationId missing")

        questions = []
        for entry in body.get("questions") or []:
            info = entry.get("info") or {}
            questions.append(Question(
                question_key=entry["questionKey"],
                current_tax_year=info.get("currentTaxYear"),
                previous_tax_year=info.get("previousTaxYear")
            ))

        return QuestionsResult(correlation_id=correlation_id, questions=tuple(questions))

    async def close(self):
        await self.client.aclose()
