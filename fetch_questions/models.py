"""
Data types shared by the fetch-questions handler and its services.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class FetchQuestionsState(str, Enum):
    """Outcome of a fetch-questions invocation."""
    SUFFICIENT_QUESTIONS = "SufficientQuestions"
    INSUFFICIENT_QUESTIONS = "InsufficientQuestions"
    CONTINUE_SUFFICIENT_QUESTION_ALREADY_RETRIEVED = "ContinueSufficientQuestionAlreadyRetrieved"


@dataclass(frozen=True)
class Question:
    """
    A question template offered by the question bank.

    Some questions ask about a tax-year period, in which case the provider
    supplies the current and/or previous tax year (e.g. "2021/2022").
    """
    question_key: str                        # e.g. "rti-p60-payment-for-year"
    current_tax_year: Optional[str] = None
    previous_tax_year: Optional[str] = None


@dataclass(frozen=True)
class QuestionsResult:
    correlation_id: str                      # Issued by the provider, threaded through save/replay
    questions: Tuple[Question, ...] = ()

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass
class SavedQuestion:
    question_key: str
    order: int                               # 1-based position in the interview

    def to_dict(self) -> Dict[str, Any]:
        return {'questionKey': self.question_key, 'order': self.order}


@dataclass
class SavedQuestionsState:
    """Questions previously chosen for a session, as held by the store."""
    correlation_id: str
    questions: List[SavedQuestion] = field(default_factory=list)

    @classmethod
    def from_questions(cls, correlation_id: str, questions: List[Question]) -> "SavedQuestionsState":
        return cls(
            correlation_id=correlation_id,
            questions=[
                SavedQuestion(question_key=q.question_key, order=index)
                for index, q in enumerate(questions, start=1)
            ]
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedQuestionsState":
        return cls(
            correlation_id=data['correlationId'],
            questions=[
                SavedQuestion(question_key=q['questionKey'], order=int(q['order']))
                for q in data.get('questions', [])
            ]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'correlationId': self.correlation_id,
            'questions': [q.to_dict() for q in self.questions]
        }


@dataclass(frozen=True)
class FetchQuestionInputs:
    """
    Validated input event.

    ``session_item`` is the raw session record exactly as received, kept for
    audit events. ``bearer_token`` is excluded from repr so it never ends up
    in a log line.
    """
    session_id: str
    session_ttl: int                         # Session expiry, epoch seconds
    questions_url: str
    user_agent: str
    bearer_token: str = field(repr=False)
    nino: str = field(repr=False)
    session_item: Dict[str, Any] = field(default_factory=dict, repr=False)
