"""
Eligibility filtering of candidate questions.

The rules come from a YAML policy file so they can change without a release.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml

from fetch_questions.config import policy_config
from fetch_questions.models import FetchQuestionInputs, Question

logger = logging.getLogger(__name__)


class FilterQuestionsService:
    """
    Removes questions that cannot be asked.

    Rules, applied in order:
    1. questions without a key
    2. keys listed under ``excluded_questions``
    3. keys listed under ``requires_tax_year`` that arrived without a tax year
    4. repeated keys (the first occurrence wins)
    5. anything beyond ``max_questions``, when set
    """

    def __init__(self, policy_path: Optional[str] = None, policy: Optional[Dict] = None):
        self.policy_path = Path(policy_path or policy_config.policy_path)
        self.policy = policy if policy is not None else self._load_policy()

    def _load_policy(self) -> Dict:
        if not self.policy_path.exists():
            logger.warning(f"Question policy not found: {self.policy_path}, using defaults")
            return self._get_default_policy()

        with open(self.policy_path, 'r', encoding='utf-8') as f:
            policy = yaml.safe_load(f) or {}
        logger.info(f"Loaded question policy: {self.policy_path}")
        return policy

    def _get_default_policy(self) -> Dict:
        return {
            'excluded_questions': [],
            'requires_tax_year': [],
            'max_questions': None
        }

    def filter_questions(self, questions: Iterable[Question], inputs: FetchQuestionInputs) -> List[Question]:
        excluded = set(self.policy.get('excluded_questions') or [])
        requires_tax_year = set(self.policy.get('requires_tax_year') or [])
        max_questions = self.policy.get('max_questions')

        eligible: List[Question] = []
        seen = set()
        for question in questions:
            key = question.question_key
            if not key or key in excluded or key in seen:
                continue
            if key in requires_tax_year and not question.current_tax_year:
                logger.info(f"Dropping {key} for session {inputs.session_id}: no tax year supplied")
                continue
            seen.add(key)
            eligible.append(question)

        if max_questions:
            eligible = eligible[:int(max_questions)]

        logger.info(f"Session {inputs.session_id}: {len(eligible)} eligible questions")
        return eligible
