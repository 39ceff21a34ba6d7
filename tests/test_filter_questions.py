"""
Tests for question eligibility filtering
"""

import tempfile
from pathlib import Path

from fetch_questions.models import FetchQuestionInputs, Question
from fetch_questions.services.filter_questions import FilterQuestionsService

INPUTS = FetchQuestionInputs(
    session_id="sessionId",
    session_ttl=1234,
    questions_url="https://question-bank.test/questions",
    user_agent="TEST_USER_AGENT",
    bearer_token="TEST_TOKEN_VALUE",
    nino="TEST_NINO"
)


class TestFilterQuestions:

    def test_default_policy_keeps_distinct_questions(self):
        service = FilterQuestionsService(policy={})
        questions = [
            Question("rti-p60-payment-for-year"),
            Question("sa-payment-details", "2021/2022", "2020/2021"),
        ]

        assert service.filter_questions(questions, INPUTS) == questions

    def test_duplicates_removed_first_kept(self):
        service = FilterQuestionsService(policy={})
        first = Question("sa-payment-details", "2021/2022", "2020/2021")
        questions = [first, Question("rti-p60-payment-for-year"), Question("sa-payment-details")]

        result = service.filter_questions(questions, INPUTS)

        assert [q.question_key for q in result] == ["sa-payment-details", "rti-p60-payment-for-year"]
        assert result[0] is first

    def test_excluded_and_empty_keys_removed(self):
        service = FilterQuestionsService(policy={'excluded_questions': ['ita-bankaccount']})
        questions = [Question(""), Question("ita-bankaccount"), Question("rti-p60-payment-for-year")]

        result = service.filter_questions(questions, INPUTS)

        assert [q.question_key for q in result] == ["rti-p60-payment-for-year"]

    def test_question_needing_tax_year_dropped_without_one(self):
        service = FilterQuestionsService(policy={'requires_tax_year': ['sa-payment-details']})
        questions = [
            Question("sa-payment-details"),
            Question("rti-p60-payment-for-year"),
        ]

        result = service.filter_questions(questions, INPUTS)

        assert [q.question_key for q in result] == ["rti-p60-payment-for-year"]

    def test_max_questions_caps_result(self):
        service = FilterQuestionsService(policy={'max_questions': 2})
        questions = [Question(f"question-{i}") for i in range(5)]

        result = service.filter_questions(questions, INPUTS)

        assert [q.question_key for q in result] == ["question-0", "question-1"]

    def test_empty_input(self):
        assert FilterQuestionsService(policy={}).filter_questions([], INPUTS) == []


class TestPolicyLoading:

    def test_policy_loaded_from_yaml(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            policy_path = Path(temp_dir) / "policy.yaml"
            policy_path.write_text("excluded_questions:\n  - rti-p60-payment-for-year\n")

            service = FilterQuestionsService(policy_path=str(policy_path))

        assert service.policy['excluded_questions'] == ['rti-p60-payment-for-year']
        result = service.filter_questions([Question("rti-p60-payment-for-year")], INPUTS)
        assert result == []

    def test_missing_policy_file_uses_defaults(self):
        service = FilterQuestionsService(policy_path="/nonexistent/policy.yaml")

        assert service.policy == service._get_default_policy()

    def test_bundled_policy_is_valid(self):
        policy_path = Path(__file__).parent.parent / "fetch_questions" / "contexts" / "question_policy.yaml"

        service = FilterQuestionsService(policy_path=str(policy_path))

        assert 'sa-payment-details' in service.policy['requires_tax_year']

    def test_bundled_policy_loaded_by_default_from_any_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        service = FilterQuestionsService()

        assert service.policy != service._get_default_policy()
        assert 'sa-payment-details' in service.policy['requires_tax_year']
