"""
Grading orchestration tests against real challenge databases
"""
import json
import uuid
import pytest

from sqlquest.models import Submission, User
from sqlquest.services.challenge_service import ChallengeService
from sqlquest.services.gemini_service import GeminiService, UNAVAILABLE_FEEDBACK
from sqlquest.services.progression_service import ProgressionService
from sqlquest.services.grading_service import (
    GradingService,
    SubmissionValidationError,
    ChallengeNotFoundError,
)
from sqlquest.utils.sample_challenges import SAMPLE_CHALLENGES, EMPLOYEES


class RecordingTutor:
    def __init__(self, exc=None):
        self.exc = exc
        self.calls = []

    async def explain(self, query, actual_results, expected_results, schema):
        self.calls.append((query, actual_results, expected_results, schema))
        if self.exc:
            raise self.exc
        return "Check your WHERE clause."


@pytest.fixture
def learner_id():
    return str(uuid.uuid4())


async def _create(db_session, provisioner, index):
    return await ChallengeService(provisioner=provisioner).create_challenge(db_session, SAMPLE_CHALLENGES[index])


def _grader(executor, tutor=None):
    return GradingService(executor=executor, tutor=tutor or GeminiService(api_key=None))


@pytest.mark.asyncio
async def test_correct_solution_grants_xp_once(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 0)
    grader = _grader(executor)

    first = await grader.submit(db_session, challenge.id, learner_id, "SELECT * FROM employees;")
    second = await grader.submit(db_session, challenge.id, learner_id, "SELECT * FROM employees;")

    assert first.success is True
    assert first.is_correct is True
    assert first.ai_feedback is None
    assert first.attempts == 1
    assert second.is_correct is True
    assert second.attempts == 2

    user = db_session.query(User).filter(User.id == learner_id).one()
    db_session.refresh(user)
    assert user.xp == challenge.reward_xp == 10
    assert user.completed_challenges == [challenge.id]


@pytest.mark.asyncio
async def test_where_clause_solution(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 1)

    submission = await _grader(executor).submit(
        db_session, challenge.id, learner_id,
        "SELECT * FROM employees WHERE department = 'Engineering';"
    )

    assert submission.is_correct is True
    assert [row["id"] for row in json.loads(submission.output)] == [1, 3]
    assert submission.expected_output == SAMPLE_CHALLENGES[1]["test_cases"][0]["expected_output"]


@pytest.mark.asyncio
async def test_execution_error_skips_comparison_and_feedback(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 0)
    tutor = RecordingTutor()

    submission = await _grader(executor, tutor).submit(
        db_session, challenge.id, learner_id, "SELECT nickname FROM employees"
    )

    assert submission.success is False
    assert "no such column" in submission.error
    assert submission.output is None
    assert submission.is_correct is False
    assert submission.ai_feedback is None
    assert tutor.calls == []
    assert db_session.query(Submission).count() == 1


@pytest.mark.asyncio
async def test_incorrect_result_gets_fallback_feedback(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 1)

    submission = await _grader(executor).submit(
        db_session, challenge.id, learner_id, "SELECT * FROM employees;"
    )

    assert submission.success is True
    assert submission.is_correct is False
    assert submission.ai_feedback == UNAVAILABLE_FEEDBACK
    assert submission.feedback_generation_time is not None

    user = db_session.query(User).filter(User.id == learner_id).one()
    assert user.xp == 0


@pytest.mark.asyncio
async def test_tutor_receives_actual_and_expected(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 1)
    tutor = RecordingTutor()

    submission = await _grader(executor, tutor).submit(
        db_session, challenge.id, learner_id, "SELECT * FROM employees WHERE id = 1"
    )

    assert submission.ai_feedback == "Check your WHERE clause."
    query, actual, expected, schema = tutor.calls[0]
    assert query == "SELECT * FROM employees WHERE id = 1"
    assert [row["id"] for row in actual] == [1]
    assert json.loads(expected) == [e for e in EMPLOYEES if e["department"] == "Engineering"]
    assert schema == challenge.schema_sql


@pytest.mark.asyncio
async def test_tutor_failure_does_not_fail_grading(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 1)

    submission = await _grader(executor, RecordingTutor(exc=RuntimeError("boom"))).submit(
        db_session, challenge.id, learner_id, "SELECT id FROM employees"
    )

    assert submission.id is not None
    assert submission.is_correct is False
    assert submission.ai_feedback is None


@pytest.mark.asyncio
async def test_first_correct_after_failures_grants_xp(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 2)
    grader = _grader(executor)

    await grader.submit(db_session, challenge.id, learner_id, "SELECT * FROM employees")
    solved = await grader.submit(db_session, challenge.id, learner_id, SAMPLE_CHALLENGES[2]["test_cases"][0]["input"])

    assert solved.is_correct is True
    assert solved.attempts == 2
    user = db_session.query(User).filter(User.id == learner_id).one()
    db_session.refresh(user)
    assert user.xp == 25


@pytest.mark.asyncio
async def test_only_first_visible_test_case_is_graded(db_session, provisioner, executor, learner_id):
    data = dict(SAMPLE_CHALLENGES[0])
    data["test_cases"] = [
        {"input": "SELECT id FROM employees", "expected_output": [{"id": 99}], "is_hidden": True},
        {"input": "SELECT id FROM employees WHERE id = 1", "expected_output": [{"id": 1}], "is_hidden": False},
        {"input": "SELECT id FROM employees WHERE id = 2", "expected_output": [{"id": 2}], "is_hidden": False},
    ]
    challenge = await ChallengeService(provisioner=provisioner).create_challenge(db_session, data)

    submission = await _grader(executor).submit(
        db_session, challenge.id, learner_id, "SELECT id FROM employees WHERE id = 1"
    )

    assert submission.is_correct is True
    assert submission.expected_output == '[{"id": 1}]'


@pytest.mark.asyncio
async def test_validation_errors_persist_nothing(db_session, executor, learner_id):
    grader = _grader(executor)

    with pytest.raises(SubmissionValidationError):
        await grader.submit(db_session, None, learner_id, "SELECT 1")
    with pytest.raises(SubmissionValidationError):
        await grader.submit(db_session, "some-id", learner_id, "   ")
    with pytest.raises(SubmissionValidationError):
        await grader.submit(db_session, "some-id", None, "SELECT 1")
    with pytest.raises(ChallengeNotFoundError):
        await grader.submit(db_session, str(uuid.uuid4()), learner_id, "SELECT 1")

    assert db_session.query(Submission).count() == 0


@pytest.mark.asyncio
async def test_attempts_are_counted_per_learner(db_session, provisioner, executor):
    challenge = await _create(db_session, provisioner, 0)
    grader = _grader(executor)
    alice, bob = str(uuid.uuid4()), str(uuid.uuid4())

    await grader.submit(db_session, challenge.id, alice, "SELECT 1")
    await grader.submit(db_session, challenge.id, alice, "SELECT 2")
    bobs = await grader.submit(db_session, challenge.id, bob, "SELECT * FROM employees;")

    assert bobs.attempts == 1
    user = db_session.query(User).filter(User.id == bob).one()
    db_session.refresh(user)
    assert user.xp == 10


@pytest.mark.asyncio
async def test_unrecorded_earlier_solve_does_not_block_xp(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 0)
    # A correct submission committed by another worker before it recorded the completion
    db_session.add(Submission(
        user_id=learner_id, challenge_id=challenge.id, code="SELECT * FROM employees",
        success=True, is_correct=True
    ))
    db_session.commit()

    solved = await _grader(executor).submit(db_session, challenge.id, learner_id, "SELECT * FROM employees;")

    assert solved.is_correct is True
    assert solved.attempts == 2
    user = db_session.query(User).filter(User.id == learner_id).one()
    db_session.refresh(user)
    assert user.xp == 10
    assert user.completed_challenges == [challenge.id]


@pytest.mark.asyncio
async def test_recorded_completion_blocks_second_grant(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 0)
    progression = ProgressionService()
    progression.ensure_user(db_session, learner_id)
    assert progression.add_completed_challenge(db_session, learner_id, challenge.id) is True
    db_session.commit()

    await _grader(executor).submit(db_session, challenge.id, learner_id, "SELECT * FROM employees;")

    user = db_session.query(User).filter(User.id == learner_id).one()
    db_session.refresh(user)
    assert user.xp == 0
    assert progression.count_submissions(db_session, learner_id, challenge.id, correct_only=True) == 1


class RecordingChallenges(ChallengeService):
    def __init__(self):
        super().__init__()
        self.lookups = []

    def get_challenge(self, db, challenge_id):
        self.lookups.append(challenge_id)
        return super().get_challenge(db, challenge_id)


@pytest.mark.asyncio
async def test_challenge_lookup_goes_through_challenge_service(db_session, provisioner, executor, learner_id):
    challenge = await _create(db_session, provisioner, 0)
    challenges = RecordingChallenges()
    grader = GradingService(executor=executor, tutor=GeminiService(api_key=None), challenges=challenges)

    await grader.submit(db_session, challenge.id, learner_id, "SELECT 1")
    with pytest.raises(ChallengeNotFoundError):
        await grader.submit(db_session, "missing", learner_id, "SELECT 1")

    assert challenges.lookups == [challenge.id, "missing"]
