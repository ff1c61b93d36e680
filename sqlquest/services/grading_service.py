"""
Submission grading service
Executes a learner's query, compares it with the challenge's expected
output, asks the tutor for feedback on mismatches and updates progression
"""
import json
import logging
import time
from typing import Any, Optional
from sqlalchemy.orm import Session
from sqlquest.models import Challenge, Submission
from sqlquest.services.challenge_service import challenge_service, ChallengeService
from sqlquest.services.comparison_service import comparison_service, ComparisonService
from sqlquest.services.execution_service import execution_service, ExecutionService, ExecutionResult
from sqlquest.services.gemini_service import gemini_service, GeminiService
from sqlquest.services.progression_service import progression_service, ProgressionService

logger = logging.getLogger(__name__)


class GradingError(Exception):
    """Client-side problem with a submission request; nothing is executed"""


class SubmissionValidationError(GradingError):
    pass


class ChallengeNotFoundError(GradingError):
    pass


class GradingService:
    """
    Orchestrates one submission from request to persisted record

    Flow: validate -> execute -> compare (visible test case only) ->
    tutor feedback when incorrect -> persist -> first-solve progression ->
    attempt count back-fill.

    Steps are not wrapped in one transaction: a submission can be stored
    while the progression update after it fails.
    """

    def __init__(
        self,
        executor: Optional[ExecutionService] = None,
        comparator: Optional[ComparisonService] = None,
        tutor: Optional[GeminiService] = None,
        progression: Optional[ProgressionService] = None,
        challenges: Optional[ChallengeService] = None
    ):
        self.executor = executor or execution_service
        self.comparator = comparator or comparison_service
        self.tutor = tutor or gemini_service
        self.progression = progression or progression_service
        self.challenges = challenges or challenge_service

    async def submit(
        self,
        db: Session,
        challenge_id: Optional[str],
        user_id: Optional[str],
        code: Optional[str]
    ) -> Submission:
        """
        Grade and persist a submission

        Args:
            db: Database session
            challenge_id: Challenge being attempted
            user_id: Learner submitting
            code: SQL to execute

        Returns:
            The persisted Submission with attempts filled in

        Raises:
            SubmissionValidationError: missing challenge id, code or learner
            ChallengeNotFoundError: unknown challenge
        """
        if not challenge_id or not code or not code.strip():
            raise SubmissionValidationError("Challenge ID and code are required")
        if not user_id:
            raise SubmissionValidationError("User ID is required")

        challenge = self.challenges.get_challenge(db, challenge_id)
        if not challenge:
            raise ChallengeNotFoundError("Challenge not found")

        start_time = time.perf_counter()
        result = await self.executor.execute(code, challenge.database_file)
        execution_time = int((time.perf_counter() - start_time) * 1000)

        submission = Submission(
            user_id=user_id,
            challenge_id=challenge_id,
            code=code,
            success=result.success,
            output=result.output_json(),
            execution_time=execution_time,
            error=result.error,
            is_correct=False
        )

        if result.success:
            await self._check_correctness(submission, challenge, result)
        else:
            logger.info(f"Submission for challenge {challenge_id} failed to execute: {result.error}")

        self.progression.ensure_user(db, user_id)
        db.add(submission)
        db.commit()
        db.refresh(submission)

        if submission.is_correct:
            self._record_first_solve(db, submission, challenge)

        submission.attempts = self.progression.count_submissions(db, user_id, challenge_id)
        db.commit()
        db.refresh(submission)

        logger.info(
            f"Submission graded: {submission.id}, user={user_id}, challenge={challenge_id}, "
            f"correct={submission.is_correct}, attempts={submission.attempts}, "
            f"time={execution_time}ms"
        )

        return submission

    async def _check_correctness(
        self,
        submission: Submission,
        challenge: Challenge,
        result: ExecutionResult
    ) -> None:
        # Hidden test cases are stored but not graded
        test_case = challenge.visible_test_case()
        if test_case is None:
            logger.warning(f"Challenge {challenge.id} has no visible test case, cannot grade")
            return

        expected = self._serialize_expected(test_case.get("expected_output"))
        submission.expected_output = expected
        submission.is_correct = self.comparator.compare(result.results, expected)

        if not submission.is_correct:
            await self._attach_feedback(submission, challenge, result.results, expected)

    async def _attach_feedback(
        self,
        submission: Submission,
        challenge: Challenge,
        actual: Any,
        expected: Optional[str]
    ) -> None:
        """Tutor feedback for an incorrect answer; failures never fail grading"""
        try:
            start_time = time.perf_counter()
            feedback = await self.tutor.explain(
                submission.code,
                actual,
                expected,
                challenge.schema_sql
            )
            submission.ai_feedback = feedback
            submission.feedback_generation_time = int((time.perf_counter() - start_time) * 1000)
        except Exception as e:
            logger.error(f"AI feedback generation error: {str(e)}")

    def _record_first_solve(self, db: Session, submission: Submission, challenge: Challenge) -> None:
        """Grant XP and mark completion on a learner's first correct solve"""
        # The unique completed-set row is the only first-solve check
        if self.progression.add_completed_challenge(db, submission.user_id, challenge.id):
            self.progression.increment_xp(db, submission.user_id, challenge.reward_xp)
            logger.info(f"Learner {submission.user_id} earned {challenge.reward_xp} XP for {challenge.id}")
        else:
            logger.info(f"Challenge {challenge.id} already solved by {submission.user_id}, no XP granted")

        db.commit()

    @staticmethod
    def _serialize_expected(expected: Any) -> Optional[str]:
        if expected is None or isinstance(expected, str):
            return expected
        return json.dumps(expected)


# Global instance
grading_service = GradingService()
