"""
Learner progression service
XP and completed-challenge bookkeeping driven by grading
"""
import logging
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlquest.models import CompletedChallenge, Submission, User

logger = logging.getLogger(__name__)


class ProgressionService:
    """Learner progression reads and writes used by the grading flow"""

    def ensure_user(self, db: Session, user_id: str) -> User:
        """Return the learner's progression row, creating it on first sight"""
        user = db.query(User).filter(User.id == user_id).first()
        if user is None:
            user = User(id=user_id, xp=0, level=1)
            db.add(user)
            db.flush()
            logger.info(f"Created progression record for learner {user_id}")
        return user

    def increment_xp(self, db: Session, user_id: str, amount: int) -> None:
        """Atomic XP increment, evaluated by the database"""
        db.query(User).filter(User.id == user_id).update(
            {User.xp: User.xp + amount},
            synchronize_session=False
        )

    def add_completed_challenge(self, db: Session, user_id: str, challenge_id: str) -> bool:
        """
        Idempotent insert into the learner's completed set

        Returns:
            True if the row was inserted, False if it already existed
        """
        dialect = db.get_bind().dialect.name

        if dialect in ("sqlite", "postgresql"):
            if dialect == "sqlite":
                from sqlalchemy.dialects.sqlite import insert
            else:
                from sqlalchemy.dialects.postgresql import insert

            statement = insert(CompletedChallenge).values(
                user_id=user_id,
                challenge_id=challenge_id
            ).on_conflict_do_nothing(index_elements=["user_id", "challenge_id"])
            result = db.execute(statement)
            return result.rowcount == 1

        exists = db.query(CompletedChallenge).filter(
            CompletedChallenge.user_id == user_id,
            CompletedChallenge.challenge_id == challenge_id
        ).first()
        if exists:
            return False

        db.add(CompletedChallenge(user_id=user_id, challenge_id=challenge_id))
        db.flush()
        return True

    def count_submissions(
        self,
        db: Session,
        user_id: str,
        challenge_id: str,
        correct_only: bool = False
    ) -> int:
        """Count a learner's submissions for one challenge"""
        query = db.query(func.count(Submission.id)).filter(
            Submission.user_id == user_id,
            Submission.challenge_id == challenge_id
        )
        if correct_only:
            query = query.filter(Submission.is_correct.is_(True))

        return query.scalar() or 0

    def get_progress(self, db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()


# Global instance
progression_service = ProgressionService()
