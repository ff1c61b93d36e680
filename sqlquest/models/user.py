"""
Learner progression models - XP and the completed-challenge set
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from sqlquest.database import Base
import uuid


class User(Base):
    """
    Users table - only the fields grading touches
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(30), unique=True)
    xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    created_at = Column(TIMESTAMP, server_default=func.now())

    completed = relationship("CompletedChallenge", cascade="all, delete-orphan", lazy="selectin")

    @property
    def completed_challenges(self):
        return [entry.challenge_id for entry in self.completed]

    def __repr__(self):
        return f"<User(id={self.id}, xp={self.xp})>"


class CompletedChallenge(Base):
    """
    Completed challenges - one row per (learner, challenge), never duplicated
    """
    __tablename__ = "completed_challenges"
    __table_args__ = (UniqueConstraint("user_id", "challenge_id", name="uq_completed_user_challenge"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    challenge_id = Column(String(36), nullable=False)
    completed_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<CompletedChallenge(user_id={self.user_id}, challenge_id={self.challenge_id})>"
