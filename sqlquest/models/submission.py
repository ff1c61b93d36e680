"""
Submission model - one graded attempt at a challenge
"""
from sqlalchemy import Column, String, Integer, Boolean, Text, TIMESTAMP, ForeignKey, func
from sqlquest.database import Base
import uuid


class Submission(Base):
    """
    Submissions table - execution result, correctness and tutoring feedback
    """
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    challenge_id = Column(String(36), ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(Text, nullable=False)

    # Execution result
    success = Column(Boolean, nullable=False, default=False)
    output = Column(Text)  # JSON-serialised rows
    expected_output = Column(Text)  # snapshot of the visible test case
    execution_time = Column(Integer, nullable=False, default=0)  # ms
    error = Column(Text)

    is_correct = Column(Boolean, nullable=False, default=False)
    ai_feedback = Column(Text)
    feedback_generation_time = Column(Integer)  # ms
    attempts = Column(Integer, nullable=False, default=1)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Submission(user_id={self.user_id}, challenge_id={self.challenge_id}, correct={self.is_correct})>"
