"""
Challenge model - a graded SQL exercise backed by its own SQLite database
"""
from sqlalchemy import Column, String, Integer, Text, TIMESTAMP, JSON, func
from sqlquest.database import Base
import uuid


class Challenge(Base):
    """
    Challenges table - schema script, database file reference and test cases
    """
    __tablename__ = "challenges"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    difficulty = Column(String(20), nullable=False)  # easy / medium / hard
    category = Column(String(50), nullable=False, index=True)
    initial_code = Column(Text, default="-- Write your SQL query here")
    schema_sql = Column(Text, nullable=False)  # DDL + seed data
    database_file = Column(String(255), nullable=False, unique=True)
    test_cases = Column(JSON, nullable=False, default=list)  # [{"input", "expected_output", "is_hidden"}]
    hints = Column(JSON, nullable=False, default=list)  # [{"text", "cost"}]
    reward_xp = Column(Integer, nullable=False, default=10)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    def visible_test_case(self):
        """First non-hidden test case, the one interactive grading runs against"""
        for test_case in self.test_cases or []:
            if not test_case.get("is_hidden", False):
                return test_case
        return None

    def __repr__(self):
        return f"<Challenge(id={self.id}, title={self.title})>"
