"""
Pydantic schemas for submission requests and responses
"""
from pydantic import BaseModel
from typing import Any, List, Optional
from datetime import datetime

from sqlquest.schemas.challenge import Pagination


class SubmissionCreate(BaseModel):
    """
    Schema for a submission

    Fields are optional so that missing values reach the grading
    service and come back as a 400 rather than a validation 422.
    """
    challenge_id: Optional[str] = None
    user_id: Optional[str] = None
    code: Optional[str] = None


class SubmissionResponse(BaseModel):
    """Graded submission"""
    id: str
    user_id: str
    challenge_id: str
    code: str
    success: bool
    output: Optional[str] = None
    expected_output: Optional[str] = None
    execution_time: int
    error: Optional[str] = None
    is_correct: bool
    ai_feedback: Optional[str] = None
    feedback_generation_time: Optional[int] = None
    attempts: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionListResponse(BaseModel):
    submissions: List[SubmissionResponse]
    pagination: Pagination


class FeedbackRequest(BaseModel):
    """Standalone tutoring request"""
    query: str
    expected_output: Optional[Any] = None
    actual_output: Optional[Any] = None
    error: Optional[str] = None
    schema_sql: Optional[str] = None


class FeedbackResponse(BaseModel):
    success: bool
    feedback: str
