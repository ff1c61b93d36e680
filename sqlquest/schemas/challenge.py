"""
Pydantic schemas for challenge-related requests and responses
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from datetime import datetime


class TestCase(BaseModel):
    """Reference query and its expected rows (JSON string or row list)"""
    input: Optional[str] = None
    expected_output: Optional[Any] = None
    is_hidden: bool = False


class Hint(BaseModel):
    text: str
    cost: int = Field(5, ge=0, description="XP cost to view the hint")


class ChallengeCreate(BaseModel):
    """Schema for creating a challenge"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    difficulty: str = Field(..., pattern="^(easy|medium|hard)$", description="Challenge difficulty")
    category: str = Field(..., pattern="^(basics|joins|subqueries|aggregation|advanced)$")
    initial_code: Optional[str] = None
    schema_sql: str = Field(..., min_length=1, description="DDL and seed data")
    test_cases: List[TestCase] = Field(..., min_length=1)
    hints: List[Hint] = []
    reward_xp: int = Field(10, ge=0)
    order: int = Field(..., ge=0)

    @field_validator("test_cases")
    @classmethod
    def require_visible_test_case(cls, test_cases: List[TestCase]) -> List[TestCase]:
        if all(tc.is_hidden for tc in test_cases):
            raise ValueError("At least one test case must be visible")
        return test_cases


class ChallengeUpdate(BaseModel):
    """Schema for updating a challenge; only the fields sent are changed"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    difficulty: Optional[str] = Field(None, pattern="^(easy|medium|hard)$")
    category: Optional[str] = Field(None, pattern="^(basics|joins|subqueries|aggregation|advanced)$")
    initial_code: Optional[str] = None
    schema_sql: Optional[str] = Field(None, min_length=1, description="Re-provisions the database when changed")
    test_cases: Optional[List[TestCase]] = Field(None, min_length=1)
    hints: Optional[List[Hint]] = None
    reward_xp: Optional[int] = Field(None, ge=0)
    order: Optional[int] = Field(None, ge=0)

    @field_validator("test_cases")
    @classmethod
    def require_visible_test_case(cls, test_cases: Optional[List[TestCase]]) -> Optional[List[TestCase]]:
        if test_cases is not None and all(tc.is_hidden for tc in test_cases):
            raise ValueError("At least one test case must be visible")
        return test_cases


class ChallengeResponse(BaseModel):
    """Challenge as shown to learners"""
    id: str
    title: str
    description: str
    difficulty: str
    category: str
    initial_code: Optional[str] = None
    schema_sql: str
    test_cases: List[TestCase]
    hints: List[Hint]
    reward_xp: int
    order: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class ChallengeListResponse(BaseModel):
    challenges: List[ChallengeResponse]
    pagination: Pagination
