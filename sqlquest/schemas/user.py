"""
Pydantic schemas for learner progression
"""
from pydantic import BaseModel
from typing import List


class ProgressResponse(BaseModel):
    """Learner XP and completed challenges"""
    user_id: str
    xp: int
    level: int
    completed_challenges: List[str]
