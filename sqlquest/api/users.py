"""
Learner progression API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sqlquest.database import get_db
from sqlquest.schemas.user import ProgressResponse
from sqlquest.services.progression_service import progression_service


router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/{user_id}/progress", response_model=ProgressResponse)
async def get_progress(user_id: str, db: Session = Depends(get_db)):
    """XP total and completed challenges for a learner"""
    user = progression_service.get_progress(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    return ProgressResponse(
        user_id=user.id,
        xp=user.xp,
        level=user.level,
        completed_challenges=user.completed_challenges,
    )
