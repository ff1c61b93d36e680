"""
Challenge API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging
import math

from sqlquest.database import get_db
from sqlquest.models import Challenge
from sqlquest.schemas.challenge import (
    ChallengeCreate,
    ChallengeUpdate,
    ChallengeResponse,
    ChallengeListResponse,
    Pagination,
)
from sqlquest.services.challenge_service import challenge_service, ProvisioningError
from sqlquest.utils.cache import cache_service


router = APIRouter(prefix="/api/challenges", tags=["challenges"])
logger = logging.getLogger(__name__)


def _to_response(challenge: Challenge, strip_all_expected: bool = False) -> ChallengeResponse:
    """Serialize a challenge without leaking expected outputs learners should not see"""
    response = ChallengeResponse.model_validate(challenge)
    for test_case in response.test_cases:
        if strip_all_expected or test_case.is_hidden:
            test_case.expected_output = None
    return response


@router.get("/", response_model=ChallengeListResponse)
async def list_challenges(
    difficulty: Optional[str] = Query(None, pattern="^(easy|medium|hard)$"),
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    List challenges ordered by curriculum position

    - Optional difficulty and category filters
    - Expected outputs are never included in listings
    """
    cache_key = cache_service.challenge_list_key(difficulty, category, page, limit)
    cached = cache_service.get(cache_key)
    if cached:
        return ChallengeListResponse(**cached)

    query = db.query(Challenge)
    if difficulty:
        query = query.filter(Challenge.difficulty == difficulty)
    if category:
        query = query.filter(Challenge.category == category)

    total = query.count()
    challenges = (
        query.order_by(Challenge.order)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    response = ChallengeListResponse(
        challenges=[_to_response(c, strip_all_expected=True) for c in challenges],
        pagination=Pagination(
            total=total, page=page, limit=limit, pages=math.ceil(total / limit)
        ),
    )

    cache_service.set(cache_key, response.model_dump(mode="json"))
    return response


@router.get("/{challenge_id}", response_model=ChallengeResponse)
async def get_challenge(challenge_id: str, db: Session = Depends(get_db)):
    """Get a challenge; hidden test cases have their expected output removed"""
    challenge = challenge_service.get_challenge(db, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")

    return _to_response(challenge)


@router.post("/", response_model=ChallengeResponse, status_code=201)
async def create_challenge(request: ChallengeCreate, db: Session = Depends(get_db)):
    """
    Create a challenge

    - Provisions a fresh SQLite database from the schema script
    - Stores the challenge with a reference to that database
    """
    try:
        challenge = await challenge_service.create_challenge(db, request.model_dump())
    except ProvisioningError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Create challenge error: {str(e)}")
        raise HTTPException(status_code=500, detail="Server error creating challenge")

    cache_service.clear_challenge_cache()
    return _to_response(challenge)


@router.put("/{challenge_id}", response_model=ChallengeResponse)
async def update_challenge(challenge_id: str, request: ChallengeUpdate, db: Session = Depends(get_db)):
    """
    Update a challenge

    - Only the fields sent are changed
    - A new schema script re-provisions the challenge database
    """
    challenge = challenge_service.get_challenge(db, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")

    try:
        challenge = await challenge_service.update_challenge(
            db, challenge, request.model_dump(exclude_unset=True)
        )
    except ProvisioningError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Update challenge error: {str(e)}")
        raise HTTPException(status_code=500, detail="Server error updating challenge")

    cache_service.clear_challenge_cache()
    return _to_response(challenge)


@router.post("/{challenge_id}/reset")
async def reset_challenge(challenge_id: str, db: Session = Depends(get_db)):
    """Rebuild a challenge database from its schema"""
    challenge = challenge_service.get_challenge(db, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")

    if not await challenge_service.reset_challenge(challenge):
        raise HTTPException(status_code=500, detail="Failed to reset challenge database")

    cache_service.clear_challenge_cache()
    return {"message": "Challenge database reset successfully"}


@router.delete("/{challenge_id}")
async def delete_challenge(challenge_id: str, db: Session = Depends(get_db)):
    """Delete a challenge and its database"""
    challenge = challenge_service.get_challenge(db, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")

    try:
        await challenge_service.delete_challenge(db, challenge)
    except Exception as e:
        logger.error(f"Delete challenge error: {str(e)}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Server error deleting challenge")

    cache_service.clear_challenge_cache()
    return {"message": "Challenge deleted successfully"}
