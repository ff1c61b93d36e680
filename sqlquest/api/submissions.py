"""
Submission API endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import logging
import math

from sqlquest.database import get_db
from sqlquest.models import Submission
from sqlquest.schemas.challenge import Pagination
from sqlquest.schemas.submission import (
    SubmissionCreate,
    SubmissionResponse,
    SubmissionListResponse,
    FeedbackRequest,
    FeedbackResponse,
)
from sqlquest.services.gemini_service import gemini_service
from sqlquest.services.grading_service import (
    grading_service,
    SubmissionValidationError,
    ChallengeNotFoundError,
)


router = APIRouter(prefix="/api", tags=["submissions"])
logger = logging.getLogger(__name__)


@router.post("/submissions", response_model=SubmissionResponse)
async def submit_solution(submission: SubmissionCreate, db: Session = Depends(get_db)):
    """
    Submit and grade a solution

    Grading strategy:
    - Execute against the challenge database (5s timeout)
    - Exact, order- and type-sensitive comparison with the visible test case
    - AI tutoring feedback when the answer is incorrect
    - XP on the first correct solve only
    """
    try:
        return await grading_service.submit(
            db,
            challenge_id=submission.challenge_id,
            user_id=submission.user_id,
            code=submission.code,
        )
    except SubmissionValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ChallengeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Submission error: {str(e)}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Server error processing your submission")


@router.get("/submissions", response_model=SubmissionListResponse)
async def list_submissions(
    user_id: str,
    challenge_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List a learner's submissions, newest first"""
    query = db.query(Submission).filter(Submission.user_id == user_id)
    if challenge_id:
        query = query.filter(Submission.challenge_id == challenge_id)

    total = query.count()
    submissions = (
        query.order_by(Submission.created_at.desc(), Submission.attempts.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return SubmissionListResponse(
        submissions=[SubmissionResponse.model_validate(s) for s in submissions],
        pagination=Pagination(
            total=total, page=page, limit=limit, pages=math.ceil(total / limit)
        ),
    )


@router.get("/submissions/{submission_id}", response_model=SubmissionResponse)
async def get_submission(submission_id: str, db: Session = Depends(get_db)):
    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


@router.post("/feedback", response_model=FeedbackResponse)
async def generate_feedback(request: FeedbackRequest):
    """Standalone AI feedback for a query, its error or its result mismatch"""
    if request.error:
        feedback = await gemini_service.explain_error(request.query, request.error, request.schema_sql)
    else:
        feedback = await gemini_service.explain(
            request.query,
            request.actual_output,
            request.expected_output,
            request.schema_sql or "",
        )

    return FeedbackResponse(success=gemini_service.available, feedback=feedback)
