"""Public testimonial endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from mwarex.api.dependencies_async import get_async_feedback_repo
from mwarex.api.schemas import FeedbackRequest, FeedbackResponse
from mwarex.observability.logging import get_logger
from mwarex.storage.repositories import FeedbackRepository

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/feedback", tags=["Feedback"])


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=201,
    summary="Submit a testimonial",
)
async def create_feedback(
    request: FeedbackRequest,
    feedback_repo: FeedbackRepository = Depends(get_async_feedback_repo),
) -> FeedbackResponse:
    feedback = await feedback_repo.create_async(
        rating=request.rating,
        message=request.message,
        name=request.name,
        role=request.role,
        avatar_url=request.avatar_url,
    )
    await feedback_repo.session.commit()
    return FeedbackResponse(**feedback.to_dict())


@router.get(
    "",
    response_model=list[FeedbackResponse],
    summary="List testimonials, newest first",
)
async def list_feedback(
    limit: int = Query(100, ge=1, le=500),
    feedback_repo: FeedbackRepository = Depends(get_async_feedback_repo),
) -> list[FeedbackResponse]:
    return [FeedbackResponse(**f.to_dict()) for f in await feedback_repo.list_async(limit)]


__all__ = ["router"]
