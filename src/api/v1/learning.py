"""
Learning endpoints - progress, XP, level table and challenge submission.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status

from src.api.deps import (
    CurrentIdentity,
    Records,
    Repository,
    RequireProgressRead,
    RequireProgressUpdate,
    Submissions,
)
from src.engines.content import ProgressUpdate
from src.engines.scoring import next_level
from src.engines.scoring.submission import QuizResult
from src.kernel.models.content import ContentKind
from src.kernel.models.progress import ProgressStatus
from src.schemas.progress import (
    ProgressResponse,
    ProgressUpdateRequest,
    QuizSubmitRequest,
    UserLevelProgressResponse,
    UserXPResponse,
    XPLevelResponse,
)

router = APIRouter()


@router.get("/progress", response_model=List[ProgressResponse])
async def get_my_progress(
    identity: CurrentIdentity,
    _: RequireProgressRead,
    records: Records,
    content_id: Optional[uuid.UUID] = None,
):
    """Current user's progress records, optionally for one content item."""
    return await records.get_user_progress(identity.user_id, content_id)


@router.put("/progress/{content_id}", response_model=ProgressResponse)
async def update_my_progress(
    content_id: uuid.UUID,
    body: ProgressUpdateRequest,
    identity: CurrentIdentity,
    _: RequireProgressUpdate,
    records: Records,
    repo: Repository,
):
    """
    Record reading/viewing progress. Challenges are completed through
    submission only; completing a lesson awards its XP.
    """
    if body.content_type == ContentKind.CHALLENGE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Challenge progress is recorded by submitting the challenge",
        )
    node = await repo.get_node(body.content_type, content_id)
    if node is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")

    xp_earned = None
    if body.content_type == ContentKind.LESSON and body.status == ProgressStatus.COMPLETED:
        xp_earned = node.xp_reward

    return await records.update_progress(
        identity.user_id,
        content_id,
        body.content_type,
        ProgressUpdate(
            status=body.status,
            completion_percentage=body.completion_percentage,
            time_spent=body.time_spent,
            xp_earned=xp_earned,
        ),
    )


@router.get("/xp", response_model=Optional[UserLevelProgressResponse])
async def get_my_xp(identity: CurrentIdentity, records: Records):
    """XP, level and streaks; null before the first activity."""
    xp = await records.get_user_xp(identity.user_id)
    if xp is None:
        return None
    upcoming = next_level(xp.total_xp, await records.get_xp_levels())
    return UserLevelProgressResponse(
        **UserXPResponse.model_validate(xp).model_dump(),
        next_level_title=upcoming.title if upcoming else None,
        xp_to_next_level=upcoming.xp_required - xp.total_xp if upcoming else None,
    )


@router.get("/levels", response_model=List[XPLevelResponse])
async def get_xp_levels(records: Records):
    """The XP level table, ascending."""
    return await records.get_xp_levels()


@router.post("/challenges/{challenge_id}/submit", response_model=QuizResult)
async def submit_challenge(
    challenge_id: uuid.UUID,
    body: QuizSubmitRequest,
    _: RequireProgressUpdate,
    submissions: Submissions,
):
    """Grade an attempt and record progress, XP, completions and certificates."""
    return await submissions.submit(challenge_id, body.answers, body.time_spent)
