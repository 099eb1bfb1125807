"""
Tutor API Endpoints

GET /api/v1/tutors - Browse approved tutors by subject and grade
PATCH /api/v1/tutors/:id/profile - Edit a tutor profile
POST /api/v1/tutors/:id/approve - Admin approval of a new tutor
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from app.api.auth import CurrentUser, ensure_acts_as, get_current_user, require_roles
from app.domain.records import Role, SubjectOffering, TutorRecord
from app.services.backends import MarketplaceBackend, get_backend
from app.services.filters import filter_tutors_by_grade, filter_tutors_by_subject, visible_tutors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tutors", tags=["tutors"])


class TutorListResponse(BaseModel):
    """Response for GET /tutors"""
    data: List[TutorRecord]
    metadata: Dict[str, Any]


class TutorResponse(BaseModel):
    """Single tutor wrapper"""
    data: TutorRecord


class ProfileUpdateRequest(BaseModel):
    """Merge-patch of a tutor profile; omitted fields stay unchanged"""
    bio: Optional[str] = None
    subjects: Optional[List[SubjectOffering]] = None
    calendly_link: Optional[str] = None


@router.get("", response_model=TutorListResponse)
async def list_tutors(
    subject: Optional[str] = Query(None, description="Subject name, or 'all'"),
    grade: Optional[str] = Query(None, description="Grade level such as G10, or 'all'"),
    include_pending: bool = Query(False, description="Admins only: include tutors awaiting approval"),
    user: CurrentUser = Depends(get_current_user),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """
    Browse tutors.

    Students and tutors only ever see approved tutors; admins may ask for
    pending ones too.
    """
    state = await backend.snapshot()
    tutors = list(state.tutors)
    if not (include_pending and user.role == Role.ADMIN):
        tutors = visible_tutors(tutors)

    tutors = filter_tutors_by_grade(filter_tutors_by_subject(tutors, subject), grade)

    return {
        "data": tutors,
        "metadata": {
            "count": len(tutors),
            "subject": subject or "all",
            "grade": grade or "all",
        },
    }


@router.patch("/{tutor_id}/profile", response_model=TutorResponse)
async def update_tutor_profile(
    request: ProfileUpdateRequest,
    tutor_id: str = Path(..., description="Tutor id"),
    user: CurrentUser = Depends(require_roles(Role.TUTOR, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Update bio, subjects or scheduling link. Tutors may only edit their own profile."""
    ensure_acts_as(user, tutor_id)

    tutor = await backend.update_tutor_profile(
        tutor_id,
        bio=request.bio,
        subjects=request.subjects,
        calendly_link=request.calendly_link,
    )
    return {"data": tutor}


@router.post("/{tutor_id}/approve", response_model=TutorResponse)
async def approve_tutor(
    tutor_id: str = Path(..., description="Tutor id"),
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Make a tutor visible and bookable"""
    tutor = await backend.approve_tutor(tutor_id)
    logger.info(f"Tutor {tutor_id} approved by {user.user_id}")
    return {"data": tutor}
