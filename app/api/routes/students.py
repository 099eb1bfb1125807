"""
Student API Endpoints

PATCH /api/v1/students/:id/profile - Edit grade level and parent contact
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from app.api.auth import CurrentUser, ensure_acts_as, require_roles
from app.domain.records import Role, StudentRecord
from app.services.backends import MarketplaceBackend, get_backend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/students", tags=["students"])


class StudentResponse(BaseModel):
    data: StudentRecord


class StudentProfileUpdateRequest(BaseModel):
    """Merge-patch of a student profile; omitted fields stay unchanged"""
    grade: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None


@router.patch("/{student_id}/profile", response_model=StudentResponse)
async def update_student_profile(
    request: StudentProfileUpdateRequest,
    student_id: str = Path(..., description="Student id"),
    user: CurrentUser = Depends(require_roles(Role.STUDENT, Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Update grade level or parent contact. Students may only edit their own profile."""
    ensure_acts_as(user, student_id)

    student = await backend.update_student_profile(
        student_id,
        grade=request.grade,
        parent_name=request.parent_name,
        parent_email=request.parent_email,
    )
    logger.info(f"Student {student_id} profile updated by {user.user_id}")
    return {"data": student}
