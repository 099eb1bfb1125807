"""
Payment API Endpoints

POST /api/v1/payments/:id/student-paid - Record that the student paid
POST /api/v1/payments/:id/tutor-paid - Record the tutor payout
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel

from app.api.auth import CurrentUser, require_roles
from app.domain.records import PaymentRecord, Role
from app.services.backends import MarketplaceBackend, get_backend

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


class PaymentResponse(BaseModel):
    data: PaymentRecord


@router.post("/{payment_id}/student-paid", response_model=PaymentResponse)
async def mark_student_paid(
    payment_id: str = Path(..., description="Payment id"),
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """Flip student_paid; marking an already-paid payment changes nothing"""
    payment = await backend.mark_student_paid(payment_id)
    logger.info(f"Payment {payment_id} student_paid recorded by {user.user_id}")
    return {"data": payment}


@router.post("/{payment_id}/tutor-paid", response_model=PaymentResponse)
async def mark_tutor_paid(
    payment_id: str = Path(..., description="Payment id"),
    user: CurrentUser = Depends(require_roles(Role.ADMIN)),
    backend: MarketplaceBackend = Depends(get_backend),
) -> Dict[str, Any]:
    """
    Flip tutor_paid.

    Raises:
        409: The payment has no charge (no-show), so there is nothing to pay out
    """
    payment = await backend.mark_tutor_paid(payment_id)
    logger.info(f"Payment {payment_id} tutor payout recorded by {user.user_id}")
    return {"data": payment}
