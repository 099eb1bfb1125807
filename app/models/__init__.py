"""SQLAlchemy ORM Models for the TutorHub Database Schema"""
from app.models.user import User
from app.models.tutor import Tutor
from app.models.student import Student
from app.models.session import Session
from app.models.payment import Payment

__all__ = [
    "User",
    "Tutor",
    "Student",
    "Session",
    "Payment",
]
