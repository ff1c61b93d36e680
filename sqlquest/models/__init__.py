"""
Database models package
"""
from sqlquest.models.challenge import Challenge
from sqlquest.models.submission import Submission
from sqlquest.models.user import User, CompletedChallenge

__all__ = ["Challenge", "Submission", "User", "CompletedChallenge"]
