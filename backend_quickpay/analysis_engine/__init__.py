"""
Analysis engine: credibility score, achievements and statistics from payment history.

All functions are pure: same history and clock give the same result.
"""

from backend_quickpay.analysis_engine.achievements import (
    Achievement,
    TransactionStats,
    get_transaction_stats,
    get_user_achievements,
)
from backend_quickpay.analysis_engine.credibility import (
    CredibilityScore,
    ScoreComponents,
    calculate_credibility_score,
)
from backend_quickpay.analysis_engine.history import UserHistory

__all__ = [
    "Achievement",
    "CredibilityScore",
    "ScoreComponents",
    "TransactionStats",
    "UserHistory",
    "calculate_credibility_score",
    "get_transaction_stats",
    "get_user_achievements",
]
