"""
Rewards: random token rewards claimed once per transaction.
"""

from backend_quickpay.rewards.generator import TOKEN_REWARDS, GeneratedReward, RewardGenerator, TokenReward
from backend_quickpay.rewards.service import ClaimResult, RewardService

__all__ = [
    "ClaimResult",
    "GeneratedReward",
    "RewardGenerator",
    "RewardService",
    "TOKEN_REWARDS",
    "TokenReward",
]
