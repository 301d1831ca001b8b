"""
Credibility score: a 300–850 trust metric, read like a consumer credit score.

Five components, each 0–100, combined with fixed weights:
payment history 35%, transaction volume 30%, network activity 15%,
account age 10%, verification level 10%. Volume, network and age use log
scales so growth has diminishing returns.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from backend_quickpay.analysis_engine.history import UserHistory, to_datetime

BASE_SCORE = 300
MAX_SCORE = 850
COMPONENT_MIN = 0
COMPONENT_MAX = 100

WEIGHT_PAYMENT_HISTORY = 0.35
WEIGHT_TRANSACTION_VOLUME = 0.30
WEIGHT_NETWORK_ACTIVITY = 0.15
WEIGHT_ACCOUNT_AGE = 0.10
WEIGHT_VERIFICATION = 0.10

VOLUME_MULTIPLIER = 20
NETWORK_MULTIPLIER = 15
AGE_MULTIPLIER = 30
MAX_VERIFICATION_LEVEL = 2

LEVEL_EXCELLENT = "Excellent"
LEVEL_GOOD = "Good"
LEVEL_FAIR = "Fair"
LEVEL_BELOW_AVERAGE = "Below Average"
LEVEL_POOR = "Poor"

# (minimum total score, level), checked top-down
LEVEL_THRESHOLDS = (
    (750, LEVEL_EXCELLENT),
    (700, LEVEL_GOOD),
    (650, LEVEL_FAIR),
    (600, LEVEL_BELOW_AVERAGE),
)

SECONDS_PER_DAY = 86_400


@dataclass(frozen=True)
class ScoreComponents:
    payment_history: int = 0
    transaction_volume: int = 0
    network_activity: int = 0
    account_age: int = 0
    verification_level: int = 0

    def weighted_sum(self) -> float:
        return (
            self.payment_history * WEIGHT_PAYMENT_HISTORY
            + self.transaction_volume * WEIGHT_TRANSACTION_VOLUME
            + self.network_activity * WEIGHT_NETWORK_ACTIVITY
            + self.account_age * WEIGHT_ACCOUNT_AGE
            + self.verification_level * WEIGHT_VERIFICATION
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "paymentHistory": self.payment_history,
            "transactionVolume": self.transaction_volume,
            "networkActivity": self.network_activity,
            "accountAge": self.account_age,
            "verificationLevel": self.verification_level,
        }


@dataclass(frozen=True)
class CredibilityScore:
    total_score: int
    components: ScoreComponents
    level: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalScore": self.total_score,
            "components": self.components.to_dict(),
            "level": self.level,
        }


FLOOR_SCORE = CredibilityScore(total_score=BASE_SCORE, components=ScoreComponents(), level=LEVEL_POOR)


def _round(value: float) -> int:
    """Round half up (2.5 -> 3), not banker's rounding."""
    return int(math.floor(value + 0.5))


def _clamp(value: int, low: int = COMPONENT_MIN, high: int = COMPONENT_MAX) -> int:
    return max(low, min(high, value))


def score_level(total_score: int) -> str:
    for threshold, level in LEVEL_THRESHOLDS:
        if total_score >= threshold:
            return level
    return LEVEL_POOR


def payment_history_score(successful: int, total: int) -> int:
    if total <= 0:
        return 0
    return _clamp(_round(100 * max(0, successful) / total))


def transaction_volume_score(total_volume: float) -> int:
    return _clamp(_round(math.log10(max(0.0, total_volume) + 1) * VOLUME_MULTIPLIER))


def network_activity_score(unique_recipients: int) -> int:
    return _clamp(_round(math.log2(max(0, unique_recipients) + 1) * NETWORK_MULTIPLIER))


def account_age_score(age_days: int) -> int:
    return _clamp(_round(math.log10(max(1, age_days)) * AGE_MULTIPLIER))


def verification_score(level: int) -> int:
    level = max(0, min(MAX_VERIFICATION_LEVEL, int(level or 0)))
    return _round(level / MAX_VERIFICATION_LEVEL * 100)


def calculate_credibility_score(
    history: UserHistory | None,
    now: datetime | None = None,
) -> CredibilityScore:
    """
    Score a user's history. Total: never raises; None gives the floor score.

    Args:
        history: Transactions plus account metadata.
        now: Evaluation time (defaults to current UTC time); fixes account age in tests.

    Returns:
        CredibilityScore with total in [300, 850], five 0–100 components and a level.
    """
    if history is None:
        return FLOOR_SCORE
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    created = to_datetime(history.account_creation_date, default=now)
    age_days = math.floor((now - created).total_seconds() / SECONDS_PER_DAY)

    components = ScoreComponents(
        payment_history=payment_history_score(
            history.successful_transactions, len(history.transactions)
        ),
        transaction_volume=transaction_volume_score(history.total_volume),
        network_activity=network_activity_score(history.unique_recipients),
        account_age=account_age_score(age_days),
        verification_level=verification_score(history.verification_level),
    )
    total = _clamp(
        _round(BASE_SCORE + components.weighted_sum() * (MAX_SCORE - BASE_SCORE) / 100),
        BASE_SCORE,
        MAX_SCORE,
    )
    return CredibilityScore(total_score=total, components=components, level=score_level(total))
