"""
Weighted-random reward generator.

Pick a token by walking the table until the cumulative probability reaches a
uniform draw, then draw an amount uniformly in the token's range. The random
source is injectable so tests can seed it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenReward:
    currency: str
    probability: float
    min_amount: float
    max_amount: float


@dataclass(frozen=True)
class GeneratedReward:
    currency: str
    amount: str  # two decimal places


TOKEN_REWARDS: tuple[TokenReward, ...] = (
    TokenReward("TRUMP", 0.20, 0.5, 2.5),
    TokenReward("DAK", 0.20, 1.0, 5.0),
    TokenReward("CHOG", 0.20, 0.75, 3.0),
    TokenReward("MOYAKI", 0.20, 1.5, 4.0),
    TokenReward("GMON", 0.20, 0.5, 2.0),
)


class RewardGenerator:
    def __init__(
        self,
        rng: random.Random | None = None,
        table: tuple[TokenReward, ...] = TOKEN_REWARDS,
    ) -> None:
        if not table:
            raise ValueError("reward table must not be empty")
        self.rng = rng or random.Random()
        self.table = table

    def pick_token(self, draw: float) -> TokenReward:
        """First entry whose cumulative probability is >= draw; last entry if rounding runs out."""
        cumulative = 0.0
        for token in self.table:
            cumulative += token.probability
            if draw <= cumulative:
                return token
        return self.table[-1]

    def generate(self) -> GeneratedReward:
        token = self.pick_token(self.rng.random())
        amount = token.min_amount + self.rng.random() * (token.max_amount - token.min_amount)
        return GeneratedReward(currency=token.currency, amount=f"{amount:.2f}")
