"""
Tests for the reward generator (distribution, ranges, fallback) and idempotent claims.
"""

from __future__ import annotations

import random
from collections import Counter
from unittest.mock import Mock

import pytest

ADDRESS = "0x" + "ab" * 20
TX_HASH = "0x" + "cd" * 32


def test_distribution_and_ranges():
    """Over many seeded draws each token is picked ~20% of the time and amounts stay in range."""
    from backend_quickpay.rewards import TOKEN_REWARDS, RewardGenerator

    generator = RewardGenerator(random.Random(1234))
    ranges = {t.currency: (t.min_amount, t.max_amount) for t in TOKEN_REWARDS}
    counts = Counter()
    draws = 100_000
    for _ in range(draws):
        reward = generator.generate()
        counts[reward.currency] += 1
        low, high = ranges[reward.currency]
        assert low <= float(reward.amount) <= high
        assert len(reward.amount.split(".")[1]) == 2
    assert set(counts) == set(ranges)
    for currency, count in counts.items():
        assert 0.19 <= count / draws <= 0.21, currency


def test_pick_token_cumulative_boundaries():
    """The first entry whose cumulative probability reaches the draw wins."""
    from backend_quickpay.rewards import RewardGenerator

    generator = RewardGenerator(random.Random(0))
    assert generator.pick_token(0.0).currency == "TRUMP"
    assert generator.pick_token(0.2).currency == "TRUMP"
    assert generator.pick_token(0.2000001).currency == "DAK"
    assert generator.pick_token(0.5).currency == "CHOG"
    assert generator.pick_token(1.0).currency == "GMON"


def test_pick_token_falls_back_to_last_entry():
    """When the table's mass does not reach the draw, the last entry is used."""
    from backend_quickpay.rewards import RewardGenerator, TokenReward

    table = (TokenReward("A", 0.1, 1, 2), TokenReward("B", 0.1, 1, 2))
    assert RewardGenerator(random.Random(0), table=table).pick_token(0.9).currency == "B"


def test_generate_with_injected_random():
    """Amount is min + r * (max - min), formatted to two decimals."""
    from backend_quickpay.rewards import RewardGenerator

    rng = Mock(spec=random.Random)
    rng.random.side_effect = [0.5, 1.0]
    reward = RewardGenerator(rng).generate()
    assert reward.currency == "CHOG"
    assert reward.amount == "3.00"


@pytest.fixture
def service(transaction_store, reward_store):
    from backend_quickpay.rewards import RewardGenerator, RewardService

    transaction_store.record_transaction(
        {"txHash": TX_HASH, "sender": ADDRESS, "recipient": "0x" + "22" * 20, "amount": "0.1"}
    )
    return RewardService(transaction_store, reward_store, RewardGenerator(random.Random(42)))


def test_claim_is_idempotent(service, reward_store):
    """The second claim returns the stored reward unchanged and creates nothing."""
    first = service.claim(ADDRESS, TX_HASH)
    second = service.claim(ADDRESS.upper().replace("0X", "0x"), TX_HASH)
    assert first.created is True
    assert second.created is False
    assert second.reward == first.reward
    assert first.reward["status"] == "claimed"
    assert first.reward["address"] == ADDRESS
    assert len(reward_store.list_rewards(ADDRESS)) == 1


def test_claim_unknown_transaction(service):
    """Claiming for a hash that was never stored is NotFoundError."""
    from backend_quickpay.core.exceptions import NotFoundError

    with pytest.raises(NotFoundError):
        service.claim(ADDRESS, "0xdoesnotexist")


def test_claim_missing_fields(service):
    """Blank address or transaction id is a ValidationError."""
    from backend_quickpay.core.exceptions import ValidationError

    with pytest.raises(ValidationError):
        service.claim("", TX_HASH)
    with pytest.raises(ValidationError):
        service.claim(ADDRESS, "  ")


def test_claim_race_returns_stored_reward(service, reward_store):
    """Losing the insert race (unique violation) returns the winner's reward."""
    winner = service.claim(ADDRESS, TX_HASH).reward
    service.rewards = Mock(wraps=reward_store)
    service.rewards.find_reward.side_effect = [None, winner]

    result = service.claim(ADDRESS, TX_HASH)
    assert result.created is False
    assert result.reward == winner
    service.rewards.create_reward.assert_called_once()


def test_eligible_transactions_exclude_rewarded(service, transaction_store):
    """Once claimed, a transaction is no longer eligible."""
    other = "0x" + "ef" * 32
    transaction_store.record_transaction(
        {"txHash": other, "sender": "0x" + "33" * 20, "recipient": ADDRESS, "amount": "1", "timestamp": 5}
    )
    assert {tx["txHash"] for tx in service.eligible_transactions(ADDRESS)} == {TX_HASH, other}
    service.claim(ADDRESS, TX_HASH)
    assert [tx["txHash"] for tx in service.eligible_transactions(ADDRESS)] == [other]
