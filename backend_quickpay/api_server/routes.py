"""
API route definitions.

Responsibilities:
- Transactions: list by address (history view), store a confirmed payment.
- Rewards: list, list eligible transactions, claim (idempotent).
- Profile: credibility score, achievements and statistics for an address.
- Chat: one assistant turn for a session.
- Validate request params and delegate to the stores and services on app.state.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from backend_quickpay.analysis_engine import (
    UserHistory,
    calculate_credibility_score,
    get_transaction_stats,
    get_user_achievements,
)
from backend_quickpay.analysis_engine.history import STATUS_COMPLETED
from backend_quickpay.api_server.schemas import ChatRequest, ClaimRewardRequest, TransactionRequest
from backend_quickpay.assistant.sessions import SessionRegistry
from backend_quickpay.core.exceptions import NotFoundError, ValidationError
from backend_quickpay.database.repositories import RewardStore, TransactionStore, format_transaction
from backend_quickpay.quickpay_logging import get_logger
from backend_quickpay.rewards.service import RewardService

logger = get_logger(__name__)

router = APIRouter()

ADDRESS_REQUIRED = "Address parameter is required"


def _short(value: str) -> str:
    return value[:16] + "..." if len(value) > 16 else value


def _require_address(address: str | None) -> str:
    address = (address or "").strip()
    if not address:
        raise HTTPException(status_code=400, detail=ADDRESS_REQUIRED)
    return address


def _transactions(request: Request) -> TransactionStore:
    return request.app.state.transactions


def _rewards(request: Request) -> RewardStore:
    return request.app.state.rewards


def _reward_service(request: Request) -> RewardService:
    return request.app.state.reward_service


# -----------------------------------------------------------------------------
# Transactions
# -----------------------------------------------------------------------------


@router.get("/transactions")
def list_transactions(request: Request, address: str | None = Query(None)) -> dict[str, Any]:
    """Transactions sent or received by address, newest first, in the history-view shape."""
    address = _require_address(address)
    try:
        rows = _transactions(request).list_transactions(address)
        transactions = [format_transaction(tx, address) for tx in rows]
    except Exception as e:
        logger.exception("api_transactions_list_failed", address=_short(address), error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch transactions") from e
    return {"transactions": transactions}


@router.post("/transactions")
def store_transaction(request: Request, body: TransactionRequest) -> dict[str, Any]:
    """
    Store a confirmed payment. Idempotent by txHash: a repeat write returns
    alreadyExists=true and leaves the stored row unchanged.
    """
    try:
        result = _transactions(request).record_transaction(body.to_payload())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.exception("api_transaction_store_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to store transaction") from e
    if result.already_exists:
        return {"success": True, "alreadyExists": True, "message": "Transaction already exists"}
    return {"success": True, "message": "Transaction stored successfully", "id": result.tx_hash}


# -----------------------------------------------------------------------------
# Rewards
# -----------------------------------------------------------------------------


@router.get("/rewards")
def list_rewards(request: Request, address: str | None = Query(None)) -> dict[str, Any]:
    address = _require_address(address)
    try:
        rewards = _rewards(request).list_rewards(address)
    except Exception as e:
        logger.exception("api_rewards_list_failed", address=_short(address), error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch rewards") from e
    return {"rewards": rewards}


@router.get("/rewards/eligible")
def list_eligible_transactions(request: Request, address: str | None = Query(None)) -> dict[str, Any]:
    """Transactions of address with no reward claimed yet."""
    address = _require_address(address)
    try:
        eligible = _reward_service(request).eligible_transactions(address)
    except Exception as e:
        logger.exception("api_rewards_eligible_failed", address=_short(address), error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch eligible transactions") from e
    return {"transactions": eligible}


@router.post("/rewards/claim")
def claim_reward(request: Request, body: ClaimRewardRequest) -> JSONResponse:
    """
    Claim the reward for a transaction. 201 when a reward is created, 200 with
    the stored reward when it was already claimed.
    """
    try:
        result = _reward_service(request).claim(body.address or "", body.transaction_id or "")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception("api_reward_claim_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to claim reward") from e

    if result.created:
        logger.info(
            "api_reward_claimed",
            address=_short(result.reward["address"]),
            currency=result.reward["currency"],
        )
        return JSONResponse(
            status_code=201,
            content={"success": True, "message": "Reward claimed successfully", "reward": result.reward},
        )
    return JSONResponse(
        status_code=200,
        content={"message": "Reward already claimed for this transaction", "reward": result.reward},
    )


# -----------------------------------------------------------------------------
# Profile
# -----------------------------------------------------------------------------


@router.get("/profile/{address}")
def get_profile(
    request: Request,
    address: str,
    verification_level: int = Query(1, ge=0, le=2),
) -> dict[str, Any]:
    """
    Credibility score, achievements and statistics derived from the stored history.

    Stored transactions are confirmed on chain, so each counts as completed.
    """
    address = _require_address(address)
    try:
        rows = _transactions(request).list_transactions(address)
    except Exception as e:
        logger.exception("api_profile_failed", address=_short(address), error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load profile") from e

    history = UserHistory.from_transactions(
        [{**tx, "status": STATUS_COMPLETED} for tx in rows],
        verification_level=verification_level,
    )
    score = calculate_credibility_score(history)
    return {
        "address": address.lower(),
        "credibility": score.to_dict(),
        "achievements": [a.to_dict() for a in get_user_achievements(history)],
        "stats": get_transaction_stats(history).to_dict(),
    }


# -----------------------------------------------------------------------------
# Chat
# -----------------------------------------------------------------------------


@router.post("/chat")
def chat(request: Request, body: ChatRequest) -> dict[str, Any]:
    """
    One assistant turn. Replies and the session's payment context are returned;
    payment failures are reported as chat messages, not HTTP errors.
    """
    sessions: SessionRegistry | None = request.app.state.sessions
    if sessions is None:
        raise HTTPException(status_code=503, detail="Payments are not configured")
    try:
        replies, context = sessions.get(body.session_id).handle(body.message)
    except Exception as e:
        logger.exception("api_chat_failed", session_id=body.session_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to process message") from e
    return {"messages": [m.to_dict() for m in replies], "context": context}
