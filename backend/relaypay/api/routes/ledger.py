"""Ledger Routes — balances, top-ups, transfers, QR payments, transaction history.

Invariants:
    - Request bodies validated by Pydantic before reaching the handler (→ 400)
    - Domain failures raise RelayPayError subclasses, mapped to 400 by the global handler
    - Routes never contain business logic (delegate to LedgerService)
"""

import logging

from fastapi import APIRouter, Depends, Query

from relaypay.core.errors import InputValidationError
from relaypay.schemas.ledger import PaymentRequest, TopupRequest, TransferRequest
from relaypay.services.hub import RealtimeHub, get_hub

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["ledger"])


@router.get("/balance/{user_id}")
async def get_balance(user_id: str, hub: RealtimeHub = Depends(get_hub)):
    """Current balance; creates a zero-balance account on first query."""
    return hub.ledger.balance(user_id)


@router.post("/topup")
async def top_up(body: TopupRequest, hub: RealtimeHub = Depends(get_hub)):
    return hub.ledger.top_up(body.user_id, body.amount)


@router.get("/transactions/{user_id}")
async def list_transactions(
    user_id: str,
    limit: int | None = Query(None, ge=1),
    hub: RealtimeHub = Depends(get_hub),
):
    """Newest first. limit defaults to and is capped by the hub settings."""
    settings = hub.settings
    if limit is None:
        limit = settings.transactions_default_limit
    elif limit > settings.transactions_max_limit:
        raise InputValidationError(
            f"limit must not exceed {settings.transactions_max_limit}", "limit",
        )
    return hub.ledger.transactions(user_id, limit)


@router.get("/users/online")
async def online_users(hub: RealtimeHub = Depends(get_hub)):
    """Identities currently bound on the ledger socket."""
    return hub.ledger.online_users()


@router.post("/transfer")
async def transfer(body: TransferRequest, hub: RealtimeHub = Depends(get_hub)):
    return hub.ledger.transfer(
        body.from_user_id, body.to_user_id, body.amount, body.description,
    )


@router.post("/payment")
async def payment(body: PaymentRequest, hub: RealtimeHub = Depends(get_hub)):
    """QR payment: debits the payer, confirms to the till (kassa)."""
    return hub.ledger.payment(
        body.from_user_id, body.store_name, body.amount, body.kassa_id,
    )
