"""
decentranet/api/tokens.py
-------------------------
Research token balances, history, transfers and reputation lookups.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import Field

from ..runtime.reputation import ReputationBook
from ..runtime.tokens import TokenLedger
from .common import Body, core_errors, current_fid, service

router = APIRouter(tags=["tokens"])


def _tokens(request: Request) -> TokenLedger:
    return service(request, "tokens")


class TransferBody(Body):
    to_fid: int
    amount: float = Field(..., gt=0)
    reason: str = "other"
    contribution_id: Optional[str] = None


@router.get("/tokens/balance/{fid}")
def get_balance(fid: int, request: Request):
    with core_errors():
        balance = _tokens(request).balance(fid)
    return {"ok": True, "fid": fid, "balance": balance}


@router.get("/tokens/history/{fid}")
def get_history(fid: int, request: Request, limit: Optional[int] = Query(None, ge=1, le=500)):
    with core_errors():
        txs = _tokens(request).history(fid, limit)
    return {"ok": True, "fid": fid, "transactions": [tx.to_json_dict() for tx in txs]}


@router.post("/tokens/transfer")
def transfer(payload: TransferBody, request: Request, fid: int = Depends(current_fid)):
    with core_errors():
        ledger = _tokens(request)
        tx = ledger.transfer(
            fid,
            payload.to_fid,
            payload.amount,
            reason=payload.reason,
            contribution_id=payload.contribution_id,
        )
        balance = ledger.balance(fid)
    return {"ok": True, "transaction": tx.to_json_dict(), "balance": balance}


@router.get("/reputation/{fid}")
def get_reputation(fid: int, request: Request):
    book: ReputationBook = service(request, "reputation")
    with core_errors():
        rep = book.get(fid)
    return {"ok": True, "reputation": rep.to_json_dict()}
