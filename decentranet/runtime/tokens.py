"""
decentranet/runtime/tokens.py
-----------------------------

Research token ledger.

Balances are never stored: they are derived from the transaction log in
the `token-transactions` collection.

- award() mints tokens from the system (fromFid absent) or credits a
  reward paid by another user (fromFid set, e.g. an upvote).
- transfer() moves tokens between users and requires a sufficient
  balance.

Invariant: for every fid, balance(fid) == sum(incoming) - sum(outgoing).
transfer() never drives the sender below zero. award() with a from_fid
(upvote and nomination rewards) does not check the payer's balance, so
that payer can go negative.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, List, Optional

from ..errors import InvalidValue
from ..models import TOKEN_REASONS, TokenTransaction, now_ms
from ..storage.record_store import TRANSACTIONS, RecordStore

log = logging.getLogger(__name__)


class TokenLedger:
    def __init__(self, store: RecordStore, clock: Callable[[], int] = now_ms) -> None:
        self.store = store
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def transactions(self) -> List[TokenTransaction]:
        return list(self.store.load(TRANSACTIONS))  # type: ignore[arg-type]

    def balance(self, fid: int) -> float:
        total = 0.0
        for tx in self.transactions():
            if tx.to_fid == fid:
                total += tx.amount
            if tx.from_fid == fid:
                total -= tx.amount
        return total

    def history(self, fid: int, limit: Optional[int] = None) -> List[TokenTransaction]:
        # walk the log backwards so same-millisecond entries stay newest first
        txs = [tx for tx in reversed(self.transactions()) if tx.to_fid == fid or tx.from_fid == fid]
        txs.sort(key=lambda tx: tx.timestamp, reverse=True)
        return txs[:limit] if limit else txs

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _check(self, amount: float, reason: str) -> float:
        try:
            amt = float(amount)
        except (TypeError, ValueError):
            raise InvalidValue(f"amount must be a number, got {amount!r}") from None
        if amt <= 0:
            raise InvalidValue(f"amount must be positive, got {amt}")
        if reason not in TOKEN_REASONS:
            raise InvalidValue(f"unknown reason '{reason}', expected one of {', '.join(TOKEN_REASONS)}")
        return amt

    def _append(self, tx: TokenTransaction) -> TokenTransaction:
        txs = self.transactions()
        txs.append(tx)
        self.store.save(TRANSACTIONS, txs)
        log.info("[TOKENS] %s -> %s %.2f (%s)", tx.from_fid or "system", tx.to_fid, tx.amount, tx.reason)
        return tx

    def award(
        self,
        to_fid: int,
        amount: float,
        reason: str,
        from_fid: Optional[int] = None,
        contribution_id: Optional[str] = None,
    ) -> TokenTransaction:
        amt = self._check(amount, reason)
        tx = TokenTransaction(
            id=str(uuid.uuid4()),
            from_fid=from_fid,
            to_fid=to_fid,
            amount=amt,
            reason=reason,  # type: ignore[arg-type]
            contribution_id=contribution_id,
            timestamp=self._clock(),
        )
        return self._append(tx)

    def transfer(
        self,
        from_fid: int,
        to_fid: int,
        amount: float,
        reason: str = "other",
        contribution_id: Optional[str] = None,
    ) -> TokenTransaction:
        amt = self._check(amount, reason)
        if from_fid == to_fid:
            raise InvalidValue("cannot transfer tokens to yourself", fid=from_fid)

        available = self.balance(from_fid)
        if available < amt:
            raise InvalidValue(
                f"insufficient balance: fid {from_fid} has {available:.2f}, needs {amt:.2f}",
                fid=from_fid,
            )
        return self.award(to_fid, amt, reason, from_fid=from_fid, contribution_id=contribution_id)
