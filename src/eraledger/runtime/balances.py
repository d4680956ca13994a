# src/eraledger/runtime/balances.py
from __future__ import annotations

import sqlite3
import time
from typing import Protocol

from eraledger.ledger.numeric import checked_add, require_u128


class BalanceStore(Protocol):
    """External asset ledger the reward service credits on claim.

    `tx` is the connection of the caller's open write transaction. A store
    living in the same database must write through it; any other store must
    raise before returning when the credit did not happen, which rolls the
    claim back.
    """

    def credit(self, token_id: int, account: str, amount: int, *, tx: sqlite3.Connection) -> None: ...

    def balance_of(self, token_id: int, account: str, *, tx: sqlite3.Connection) -> int: ...


class SqliteBalanceStore:
    """Token balances kept in the ledger's own SQLite file (`balances` table)."""

    def balance_of(self, token_id: int, account: str, *, tx: sqlite3.Connection) -> int:
        row = tx.execute(
            "SELECT amount FROM balances WHERE token_id=? AND account=?;",
            (int(token_id), str(account)),
        ).fetchone()
        if row is None:
            return 0
        return int(str(row["amount"]))

    def credit(self, token_id: int, account: str, amount: int, *, tx: sqlite3.Connection) -> None:
        amt = require_u128(amount, field="amount")
        new_amount = checked_add(self.balance_of(token_id, account, tx=tx), amt, what="balance")
        tx.execute(
            """
            INSERT INTO balances(token_id, account, amount, updated_ts_ms)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(token_id, account) DO UPDATE SET
              amount=excluded.amount,
              updated_ts_ms=excluded.updated_ts_ms;
            """,
            (int(token_id), str(account), str(new_amount), int(time.time() * 1000)),
        )
