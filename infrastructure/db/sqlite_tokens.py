import sqlite3
from typing import List, Optional, Tuple

from core.entities.token_account import TokenAccount, level_for_balance
from core.entities.transaction import EARNED, SPENT, TokenTransaction
from core.repositories.token_repository import TokenRepository
from infrastructure.db.sqlite import SQLiteRepository, commit, store_errors, utcnow, write_transaction


class SQLiteTokenRepository(SQLiteRepository, TokenRepository):

    def _row_to_account(self, row: sqlite3.Row) -> TokenAccount:
        return TokenAccount(
            user_id=row["user_id"],
            balance=int(row["balance"]),
            level=int(row["level"]),
            updated_at=row["updated_at"],
        )

    def _row_to_tx(self, row: sqlite3.Row) -> TokenTransaction:
        return TokenTransaction(
            id=row["id"],
            user_id=row["user_id"],
            amount=row["amount"],
            description=row["description"],
            kind=row["transaction_type"],
            source_type=row["source_type"],
            source_id=row["source_id"],
            created_at=row["created_at"],
        )

    def _select_account(self, cur: sqlite3.Cursor, user_id: int) -> Optional[TokenAccount]:
        cur.execute("SELECT * FROM user_tokens WHERE user_id = ?", (int(user_id),))
        row = cur.fetchone()
        return self._row_to_account(row) if row else None

    @store_errors
    def insert_transaction(self, user_id: int, amount: int, description: str, kind: str,
                           source_type: str, source_id: Optional[int] = None) -> TokenTransaction:
        if kind not in (EARNED, SPENT):
            raise ValueError(f"Unknown transaction kind: {kind}")
        created_at = utcnow()
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO token_transactions (user_id, amount, description, transaction_type, source_type, source_id, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (int(user_id), int(amount), description, kind, source_type, source_id, created_at),
        )
        commit(self.conn)
        return TokenTransaction(id=cur.lastrowid, user_id=user_id, amount=amount, description=description,
                                kind=kind, source_type=source_type, source_id=source_id, created_at=created_at)

    @store_errors
    def list_transactions(self, user_id: int, limit: int = 100, offset: int = 0) -> List[TokenTransaction]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT * FROM token_transactions WHERE user_id = ? ORDER BY id DESC LIMIT ? OFFSET ?",
            (int(user_id), int(limit), int(offset)),
        )
        return [self._row_to_tx(r) for r in cur.fetchall()]

    @store_errors
    def ledger_totals(self, user_id: int) -> Tuple[int, int]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT "
            "COALESCE(SUM(CASE WHEN transaction_type = 'earned' THEN amount END), 0), "
            "COALESCE(SUM(CASE WHEN transaction_type = 'spent' THEN amount END), 0) "
            "FROM token_transactions WHERE user_id = ?",
            (int(user_id),),
        )
        earned, spent = cur.fetchone()
        return int(earned), int(spent)

    @store_errors
    def get_account(self, user_id: int) -> Optional[TokenAccount]:
        return self._select_account(self.conn.cursor(), user_id)

    @store_errors
    def credit_account(self, user_id: int, amount: int) -> TokenAccount:
        # чтение и запись под одной блокировкой - параллельные начисления не теряются
        with write_transaction(self.conn) as cur:
            account = self._select_account(cur, user_id)
            balance = amount if account is None else account.balance + amount
            self._write_account(cur, user_id, balance, exists=account is not None)
        return self.get_account(user_id)

    @store_errors
    def debit_account(self, user_id: int, amount: int) -> TokenAccount:
        if amount <= 0:
            raise ValueError("amount must be positive")
        with write_transaction(self.conn) as cur:
            account = self._select_account(cur, user_id)
            if account is None:
                raise ValueError("Token account not found")
            if account.balance < amount:
                raise ValueError("Insufficient tokens")
            self._write_account(cur, user_id, account.balance - amount, exists=True)
        return self.get_account(user_id)

    @store_errors
    def set_balance(self, user_id: int, balance: int) -> TokenAccount:
        with write_transaction(self.conn) as cur:
            account = self._select_account(cur, user_id)
            self._write_account(cur, user_id, balance, exists=account is not None)
        return self.get_account(user_id)

    def _write_account(self, cur: sqlite3.Cursor, user_id: int, balance: int, exists: bool) -> None:
        level = level_for_balance(balance)
        if exists:
            cur.execute(
                "UPDATE user_tokens SET balance = ?, level = ?, updated_at = ? WHERE user_id = ?",
                (balance, level, utcnow(), int(user_id)),
            )
        else:
            cur.execute(
                "INSERT INTO user_tokens (user_id, balance, level, updated_at) VALUES (?, ?, ?, ?)",
                (int(user_id), balance, level, utcnow()),
            )

    @store_errors
    def top_accounts(self, limit: int = 10) -> List[TokenAccount]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM user_tokens ORDER BY balance DESC, user_id ASC LIMIT ?", (int(limit),))
        return [self._row_to_account(r) for r in cur.fetchall()]
