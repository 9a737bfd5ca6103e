"""Ledger collaborator for trade settlement.

The economy never moves credits or cargo itself: MarketRegistry asks a
Ledger to settle each trade and only touches market state once settlement
succeeded. TradeLedger is an in-memory implementation with a full audit
trail, used by tests and the headless runner; hosts plug in their own.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol
from uuid import UUID, uuid4

logger = logging.getLogger(__name__)


class TransactionType(Enum):
    """Types of ledger transactions."""
    BUY = "buy"  # Agent buys from a market
    SELL = "sell"  # Agent sells to a market


@dataclass
class Transaction:
    """Record of a single settlement attempt."""
    id: UUID
    transaction_type: TransactionType
    agent_id: str
    credits: float = 0.0
    commodity_id: str | None = None
    quantity: int = 0
    reason: str = ""
    success: bool = True
    error_message: str = ""


class Ledger(Protocol):
    """Settles the funds and cargo side of a trade."""

    def settle_trade(
        self,
        agent_id: str,
        commodity_id: str,
        quantity: int,
        total_price: float,
        is_buy: bool,
        reason: str = "",
    ) -> Transaction:
        """Move credits and cargo for one trade, all or nothing.

        Returns a Transaction; check .success for the result.
        """
        ...


@dataclass
class Account:
    """Credits and cargo held by one trading agent."""
    credits: float = 0.0
    cargo: dict[str, int] = field(default_factory=dict)
    cargo_capacity: int = 100

    @property
    def cargo_used(self) -> int:
        return sum(self.cargo.values())

    @property
    def free_space(self) -> int:
        return max(0, self.cargo_capacity - self.cargo_used)

    def has_cargo(self, commodity_id: str, quantity: int) -> bool:
        return self.cargo.get(commodity_id, 0) >= quantity


class TradeLedger:
    """In-memory ledger with accounts and an audit trail."""

    def __init__(self, max_ledger_size: int = 10000) -> None:
        self._accounts: dict[str, Account] = {}
        self._ledger: list[Transaction] = []
        self._max_ledger_size = max_ledger_size  # Keep last N transactions

    def open_account(
        self,
        agent_id: str,
        credits: float = 0.0,
        cargo: dict[str, int] | None = None,
        cargo_capacity: int = 100,
    ) -> Account:
        """Create (or replace) an agent's account."""
        account = Account(credits=credits, cargo=dict(cargo or {}), cargo_capacity=cargo_capacity)
        self._accounts[agent_id] = account
        return account

    def get_account(self, agent_id: str) -> Account | None:
        return self._accounts.get(agent_id)

    def settle_trade(
        self,
        agent_id: str,
        commodity_id: str,
        quantity: int,
        total_price: float,
        is_buy: bool,
        reason: str = "",
    ) -> Transaction:
        """Settle a trade.

        Buying debits credits and adds cargo; selling removes cargo and
        credits the agent. Everything is validated before any field changes.
        """
        transaction = Transaction(
            id=uuid4(),
            transaction_type=TransactionType.BUY if is_buy else TransactionType.SELL,
            agent_id=agent_id,
            credits=total_price,
            commodity_id=commodity_id,
            quantity=quantity,
            reason=reason,
        )

        account = self._accounts.get(agent_id)
        error = self._validate(account, commodity_id, quantity, total_price, is_buy)
        if error:
            transaction.success = False
            transaction.error_message = error
            self._record_transaction(transaction)
            logger.debug("Settlement refused for %s: %s", agent_id, error)
            return transaction

        if is_buy:
            account.credits -= total_price
            account.cargo[commodity_id] = account.cargo.get(commodity_id, 0) + quantity
        else:
            account.credits += total_price
            remaining = account.cargo[commodity_id] - quantity
            if remaining > 0:
                account.cargo[commodity_id] = remaining
            else:
                del account.cargo[commodity_id]

        self._record_transaction(transaction)
        return transaction

    def _validate(
        self,
        account: Account | None,
        commodity_id: str,
        quantity: int,
        total_price: float,
        is_buy: bool,
    ) -> str:
        if account is None:
            return "Unknown account"
        if quantity <= 0:
            return "Quantity must be positive"
        if total_price < 0:
            return "Cannot settle a negative price"
        if is_buy:
            if account.credits < total_price:
                return f"Insufficient credits: have {account.credits:.2f}, need {total_price:.2f}"
            if account.free_space < quantity:
                return f"Insufficient cargo space: have {account.free_space}, need {quantity}"
        elif not account.has_cargo(commodity_id, quantity):
            held = account.cargo.get(commodity_id, 0)
            return f"Insufficient cargo: have {held} {commodity_id}, need {quantity}"
        return ""

    def _record_transaction(self, transaction: Transaction) -> None:
        """Add transaction to ledger, trimming if needed."""
        self._ledger.append(transaction)

        if len(self._ledger) > self._max_ledger_size:
            self._ledger = self._ledger[-self._max_ledger_size:]

    def get_ledger(
        self,
        agent_id: str | None = None,
        transaction_type: TransactionType | None = None,
        successful_only: bool = False,
        limit: int = 100,
    ) -> list[Transaction]:
        """Query the ledger, newest first."""
        results = []

        for tx in reversed(self._ledger):
            if agent_id and tx.agent_id != agent_id:
                continue
            if transaction_type and tx.transaction_type != transaction_type:
                continue
            if successful_only and not tx.success:
                continue

            results.append(tx)
            if len(results) >= limit:
                break

        return results

    def clear_ledger(self) -> None:
        """Clear all transactions (for testing)."""
        self._ledger.clear()
