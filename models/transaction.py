from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from errors import ValidationError

EXPENSE = "expense"
INCOME = "income"
TRANSACTION_TYPES = (EXPENSE, INCOME)


@dataclass
class Transaction:
    id: str
    account_id: int
    transaction_date: datetime
    description: str
    amount: Decimal  # always positive
    type: str  # 'income' or 'expense'
    category_id: Optional[int] = None

    @property
    def is_expense(self) -> bool:
        return self.type == EXPENSE


def validate_transaction(transaction: Transaction) -> None:
    """Check the fields the classifier and analytics code rely on.

    Raises:
        ValidationError: If a field is missing or out of range.
    """
    if not isinstance(transaction.description, str) or not transaction.description.strip():
        raise ValidationError(f"Transaction {transaction.id}: description is empty")
    if not isinstance(transaction.transaction_date, date):
        raise ValidationError(f"Transaction {transaction.id}: missing transaction_date")
    if not isinstance(transaction.amount, Decimal) or not transaction.amount.is_finite():
        raise ValidationError(
            f"Transaction {transaction.id}: amount must be a finite Decimal"
        )
    if transaction.amount < 0:
        raise ValidationError(
            f"Transaction {transaction.id}: amount must be a positive magnitude"
        )
    if transaction.type not in TRANSACTION_TYPES:
        raise ValidationError(
            f"Transaction {transaction.id}: unknown type '{transaction.type}'"
        )
