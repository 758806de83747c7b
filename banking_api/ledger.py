"""
Account Ledger Module

Balance-mutation rules for a single account. Deposits and withdrawals are
checked against the ledger rules in a fixed order so the reported rejection
reason is deterministic. NEVER uses float for monetary values.
"""

from contextlib import contextmanager
from decimal import Decimal, Inexact, getcontext, localcontext
from dataclasses import dataclass
from typing import Optional

from .config import BankingConfig, get_config
from .errors import InvalidAmountError, LedgerRejectionError, RejectionReason

PRECISION = 28

# Set global decimal context for financial precision
getcontext().prec = PRECISION

TWO_PLACES = Decimal("0.01")


@contextmanager
def exact_arithmetic():
    """
    Decimal context in which any rounding raises InvalidAmountError

    Balances are never silently rounded; an amount whose digits do not fit
    alongside the balance is refused instead.
    """
    with localcontext() as ctx:
        ctx.prec = PRECISION
        ctx.traps[Inexact] = True
        try:
            yield ctx
        except Inexact:
            raise InvalidAmountError(
                f"Invalid amount. Balance and amount together cannot exceed "
                f"{PRECISION} significant digits."
            ) from None


def format_amount(amount: Decimal) -> str:
    """Render an amount with at least two fractional digits"""
    if amount.as_tuple().exponent > -2:
        amount = amount.quantize(TWO_PLACES)
    return f"{amount:f}"


@dataclass(frozen=True)
class LedgerRules:
    """Limits applied to every account"""
    opening_deposit: Decimal = Decimal("100")
    max_deposit_amount: Decimal = Decimal("10000")
    max_withdrawal_ratio: Decimal = Decimal("0.9")
    min_residual_balance: Decimal = Decimal("100")

    def __post_init__(self):
        # Ensure all limits are Decimal
        for name in ['opening_deposit', 'max_deposit_amount',
                     'max_withdrawal_ratio', 'min_residual_balance']:
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, Decimal(str(value)))

        if self.opening_deposit < self.min_residual_balance:
            raise ValueError("Opening deposit cannot be below the minimum residual balance")
        if not Decimal("0") < self.max_withdrawal_ratio <= Decimal("1"):
            raise ValueError("Withdrawal ratio must be in (0, 1]")

    @classmethod
    def from_config(cls, config: Optional[BankingConfig] = None) -> 'LedgerRules':
        config = config or get_config()
        return cls(
            opening_deposit=Decimal(config.opening_deposit),
            max_deposit_amount=Decimal(config.max_deposit_amount),
            max_withdrawal_ratio=Decimal(config.max_withdrawal_ratio),
            min_residual_balance=Decimal(config.min_residual_balance)
        )


class AccountLedger:
    """
    Enforces deposit and withdrawal rules given a balance and an amount.

    The ledger holds no account state; callers pass the current balance and
    store the returned one.
    """

    def __init__(self, rules: Optional[LedgerRules] = None):
        self.rules = rules or LedgerRules()

    @property
    def opening_balance(self) -> Decimal:
        return self.rules.opening_deposit

    def withdrawal_limit(self, balance: Decimal) -> Decimal:
        """Largest amount that could currently be withdrawn"""
        limit = min(balance * self.rules.max_withdrawal_ratio,
                    balance - self.rules.min_residual_balance)
        return max(limit, Decimal("0"))

    def deposit(self, balance: Decimal, amount: Decimal) -> Decimal:
        """
        Apply a deposit

        Returns:
            New balance

        Raises:
            LedgerRejectionError: If the amount is not positive or exceeds the
                single-deposit ceiling
            InvalidAmountError: If the new balance cannot be represented exactly
        """
        if amount <= Decimal("0"):
            raise LedgerRejectionError(
                RejectionReason.NON_POSITIVE_AMOUNT,
                "Invalid deposit amount. Deposit amount must be greater than 0."
            )

        if amount > self.rules.max_deposit_amount:
            raise LedgerRejectionError(
                RejectionReason.EXCEEDS_DEPOSIT_LIMIT,
                f"Invalid deposit amount. Deposit amount must be between 0 and "
                f"${format_amount(self.rules.max_deposit_amount)}."
            )

        with exact_arithmetic():
            return balance + amount

    def withdraw(self, balance: Decimal, amount: Decimal) -> Decimal:
        """
        Apply a withdrawal

        Rules are checked in order: positive amount, no overdraft, withdrawal
        cap as a share of balance, minimum residual balance.

        Returns:
            New balance

        Raises:
            LedgerRejectionError: With the reason of the first violated rule
            InvalidAmountError: If the result cannot be represented exactly
        """
        if amount <= Decimal("0"):
            raise LedgerRejectionError(
                RejectionReason.NON_POSITIVE_AMOUNT,
                "Invalid withdrawal amount. Withdrawal amount must be greater than 0."
            )

        with exact_arithmetic():
            cap = balance * self.rules.max_withdrawal_ratio
            remaining = balance - amount
        limit = format_amount(self.withdrawal_limit(balance))

        if amount > balance:
            raise LedgerRejectionError(
                RejectionReason.EXCEEDS_BALANCE,
                f"Invalid withdrawal amount. Amount exceeds the balance of "
                f"{format_amount(balance)}; the withdrawal can be up to {limit}."
            )

        if amount > cap:
            raise LedgerRejectionError(
                RejectionReason.EXCEEDS_WITHDRAWAL_CAP,
                f"Invalid withdrawal amount. Amount exceeds {format_amount(cap)}, the "
                f"largest share of the balance allowed in one withdrawal; "
                f"the withdrawal can be up to {limit}."
            )

        if remaining < self.rules.min_residual_balance:
            raise LedgerRejectionError(
                RejectionReason.BELOW_MINIMUM_BALANCE,
                f"Invalid withdrawal amount. The withdrawal should leave a balance >= "
                f"{format_amount(self.rules.min_residual_balance)}; "
                f"the withdrawal can be up to {limit}."
            )

        return remaining
