"""
User Registry Module

Owns the in-memory collection of users and their accounts. Every operation
runs under one registry lock so balance checks and the resulting update are
applied atomically. State is lost when the process exits.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple
import threading

from .errors import (
    BankingError, InvalidNameError, UserNotFoundError,
    AccountNotFoundError, HasOpenAccountsError
)
from .identity import IdentityGenerator, RandomIdentityGenerator
from .ledger import AccountLedger, format_amount
from .logging_config import get_logger, log_action
from .validation import is_valid_name, parse_amount


logger = get_logger("banking_api.users")


@dataclass
class Account:
    """Account owned by exactly one user"""
    id: str
    balance: Decimal
    created_at: datetime
    updated_at: datetime


@dataclass
class User:
    """Bank customer with an ordered list of accounts"""
    id: str
    name: str
    created_at: datetime
    accounts: List[Account] = field(default_factory=list)

    def find_account(self, account_id: str) -> Optional[Account]:
        for account in self.accounts:
            if account.id == account_id:
                return account
        return None


@dataclass(frozen=True)
class AccountView:
    """Read-only projection of an account"""
    account_id: str
    balance: Decimal

    @classmethod
    def from_account(cls, account: Account) -> 'AccountView':
        return cls(account_id=account.id, balance=account.balance)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "balance": format_amount(self.balance)
        }


@dataclass(frozen=True)
class UserView:
    """Read-only projection of a user and their accounts"""
    user_id: str
    name: str
    accounts: Tuple[AccountView, ...] = ()

    @classmethod
    def from_user(cls, user: User) -> 'UserView':
        return cls(
            user_id=user.id,
            name=user.name,
            accounts=tuple(AccountView.from_account(a) for a in user.accounts)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "user_name": self.name,
            "accounts": [a.to_dict() for a in self.accounts]
        }


class UserRegistry:
    """
    Manages users, their accounts and balance changes

    Account IDs stay reserved for the life of the registry, including those
    of closed accounts, so an ID never refers to two different accounts.
    The reserved set therefore grows by one entry per account ever opened.
    """

    def __init__(
        self,
        identity_generator: Optional[IdentityGenerator] = None,
        ledger: Optional[AccountLedger] = None
    ):
        self.identity_generator = identity_generator or RandomIdentityGenerator()
        self.ledger = ledger or AccountLedger()
        self._users: Dict[str, User] = {}
        # Every account ID ever issued, so closed IDs are never reused
        self._account_ids: Set[str] = set()
        self._lock = threading.RLock()

    def _get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _get_account(self, user_id: str, account_id: str) -> Account:
        account = self._get_user(user_id).find_account(account_id)
        if account is None:
            raise AccountNotFoundError(user_id, account_id)
        return account

    def _new_user_id(self) -> str:
        user_id = self.identity_generator.new_user_id()
        while user_id in self._users:
            user_id = self.identity_generator.new_user_id()
        return user_id

    def _open_account(self) -> Account:
        account_id = self.identity_generator.new_account_id()
        while account_id in self._account_ids:
            account_id = self.identity_generator.new_account_id()
        self._account_ids.add(account_id)

        now = datetime.now(timezone.utc)
        return Account(
            id=account_id,
            balance=self.ledger.opening_balance,
            created_at=now,
            updated_at=now
        )

    def create_user(self, name: Optional[str]) -> Tuple[str, str]:
        """
        Create a user with one opening account

        Args:
            name: User name; surrounding whitespace is trimmed

        Returns:
            (user_id, account_id) of the new user and their first account

        Raises:
            InvalidNameError: If the trimmed name is empty or contains
                anything other than letters and spaces
        """
        name = name.strip() if isinstance(name, str) else name
        if not is_valid_name(name):
            log_action(logger, "warning", "Rejected user name",
                       action="create_user", extra={"name": name})
            raise InvalidNameError()

        with self._lock:
            account = self._open_account()
            user = User(
                id=self._new_user_id(),
                name=name,
                created_at=account.created_at,
                accounts=[account]
            )
            self._users[user.id] = user

        log_action(logger, "info", "User created", user_id=user.id,
                   action="create_user", resource=account.id,
                   extra={"opening_deposit": format_amount(account.balance)})
        return user.id, account.id

    def delete_user(self, user_id: str) -> None:
        """Remove a user that has no accounts left"""
        with self._lock:
            user = self._get_user(user_id)
            if user.accounts:
                log_action(logger, "warning", "User still has open accounts",
                           user_id=user_id, action="delete_user",
                           extra={"open_accounts": len(user.accounts)})
                raise HasOpenAccountsError(user_id)
            del self._users[user_id]

        log_action(logger, "info", "User deleted", user_id=user_id, action="delete_user")

    def create_account(self, user_id: str) -> str:
        """Open another account for an existing user"""
        with self._lock:
            user = self._get_user(user_id)
            account = self._open_account()
            user.accounts.append(account)

        log_action(logger, "info", "Account created", user_id=user_id,
                   action="create_account", resource=account.id)
        return account.id

    def delete_account(self, user_id: str, account_id: str) -> None:
        """Close an account; any remaining balance is discarded"""
        with self._lock:
            user = self._get_user(user_id)
            account = self._get_account(user_id, account_id)
            user.accounts.remove(account)

        log_action(logger, "info", "Account deleted", user_id=user_id,
                   action="delete_account", resource=account_id,
                   extra={"discarded_balance": format_amount(account.balance)})

    def deposit(self, user_id: str, account_id: str, amount: Any) -> Decimal:
        """
        Deposit into an account

        Returns:
            New balance

        Raises:
            InvalidAmountError: If amount is not a finite decimal
            UserNotFoundError, AccountNotFoundError: If either is unknown
            LedgerRejectionError: If a deposit rule is violated
        """
        return self._apply(user_id, account_id, amount, "deposit", self.ledger.deposit)

    def withdraw(self, user_id: str, account_id: str, amount: Any) -> Decimal:
        """
        Withdraw from an account

        Returns:
            New balance

        Raises:
            InvalidAmountError: If amount is not a finite decimal
            UserNotFoundError, AccountNotFoundError: If either is unknown
            LedgerRejectionError: If a withdrawal rule is violated
        """
        return self._apply(user_id, account_id, amount, "withdraw", self.ledger.withdraw)

    def _apply(self, user_id, account_id, amount, action, transition) -> Decimal:
        try:
            value = parse_amount(amount)
            with self._lock:
                account = self._get_account(user_id, account_id)
                new_balance = transition(account.balance, value)
                account.balance = new_balance
                account.updated_at = datetime.now(timezone.utc)
        except BankingError as e:
            log_action(logger, "warning", e.message, user_id=user_id,
                       action=action, resource=account_id,
                       extra={"amount": str(amount)})
            raise

        log_action(logger, "info", f"{action.capitalize()} applied", user_id=user_id,
                   action=action, resource=account_id,
                   extra={"amount": format_amount(value),
                          "balance": format_amount(new_balance)})
        return new_balance

    def get_user(self, user_id: str) -> UserView:
        with self._lock:
            return UserView.from_user(self._get_user(user_id))

    def list_users(self) -> List[str]:
        """User IDs in creation order"""
        with self._lock:
            return list(self._users)

    def get_user_accounts(self, user_id: str) -> List[AccountView]:
        with self._lock:
            return [AccountView.from_account(a) for a in self._get_user(user_id).accounts]

    def get_account(self, user_id: str, account_id: str) -> AccountView:
        with self._lock:
            return AccountView.from_account(self._get_account(user_id, account_id))

    def user_count(self) -> int:
        with self._lock:
            return len(self._users)
