"""
Domain Error Module

Typed failures raised by the validation, ledger and registry layers. The HTTP
layer maps NotFoundError to 404 and every other BankingError to 400.
"""

from enum import Enum


class BankingError(Exception):
    """Base class for all user and account rule violations"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidNameError(BankingError):
    """User name is empty or contains characters other than letters and spaces"""

    def __init__(self, message: str = (
        "Invalid user name. Name should not contain numbers or special characters "
        "(except spaces), and it should not be empty."
    )):
        super().__init__(message)


class InvalidAmountError(BankingError):
    """Amount is not a well-formed finite decimal"""

    def __init__(self, message: str = "Invalid amount. Amount should contain only numbers."):
        super().__init__(message)


class NotFoundError(BankingError):
    """Referenced user or account does not exist"""


class UserNotFoundError(NotFoundError):

    def __init__(self, user_id: str):
        super().__init__(f"User with ID {user_id} not found.")
        self.user_id = user_id


class AccountNotFoundError(NotFoundError):

    def __init__(self, user_id: str, account_id: str):
        super().__init__(f"Account with ID {account_id} not found for user {user_id}.")
        self.user_id = user_id
        self.account_id = account_id


class HasOpenAccountsError(BankingError):
    """User deletion attempted while accounts remain"""

    def __init__(self, user_id: str):
        super().__init__("You have to delete all associated accounts first for the user.")
        self.user_id = user_id


class RejectionReason(Enum):
    """Why a deposit or withdrawal was refused"""
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    EXCEEDS_DEPOSIT_LIMIT = "exceeds_deposit_limit"
    EXCEEDS_BALANCE = "exceeds_balance"
    EXCEEDS_WITHDRAWAL_CAP = "exceeds_withdrawal_cap"
    BELOW_MINIMUM_BALANCE = "below_minimum_balance"


class LedgerRejectionError(BankingError):
    """A balance mutation would violate a ledger rule"""

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
