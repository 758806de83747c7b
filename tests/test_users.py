"""
Test suite for users module

Tests the user registry: user and account lifecycle, balance operations,
read-only projections and thread safety.
"""

import threading

import pytest
from decimal import Decimal

from banking_api.errors import (
    InvalidNameError, InvalidAmountError, UserNotFoundError,
    AccountNotFoundError, HasOpenAccountsError, LedgerRejectionError,
    NotFoundError, RejectionReason
)
from banking_api.identity import IdentityGenerator, SeededIdentityGenerator
from banking_api.users import UserRegistry, UserView, AccountView


@pytest.fixture
def registry():
    return UserRegistry(identity_generator=SeededIdentityGenerator(seed=1234))


@pytest.fixture
def alice(registry):
    return registry.create_user("Alice")


class ScriptedIdentityGenerator(IdentityGenerator):
    """Issues identifiers from fixed lists, including duplicates"""

    def __init__(self, user_ids, account_ids):
        self._user_ids = list(user_ids)
        self._account_ids = list(account_ids)

    def _random_bytes(self) -> bytes:
        return bytes(16)

    def _random_part(self) -> int:
        return 10_000_000

    def new_user_id(self) -> str:
        return self._user_ids.pop(0)

    def new_account_id(self) -> str:
        return self._account_ids.pop(0)


class TestCreateUser:
    """Test user creation"""

    def test_create_user_opens_one_account(self, registry):
        user_id, account_id = registry.create_user("Jane Doe")

        view = registry.get_user(user_id)
        assert view.user_id == user_id
        assert view.name == "Jane Doe"
        assert len(view.accounts) == 1
        assert view.accounts[0].account_id == account_id
        assert view.accounts[0].balance == Decimal('100')

    def test_name_is_trimmed(self, registry):
        user_id, _ = registry.create_user("  Jane Doe  ")
        assert registry.get_user(user_id).name == "Jane Doe"

    @pytest.mark.parametrize("name", ["", "   ", "Jane2", "Jane_Doe", None])
    def test_invalid_name(self, registry, name):
        with pytest.raises(InvalidNameError, match="Invalid user name"):
            registry.create_user(name)
        assert registry.list_users() == []

    def test_users_listed_in_creation_order(self, registry):
        ids = [registry.create_user(name)[0] for name in ["Ann", "Bob", "Cid"]]
        assert registry.list_users() == ids
        assert registry.user_count() == 3


class TestDeleteUser:
    """Test user deletion rules"""

    def test_delete_user_with_accounts_fails(self, registry, alice):
        user_id, _ = alice

        with pytest.raises(HasOpenAccountsError, match="delete all associated accounts"):
            registry.delete_user(user_id)
        assert registry.get_user(user_id).user_id == user_id

    def test_delete_user_without_accounts(self, registry, alice):
        user_id, account_id = alice
        registry.delete_account(user_id, account_id)

        registry.delete_user(user_id)

        with pytest.raises(UserNotFoundError):
            registry.get_user(user_id)
        assert user_id not in registry.list_users()

    def test_delete_unknown_user(self, registry):
        with pytest.raises(UserNotFoundError, match="User with ID NOPE not found."):
            registry.delete_user("NOPE")


class TestAccounts:
    """Test account creation and deletion"""

    def test_create_account(self, registry, alice):
        user_id, first_account = alice

        second_account = registry.create_account(user_id)

        accounts = registry.get_user_accounts(user_id)
        assert [a.account_id for a in accounts] == [first_account, second_account]
        assert all(a.balance == Decimal('100') for a in accounts)

    def test_create_account_unknown_user(self, registry):
        with pytest.raises(UserNotFoundError):
            registry.create_account("NOPE")

    def test_delete_account_with_balance(self, registry, alice):
        """Test that accounts close regardless of balance"""
        user_id, account_id = alice
        registry.deposit(user_id, account_id, Decimal('500'))

        registry.delete_account(user_id, account_id)

        assert registry.get_user_accounts(user_id) == []

    def test_delete_unknown_account(self, registry, alice):
        user_id, _ = alice
        with pytest.raises(AccountNotFoundError, match="not found for user"):
            registry.delete_account(user_id, "0000000000000000")

    def test_account_of_other_user_not_found(self, registry, alice):
        """Test that accounts are only resolved under their owner"""
        _, alice_account = alice
        bob_id, _ = registry.create_user("Bob")

        with pytest.raises(AccountNotFoundError):
            registry.get_account(bob_id, alice_account)
        with pytest.raises(AccountNotFoundError):
            registry.deposit(bob_id, alice_account, 10)

    def test_account_ids_unique_across_users(self, registry):
        account_ids = []
        for name in ["Ann", "Bob", "Cid", "Dee"]:
            user_id, account_id = registry.create_user(name)
            account_ids.append(account_id)
            account_ids.extend(registry.create_account(user_id) for _ in range(5))

        assert len(set(account_ids)) == len(account_ids)

    def test_colliding_identifiers_are_redrawn(self):
        """Test that duplicate IDs from the generator are never issued twice"""
        generator = ScriptedIdentityGenerator(
            user_ids=["USERAAAAAA", "USERAAAAAA", "USERBBBBBB"],
            account_ids=["1111111111111111", "1111111111111111",
                         "2222222222222222", "3333333333333333"]
        )
        registry = UserRegistry(identity_generator=generator)

        first_user, first_account = registry.create_user("Ann")
        second_user, second_account = registry.create_user("Bob")
        third_account = registry.create_account(first_user)

        assert (first_user, second_user) == ("USERAAAAAA", "USERBBBBBB")
        assert (first_account, second_account, third_account) == (
            "1111111111111111", "2222222222222222", "3333333333333333"
        )

    def test_closed_account_id_not_reissued(self):
        """Test that an ID stays reserved after its account is deleted"""
        generator = ScriptedIdentityGenerator(
            user_ids=["USERAAAAAA"],
            account_ids=["1111111111111111", "1111111111111111", "2222222222222222"]
        )
        registry = UserRegistry(identity_generator=generator)
        user_id, first_account = registry.create_user("Ann")
        registry.delete_account(user_id, first_account)

        assert registry.create_account(user_id) == "2222222222222222"


class TestBalanceOperations:
    """Test deposits and withdrawals through the registry"""

    def test_deposit(self, registry, alice):
        user_id, account_id = alice

        new_balance = registry.deposit(user_id, account_id, Decimal('50'))

        assert new_balance == Decimal('150')
        assert registry.get_account(user_id, account_id).balance == Decimal('150')

    def test_deposit_accepts_numeric_strings_and_floats(self, registry, alice):
        user_id, account_id = alice

        registry.deposit(user_id, account_id, "10.25")
        registry.deposit(user_id, account_id, 0.1)

        assert registry.get_account(user_id, account_id).balance == Decimal('110.35')

    def test_invalid_amount_checked_first(self, registry):
        """Test that amount format is checked before existence"""
        with pytest.raises(InvalidAmountError):
            registry.deposit("NOPE", "NOPE", "abc")

    def test_deposit_unknown_user(self, registry):
        with pytest.raises(UserNotFoundError):
            registry.deposit("NOPE", "1", 10)

    def test_rejected_deposit_leaves_balance(self, registry, alice):
        user_id, account_id = alice

        with pytest.raises(LedgerRejectionError) as exc_info:
            registry.deposit(user_id, account_id, 10001)

        assert exc_info.value.reason == RejectionReason.EXCEEDS_DEPOSIT_LIMIT
        assert registry.get_account(user_id, account_id).balance == Decimal('100')

    def test_deposit_ceiling(self, registry, alice):
        user_id, account_id = alice
        assert registry.deposit(user_id, account_id, 10000) == Decimal('10100')

    def test_withdraw(self, registry, alice):
        user_id, account_id = alice
        registry.deposit(user_id, account_id, 900)

        assert registry.withdraw(user_id, account_id, 900) == Decimal('100')

    def test_withdraw_above_cap(self, registry, alice):
        user_id, account_id = alice
        registry.deposit(user_id, account_id, 900)

        with pytest.raises(LedgerRejectionError) as exc_info:
            registry.withdraw(user_id, account_id, 901)

        assert exc_info.value.reason == RejectionReason.EXCEEDS_WITHDRAWAL_CAP
        assert registry.get_account(user_id, account_id).balance == Decimal('1000')

    def test_deposit_too_precise_for_balance(self, registry, alice):
        """Test that a deposit that would be rounded has no effect"""
        user_id, account_id = alice
        registry.deposit(user_id, account_id, 9999)

        with pytest.raises(InvalidAmountError):
            registry.deposit(user_id, account_id, Decimal('0.000000000000000000000000001'))

        assert registry.get_account(user_id, account_id).balance == Decimal('10099')

    def test_withdraw_invalid_amount(self, registry, alice):
        user_id, account_id = alice
        with pytest.raises(InvalidAmountError):
            registry.withdraw(user_id, account_id, float('nan'))

    def test_alice_scenario(self, registry):
        """Test create, deposit, rejected and accepted withdrawals"""
        user_id, account_id = registry.create_user("Alice")
        assert registry.get_account(user_id, account_id).balance == Decimal('100')

        registry.deposit(user_id, account_id, 50)
        assert registry.get_account(user_id, account_id).balance == Decimal('150')

        with pytest.raises(LedgerRejectionError) as exc_info:
            registry.withdraw(user_id, account_id, 100)
        assert exc_info.value.reason == RejectionReason.BELOW_MINIMUM_BALANCE
        assert registry.get_account(user_id, account_id).balance == Decimal('150')

        registry.withdraw(user_id, account_id, 40)
        assert registry.get_account(user_id, account_id).balance == Decimal('110')


class TestViews:
    """Test read-only projections"""

    def test_views_are_snapshots(self, registry, alice):
        user_id, account_id = alice
        before = registry.get_account(user_id, account_id)

        registry.deposit(user_id, account_id, 25)

        assert before.balance == Decimal('100')
        assert registry.get_account(user_id, account_id).balance == Decimal('125')

    def test_user_view_to_dict(self, registry, alice):
        user_id, account_id = alice

        assert registry.get_user(user_id).to_dict() == {
            "user_id": user_id,
            "user_name": "Alice",
            "accounts": [{"account_id": account_id, "balance": "100.00"}]
        }

    def test_view_types(self, registry, alice):
        user_id, account_id = alice
        assert isinstance(registry.get_user(user_id), UserView)
        assert isinstance(registry.get_account(user_id, account_id), AccountView)

    def test_queries_raise_not_found(self, registry):
        for query in (
            lambda: registry.get_user("NOPE"),
            lambda: registry.get_user_accounts("NOPE"),
            lambda: registry.get_account("NOPE", "1"),
        ):
            with pytest.raises(NotFoundError):
                query()


class TestConcurrency:

    def test_concurrent_withdrawals_respect_rules(self, registry, alice):
        """Test that parallel withdrawals never break the minimum balance"""
        user_id, account_id = alice
        registry.deposit(user_id, account_id, 900)
        results = []

        def worker():
            try:
                registry.withdraw(user_id, account_id, 100)
                results.append(True)
            except LedgerRejectionError:
                results.append(False)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        balance = registry.get_account(user_id, account_id).balance
        assert balance >= Decimal('100')
        assert balance == Decimal('1000') - Decimal('100') * results.count(True)
