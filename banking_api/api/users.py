"""
User and account endpoints
"""

from fastapi import APIRouter, Depends, Request, Response, status

from .dependencies import get_registry
from .routing import DecimalRoute
from .schemas import CreateUserRequest, UpdateRequest
from ..ledger import format_amount
from ..users import UserRegistry


router = APIRouter(route_class=DecimalRoute)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    request: Request,
    response: Response,
    registry: UserRegistry = Depends(get_registry)
):
    """Create a user with an opening account"""
    user_id, account_id = registry.create_user(body.name)
    user = registry.get_user(user_id)
    opening = format_amount(registry.ledger.opening_balance)

    response.headers["Location"] = str(request.url_for("get_user", user_id=user_id))
    return {
        "user_id": user_id,
        "account_id": account_id,
        "message": (
            f"User created successfully with User '{user.name}', account {account_id} "
            f"and ${opening} deposit."
        )
    }


@router.get("")
async def get_users(registry: UserRegistry = Depends(get_registry)):
    """List user IDs"""
    return [{"id": user_id} for user_id in registry.list_users()]


@router.get("/{user_id}")
async def get_user(user_id: str, registry: UserRegistry = Depends(get_registry)):
    """Get a user and their accounts"""
    return registry.get_user(user_id).to_dict()


@router.delete("/{user_id}")
async def delete_user(user_id: str, registry: UserRegistry = Depends(get_registry)):
    """Delete a user without accounts"""
    registry.delete_user(user_id)
    return {"message": f"User with ID {user_id} deleted successfully."}


@router.post("/{user_id}/accounts", status_code=status.HTTP_201_CREATED)
async def create_account(
    user_id: str,
    request: Request,
    response: Response,
    registry: UserRegistry = Depends(get_registry)
):
    """Open another account for a user"""
    account_id = registry.create_account(user_id)
    account = registry.get_account(user_id, account_id)

    response.headers["Location"] = str(
        request.url_for("get_user_account", user_id=user_id, account_id=account_id)
    )
    return {
        "account_id": account_id,
        "balance": format_amount(account.balance),
        "message": f"Account created successfully with ${format_amount(account.balance)} deposit."
    }


@router.get("/{user_id}/accounts")
async def get_user_accounts(user_id: str, registry: UserRegistry = Depends(get_registry)):
    """List a user's accounts"""
    return [account.to_dict() for account in registry.get_user_accounts(user_id)]


@router.get("/{user_id}/accounts/{account_id}")
async def get_user_account(
    user_id: str,
    account_id: str,
    registry: UserRegistry = Depends(get_registry)
):
    """Get one account"""
    return registry.get_account(user_id, account_id).to_dict()


@router.delete("/{user_id}/accounts/{account_id}")
async def delete_account(
    user_id: str,
    account_id: str,
    registry: UserRegistry = Depends(get_registry)
):
    """Close an account"""
    registry.delete_account(user_id, account_id)
    return {"message": f"Account with ID {account_id} deleted successfully for user {user_id}."}


@router.put("/{user_id}/accounts/{account_id}/deposit", status_code=status.HTTP_204_NO_CONTENT)
async def deposit(
    user_id: str,
    account_id: str,
    body: UpdateRequest,
    registry: UserRegistry = Depends(get_registry)
):
    """Deposit into an account"""
    registry.deposit(user_id, account_id, body.amount)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{user_id}/accounts/{account_id}/withdraw", status_code=status.HTTP_204_NO_CONTENT)
async def withdraw(
    user_id: str,
    account_id: str,
    body: UpdateRequest,
    registry: UserRegistry = Depends(get_registry)
):
    """Withdraw from an account"""
    registry.withdraw(user_id, account_id, body.amount)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
