"""
Pydantic schemas for API requests
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class CreateUserRequest(BaseModel):
    name: Optional[str] = Field(None, description="Letters and spaces only")


class UpdateRequest(BaseModel):
    amount: Any = Field(None, description="Decimal amount as number or string; JSON numbers are read without float rounding")
