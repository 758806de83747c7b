"""
Banking API

In-memory user and account management with rule-checked deposits and
withdrawals. All monetary values use Decimal precision.
"""

__version__ = "1.0.0"
