"""
Request dependencies
"""

from fastapi import Request

from ..users import UserRegistry


def get_registry(request: Request) -> UserRegistry:
    """Registry the application was created with"""
    return request.app.state.registry
