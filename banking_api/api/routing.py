"""
Request parsing that keeps JSON numbers exact
"""

from decimal import Decimal
import json
from typing import Any, Callable

from fastapi import Request, Response
from fastapi.routing import APIRoute


class DecimalJSONRequest(Request):
    """Request whose JSON body decodes fractional numbers as Decimal"""

    async def json(self) -> Any:
        if not hasattr(self, "_json"):
            body = await self.body()
            self._json = json.loads(body, parse_float=Decimal)
        return self._json


class DecimalRoute(APIRoute):
    """Route that hands endpoints a DecimalJSONRequest"""

    def get_route_handler(self) -> Callable:
        original_handler = super().get_route_handler()

        async def handler(request: Request) -> Response:
            return await original_handler(DecimalJSONRequest(request.scope, request.receive))

        return handler
