from __future__ import annotations

import hmac
from collections.abc import Callable

from flask import Request

TOKEN_HEADER = "X-Unused-CSS-Token"

ViewerCheck = Callable[[Request], bool]


def token_viewer_check(admin_token: str) -> ViewerCheck:
    """Privileged when the request carries *admin_token*; nobody is when it is empty."""

    def check(request: Request) -> bool:
        if not admin_token:
            return False
        supplied = request.headers.get(TOKEN_HEADER, "")
        return hmac.compare_digest(supplied.encode(), admin_token.encode())

    return check
