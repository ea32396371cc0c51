"""Example recipe that prints auth emails to stderr instead of sending them."""

from __future__ import annotations

import sys
from typing import Any, Optional

from authcore.ingredients.emaildelivery import (
    EmailDelivery,
    EmailDeliveryRequest,
    describe_email,
    recipient,
)
from authcore.models import AppInfo
from authcore.recipes.base import Recipe


class ConsoleEmailRecipe(Recipe, EmailDelivery):
    """Writes every email delivery request to stderr."""

    def __init__(self) -> None:
        self._app_name = ""
        self.sent: list[EmailDeliveryRequest] = []

    @property
    def name(self) -> str:
        return "console-email"

    @property
    def description(self) -> str:
        return "Example recipe that prints emails to stderr"

    def on_init(self, app_info: Optional[AppInfo]) -> None:
        self._app_name = app_info.app_name if app_info else ""

    async def send_email(
        self, request: EmailDeliveryRequest, user_context: dict[str, Any]
    ) -> None:
        prefix = f"[{self._app_name or 'console-email'}]"
        print(f"{prefix} To: {recipient(request)}", file=sys.stderr)
        print(f"{prefix} Subject: {describe_email(request)}", file=sys.stderr)
        self.sent.append(request)

    async def aclose(self) -> None:
        self.sent.clear()
