"""
Password-reset delivery hook.

No mail transport is wired in; the link is handed to ``ResetLinkSender``
which only logs it. Swap the dependency to plug in a real sender.
"""

from __future__ import annotations

import logging

from officehr.core.config import settings

logger = logging.getLogger(__name__)


def reset_link(token: str) -> str:
    return f"{settings.PASSWORD_RESET_URL}?token={token}"


class ResetLinkSender:
    async def send(self, email: str, token: str) -> None:
        logger.info("Password reset link issued for %s", email)
        logger.debug("Reset link for %s: %s", email, reset_link(token))
