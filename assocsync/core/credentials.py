"""Credential check producing a session principal."""

import logging
from typing import Protocol

from ..models.entities import User
from .client import StoreAPIError

logger = logging.getLogger(__name__)


class UserLookup(Protocol):
    async def find_user(self, email: str, secret: str) -> User | None: ...


class CredentialGate:
    """Validates an email/secret pair against the ``users`` collection.

    The secret is compared as stored, in plain text.
    """

    def __init__(self, remote: UserLookup) -> None:
        self.remote = remote

    async def check(self, email: str, secret: str) -> User | None:
        """Return the principal for a matching credential record.

        Remote errors are treated like a miss: no principal is produced.
        """
        if not email or not secret:
            return None

        try:
            user = await self.remote.find_user(email, secret)
        except StoreAPIError as e:
            logger.error("Credential lookup failed for %s: %s", email, e)
            return None

        if user is None:
            logger.info("Login rejected for %s", email)
        return user
