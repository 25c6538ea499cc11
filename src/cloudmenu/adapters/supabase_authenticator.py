"""Supabase Auth token verification."""

import logging
from dataclasses import dataclass

from supabase import Client

from cloudmenu.services.translations import UserAuthenticator

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseAuthenticator(UserAuthenticator):
    """Resolves users from Supabase access tokens."""

    client: Client

    def get_user_id(self, access_token: str) -> str | None:
        """Return the user id for the token, or ``None`` when it is rejected."""
        try:
            response = self.client.auth.get_user(access_token)
        except Exception as exc:
            _logger.warning("Access token rejected: %s", exc)
            return None
        user = getattr(response, "user", None)
        if user is None:
            return None
        return str(user.id)
