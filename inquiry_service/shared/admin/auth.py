"""Admin credential check and the reversible Basic token handed to the admin UI."""

import base64
import binascii
import logging
from typing import Optional, Tuple


def encode_token(username: str, password: str) -> str:
    """Encode a credential pair as base64("username:password")."""
    return base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")


def decode_token(token: str) -> Optional[Tuple[str, str]]:
    """
    Decode a token produced by encode_token.

    The pair is split at the first colon, so passwords may contain colons.

    Returns:
        (username, password), or None if the token is not valid base64 text
        containing a colon
    """
    if not token:
        return None
    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


class AdminSessionGate:
    """
    Compares credentials against the configured admin pair.

    Tokens are not stored anywhere: every admin call re-decodes the token and
    re-checks it, so changing the configured credentials invalidates every
    token issued before.
    """

    def __init__(self, username: Optional[str], password: Optional[str]):
        self._username = username
        self._password = password

    @property
    def configured(self) -> bool:
        return bool(self._username) and bool(self._password)

    def check_credentials(self, username: str, password: str) -> bool:
        if not self.configured:
            logging.error("Admin credentials are not configured (ADMIN_USERNAME / ADMIN_PASSWORD)")
            return False
        return username == self._username and password == self._password

    def login(self, username: str, password: str) -> Optional[str]:
        """Return a token for a correct credential pair, else None."""
        if not self.check_credentials(username, password):
            return None
        return encode_token(username, password)

    def authenticate(self, token: str) -> bool:
        credentials = decode_token(token)
        if credentials is None:
            return False
        return self.check_credentials(*credentials)
