"""Credential handling and token acquisition."""

import logging
from dataclasses import dataclass, field
from typing import Optional

import click

from .api import MoveitClient
from .config import config
from .exceptions import MoveitAuthenticationError
from .output import OutputFormatter

logger = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 3


@dataclass(frozen=True)
class Credentials:
    """Account credentials for the token exchange."""

    username: str
    password: str = field(repr=False)


class TokenProvider:
    """Requests a fresh bearer token for each logical operation group.

    Tokens are deliberately not cached; every call performs a token exchange.
    """

    def __init__(self, client: MoveitClient, credentials: Credentials):
        self.client = client
        self.credentials = credentials

    def get_token(self) -> str:
        """Exchange the stored credentials for a new token.

        Raises:
            MoveitAuthenticationError: If the exchange fails
        """
        logger.debug(f"Requesting access token for {self.credentials.username}")
        return self.client.get_token(
            self.credentials.username, self.credentials.password
        )


def require_credentials(
    ctx: click.Context,
    out: OutputFormatter,
    client: MoveitClient,
) -> Credentials:
    """Resolve credentials from options, environment or prompts and verify them.

    When the password was typed at a prompt, a rejected login is re-prompted
    up to MAX_LOGIN_ATTEMPTS times. Otherwise the first failure is fatal.

    Args:
        ctx: Click context holding ``username`` and ``password``
        out: Output formatter for messages
        client: API client used to verify the credentials

    Returns:
        Verified credentials
    """
    username = ctx.obj.get("username") or config.username
    password = ctx.obj.get("password") or config.password

    if not username:
        username = click.prompt("Enter username")
    prompted = not password

    attempts = 0
    while True:
        if not password:
            password = click.prompt("Enter password", hide_input=True)

        credentials = Credentials(username=username, password=password)
        try:
            client.get_token(credentials.username, credentials.password)
            return credentials
        except MoveitAuthenticationError as e:
            attempts += 1
            out.error(f"Login failed: {e}")
            if not prompted or attempts >= MAX_LOGIN_ATTEMPTS:
                ctx.exit(1)
            password = None
