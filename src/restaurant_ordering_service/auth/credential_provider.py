"""Admin credential verification.

Authentication is pluggable: the application receives a CredentialProvider
and never compares credentials itself. The static provider reads a single
username/password pair from configuration.
"""

import secrets
from abc import ABC, abstractmethod


class CredentialProvider(ABC):
    """Verifies admin credentials submitted to the dashboard login."""

    @abstractmethod
    def verify(self, username: str, password: str) -> bool:
        """Check a username/password pair.

        Args:
            username: Submitted username
            password: Submitted password

        Returns:
            bool: True if the credentials grant admin access
        """


class StaticCredentialProvider(CredentialProvider):
    """Checks credentials against one configured username/password pair."""

    def __init__(self, username: str, password: str) -> None:
        """Initialize provider with the admin credentials.

        Args:
            username: Admin username
            password: Admin password

        Raises:
            ValueError: If either value is empty
        """
        if not username or not password:
            raise ValueError("Admin username and password must both be provided")

        self.username = username
        self.password = password

    def verify(self, username: str, password: str) -> bool:
        # Compare both fields so timing does not reveal which one was wrong
        username_ok = secrets.compare_digest(username.encode(), self.username.encode())
        password_ok = secrets.compare_digest(password.encode(), self.password.encode())
        return username_ok and password_ok
