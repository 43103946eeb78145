"""FastAPI dependencies for admin authentication.

Provides dependency injection functions for FastAPI endpoints to validate
admin credentials sent with HTTP Basic authentication.
"""

from fastapi import HTTPException
from fastapi.security import HTTPBasicCredentials

from restaurant_ordering_service.auth.credential_provider import CredentialProvider


def get_admin_from_credentials(
    credentials: HTTPBasicCredentials | None,
    provider: CredentialProvider,
) -> str:
    """Validate HTTP Basic credentials against the credential provider.

    Args:
        credentials: Credentials parsed from the Authorization header
        provider: CredentialProvider configured for the application

    Returns:
        str: The authenticated admin username

    Raises:
        HTTPException: 401 if credentials are missing or invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Missing admin credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    if not provider.verify(credentials.username, credentials.password):
        raise HTTPException(
            status_code=401,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username
