"""Shared-secret bearer token check."""

import hmac

from pydantic import SecretStr

from hotline.errors import Unauthorized


def authenticate(token: SecretStr | None, authorization: str | None) -> None:
    """Raise Unauthorized unless no token is configured or the header is exactly ``Bearer <token>``."""
    if token is None:
        return
    expected = f"Bearer {token.get_secret_value()}"
    if authorization is None or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise Unauthorized()
