"""JWT bearer token creation and validation (ES256).

The quiz service only *verifies* bearer tokens; issuing them belongs to
an identity provider.  create_access_token() exists for development,
tests and the demo script, which mint tokens against the same
ephemeral key the service verifies with.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

# Dev/test: ephemeral EC key pair generated on import.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "classquiz"
AUDIENCE = "classquiz-api"
# Long enough to outlast a timed quiz; the client never refreshes mid-attempt.
ACCESS_TOKEN_TTL_MIN = 240

VALID_ROLES = frozenset({"student", "teacher"})


def create_access_token(*, sub: str, roles: list[str] | None = None) -> str:
    """Build and sign a JWT access token with sub, iss, aud, exp, iat, jti, roles."""
    roles = roles or ["student"]
    unknown = set(roles) - VALID_ROLES
    if unknown:
        raise ValueError(f"unknown roles: {sorted(unknown)}")

    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ACCESS_TOKEN_TTL_MIN),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "roles": roles,
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins algorithm to ES256 to prevent alg:none and alg-switching attacks.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
