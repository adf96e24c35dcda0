# Overview: Verifies bearer identity tokens issued by the external identity provider.

from __future__ import annotations

import logging
from dataclasses import dataclass

from jose import JWTError, jwt

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Token missing, malformed, expired or signed by someone else."""
    reason = "unauthorized"


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str = ""
    name: str = ""
    picture: str = ""


class IdentityVerifier:
    def verify(self, token: str) -> Identity:
        raise NotImplementedError


class JwtIdentityVerifier(IdentityVerifier):
    """
    Verifies signed JWTs and maps their claims onto an Identity.

    The subject comes from `sub` (falling back to `uid`). Audience and issuer
    are checked only when configured.
    """

    def __init__(self, *, secret: str, algorithms: list[str], audience: str | None = None, issuer: str | None = None):
        self.secret = secret
        self.algorithms = algorithms
        self.audience = audience
        self.issuer = issuer

    def verify(self, token: str) -> Identity:
        if not token:
            raise IdentityError("Empty token")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": bool(self.audience)},
            )
        except JWTError as exc:
            logger.info("Identity token rejected: %s", exc)
            raise IdentityError(str(exc)) from exc

        uid = claims.get("sub") or claims.get("uid")
        if not uid:
            raise IdentityError("Token has no subject")

        return Identity(
            uid=str(uid),
            email=claims.get("email") or "",
            name=claims.get("name") or "",
            picture=claims.get("picture") or "",
        )


def build_identity_verifier(config) -> IdentityVerifier:
    if config.get("IDENTITY_VERIFIER") is not None:
        return config["IDENTITY_VERIFIER"]
    return JwtIdentityVerifier(
        secret=config["IDENTITY_JWT_SECRET"],
        algorithms=config["IDENTITY_JWT_ALGORITHMS"],
        audience=config.get("IDENTITY_JWT_AUDIENCE"),
        issuer=config.get("IDENTITY_JWT_ISSUER"),
    )
