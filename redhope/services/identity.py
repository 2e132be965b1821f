# redhope/services/identity.py
# ─────────────────────────────────────────────────────────────────────────────
# Bearer-credential verification → verified principal email
# ─────────────────────────────────────────────────────────────────────────────
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import jwt  # PyJWT

from redhope.errors import Unauthorized

log = logging.getLogger(__name__)


class IdentityVerifier(Protocol):
    def verify(self, authorization: Optional[str]) -> str: ...


def parse_api_tokens(raw: str) -> Dict[str, str]:
    """Parse "token=email,token2=email2" into {token: email}."""
    out: Dict[str, str] = {}
    for chunk in (raw or "").split(","):
        tok, sep, email = chunk.strip().partition("=")
        if sep and tok.strip() and email.strip():
            out[tok.strip()] = email.strip().lower()
    return out


def _normalize_pem(s: str) -> str:
    """Normalize PEM strings that may contain escaped newlines."""
    return s.replace("\\n", "\n") if "BEGIN" in s and "\\n" in s else s


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    h = (authorization or "").strip()
    if not h.lower().startswith("bearer "):
        return None
    return h.split(" ", 1)[1].strip() or None


class BearerIdentityVerifier:
    """
    Accepts either:
    1. a static API token mapped to an email (API_TOKENS), or
    2. a JWT (JWT_SECRET or JWT_PUBLIC_KEY) whose `email` or `sub` claim is the principal.
    """

    def __init__(
        self,
        *,
        api_tokens: Optional[Dict[str, str]] = None,
        jwt_secret: str = "",
        jwt_public_key: str = "",
        jwt_alg: str = "HS256",
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ) -> None:
        self.api_tokens = dict(api_tokens or {})
        self.jwt_key = jwt_secret or _normalize_pem(jwt_public_key or "")
        self.jwt_alg = jwt_alg or "HS256"
        self.audience = audience or None
        self.issuer = issuer or None

    @classmethod
    def from_config(cls, config: Any) -> "BearerIdentityVerifier":
        return cls(
            api_tokens=parse_api_tokens(str(config.get("API_TOKENS") or "")),
            jwt_secret=str(config.get("JWT_SECRET") or ""),
            jwt_public_key=str(config.get("JWT_PUBLIC_KEY") or ""),
            jwt_alg=str(config.get("JWT_ALG") or "HS256"),
            audience=config.get("API_AUDIENCE"),
            issuer=config.get("API_ISSUER"),
        )

    def verify(self, authorization: Optional[str]) -> str:
        tok = bearer_token(authorization)
        if not tok:
            raise Unauthorized("Missing bearer token.")

        if tok in self.api_tokens:
            return self.api_tokens[tok]

        if not self.jwt_key:
            raise Unauthorized("Invalid or unsupported bearer token.")

        try:
            claims = jwt.decode(
                tok,
                key=self.jwt_key,
                algorithms=[self.jwt_alg],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": bool(self.audience), "verify_iss": bool(self.issuer)},
            )
        except jwt.PyJWTError as e:
            log.info("identity: rejected bearer token: %s", e)
            raise Unauthorized("Invalid or expired token.") from e

        email = str(claims.get("email") or claims.get("sub") or "").strip().lower()
        if "@" not in email:
            raise Unauthorized("Token carries no email principal.")
        return email
