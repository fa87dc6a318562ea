# consistify/core/identity.py
"""
Google sign-in boundary.

The rest of the app only ever sees a VerifiedIdentity.
"""
from typing import Optional, Protocol

import httpx
from jose import jwt, JWTError

from consistify.config import settings
from consistify.schemas.user import VerifiedIdentity

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class IdentityVerificationError(Exception):
    pass


class IdentityVerifier(Protocol):
    async def verify(self, credential: str) -> VerifiedIdentity: ...


class GoogleIdentityVerifier:
    def __init__(self, client_id: Optional[str], certs_url: str):
        self.client_id = client_id
        self.certs_url = certs_url

    async def _fetch_keys(self) -> dict:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(self.certs_url)
            response.raise_for_status()
            return response.json()

    async def verify(self, credential: str) -> VerifiedIdentity:
        if not self.client_id:
            raise IdentityVerificationError("Google sign-in is not configured")
        try:
            keys = await self._fetch_keys()
        except httpx.HTTPError as e:
            raise IdentityVerificationError(f"Could not load Google signing keys: {e}") from e

        try:
            claims = jwt.decode(
                credential,
                keys,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=GOOGLE_ISSUERS,
            )
        except JWTError as e:
            raise IdentityVerificationError(str(e)) from e

        if not claims.get("email") or not claims.get("sub"):
            raise IdentityVerificationError("Token carries no email")
        return VerifiedIdentity(
            google_id=claims["sub"],
            email=claims["email"],
            name=claims.get("name") or claims["email"].split("@")[0],
            picture=claims.get("picture"),
        )


def get_identity_verifier() -> IdentityVerifier:
    return GoogleIdentityVerifier(settings.GOOGLE_CLIENT_ID, settings.GOOGLE_CERTS_URL)
