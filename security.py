import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, Request
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from errors import Unauthorized
from schemas import SignedDetails
from settings import Settings, settings

logger = logging.getLogger(__name__)

REFRESH_TOKEN_TYPE = "refresh"

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


class TokenService:
    """
    Issues and checks the signed tokens handed out at signup and login.

    Session and refresh tokens carry the same identity claims and differ
    only in lifetime; the refresh token is also marked with `type: refresh`.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=24),
        refresh_ttl: timedelta = timedelta(hours=168),
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenService":
        if not config.secret_key:
            logger.warning("SECRET_KEY is not set, tokens are signed with an empty key")
        return cls(
            config.secret_key,
            algorithm=config.algorithm,
            access_ttl=timedelta(hours=config.access_token_expire_hours),
            refresh_ttl=timedelta(hours=config.refresh_token_expire_hours),
        )

    def _sign(self, claims: dict, ttl: timedelta) -> str:
        expire = datetime.now(timezone.utc) + ttl
        to_encode = dict(claims, exp=int(expire.timestamp()))
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def generate_all_tokens(
        self, email: str, first_name: str, last_name: str, uid: str
    ) -> tuple[str, str]:
        """Return (token, refresh_token). Signing errors propagate."""
        claims = {"email": email, "first_name": first_name, "last_name": last_name, "uid": uid}
        token = self._sign(claims, self.access_ttl)
        refresh_token = self._sign(dict(claims, type=REFRESH_TOKEN_TYPE), self.refresh_ttl)
        return token, refresh_token

    def validate_token(self, signed_token: str) -> tuple[Optional[SignedDetails], str]:
        """
        Check signature and expiry.

        Returns:
            (claims, message). claims is None when the signature does not
            verify; message is empty only for a valid, unexpired token.
        """
        try:
            # Expiry is checked below so an expired token still yields its claims
            payload = jwt.decode(
                signed_token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            return None, str(exc)

        try:
            claims = SignedDetails(**payload)
        except ValidationError:
            return None, "Token is invalid"

        if claims.exp < time.time():
            return claims, "Token is expired"
        return claims, ""


def authenticate(request: Request, token: Optional[str] = Header(None)) -> SignedDetails:
    """Reject the request unless the `token` header holds a valid session token."""
    if not token:
        raise Unauthorized("No authorization header provided")

    claims, msg = request.app.state.token_service.validate_token(token)
    if claims is None or msg:
        logger.debug(f"Rejected token on {request.url.path}: {msg}")
        raise Unauthorized(f"An error occurred - {msg}")
    if claims.type == REFRESH_TOKEN_TYPE:
        raise Unauthorized("An error occurred - refresh token cannot be used as a session token")

    request.state.email = claims.email
    request.state.first_name = claims.first_name
    request.state.last_name = claims.last_name
    request.state.uid = claims.uid
    return claims
