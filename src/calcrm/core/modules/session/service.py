from datetime import timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from calcrm.config import Config
from calcrm.core.core import Service
from calcrm.core.modules.session.models import AuthToken, TokenClaims
from calcrm.core.modules.user.models import User
from calcrm.errors import AuthenticationError
from calcrm.utils import now


def encode_token(config: Config, user: User) -> AuthToken:
    """Sign an access token for the user."""
    claims = {
        "userId": str(user.id),
        "email": user.email,
        "exp": now() + timedelta(minutes=config.jwt_expire_minutes),
    }
    return AuthToken(jwt.encode(claims, config.jwt_secret_key, algorithm=config.jwt_algorithm))


def decode_token(config: Config, token: str) -> TokenClaims:
    """Verify the signature and expiry of a token and return its claims.

    Raises:
        AuthenticationError: If the token is expired, malformed or not signed by us
    """
    try:
        payload = jwt.decode(token, config.jwt_secret_key, algorithms=[config.jwt_algorithm])
    except ExpiredSignatureError as e:
        raise AuthenticationError("Token expired") from e
    except JWTError as e:
        raise AuthenticationError("Invalid token") from e
    return TokenClaims.model_validate(payload)


class SessionService(Service):
    """Issues and verifies stateless JWT access tokens."""

    def create_token(self, user: User) -> AuthToken:
        return encode_token(self.core.config, user)

    def decode(self, auth_token: AuthToken) -> TokenClaims:
        return decode_token(self.core.config, auth_token)

    async def get_authenticated_user(self, auth_token: AuthToken) -> User:
        claims = self.decode(auth_token)
        if not self.core.services.user.has_user(claims.user_id):
            raise AuthenticationError("User not found")
        return self.core.services.user.get_user(claims.user_id)

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        try:
            await self.get_authenticated_user(auth_token)
        except AuthenticationError:
            return False
        return True
