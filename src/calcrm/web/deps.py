from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from calcrm.app import App
from calcrm.core.modules.session.models import AuthToken
from calcrm.errors import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_auth_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> AuthToken:
    """Extract the bearer token; its signature, expiry and user are checked by the App facade."""
    if credentials is None or credentials.scheme != "Bearer" or not credentials.credentials:
        raise AuthenticationError
    return AuthToken(credentials.credentials)


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
AuthTokenDep = Annotated[AuthToken, Depends(get_auth_token)]
