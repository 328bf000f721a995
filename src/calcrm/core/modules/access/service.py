from calcrm.core.core import Service
from calcrm.core.modules.session.models import AuthToken
from calcrm.core.modules.user.models import User
from calcrm.errors import AccessDeniedError


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(auth_token)

    async def ensure_admin(self, auth_token: AuthToken) -> User:
        """Ensure the authenticated user has the Admin role, raise AccessDeniedError if not."""
        user = await self.core.services.session.get_authenticated_user(auth_token)
        if not user.is_admin:
            raise AccessDeniedError
        return user
