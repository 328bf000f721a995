from fastapi import APIRouter
from pydantic import BaseModel, Field

from calcrm.core.modules.session.models import AuthResult, AuthToken, TokenClaims
from calcrm.core.modules.user.models import UserRole, UserView
from calcrm.web.deps import AppDep, AuthTokenDep
from calcrm.web.openapi import ErrorResponse
from calcrm.web.responses import DataResponse

router = APIRouter(tags=["auth"])


class RegisterRequest(BaseModel):
    """Account registration request."""

    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., description="Email address, used to sign in")
    password: str = Field(..., description="Password, at least 6 characters")
    designation: str = Field("", description="Job title")
    role: UserRole = Field(UserRole.VIEWER, description="Editor or Viewer")

    model_config = {
        "json_schema_extra": {
            "examples": [{"name": "Jane Doe", "email": "jane@example.com", "password": "secret1", "designation": "QA"}]
        }
    }


class LoginRequest(BaseModel):
    """Authentication request."""

    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class CheckTokenRequest(BaseModel):
    token: str = Field(..., min_length=1, description="Token to verify")


class UserData(BaseModel):
    user: UserView


class TokenData(BaseModel):
    token: TokenClaims


@router.post(
    "/auth/register",
    summary="Register account",
    description="Create an Editor or Viewer account and receive an authentication token.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "Account created"},
        400: {"model": ErrorResponse, "description": "Invalid input or email already registered"},
    },
)
async def register(data: RegisterRequest, app: AppDep) -> DataResponse[AuthResult]:
    result = await app.register(data.name, data.email, data.password, data.designation, data.role)
    return DataResponse(message="Registration successful", data=result)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description="Authenticate with email and password to receive an authentication token.",
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
async def login(data: LoginRequest, app: AppDep) -> DataResponse[AuthResult]:
    result = await app.login(data.email, data.password)
    return DataResponse(message="Login successful", data=result)


@router.get(
    "/auth/me",
    summary="Get current user",
    description="Get the account the bearer token belongs to.",
    operation_id="getCurrentUser",
    responses={
        200: {"description": "Current user"},
        401: {"model": ErrorResponse, "description": "Missing, invalid or expired token"},
    },
)
async def get_current_user(app: AppDep, auth_token: AuthTokenDep) -> DataResponse[UserData]:
    user = await app.get_current_user(auth_token)
    return DataResponse(message="User retrieved successfully", data=UserData(user=user))


@router.post(
    "/auth/check-token",
    summary="Verify token",
    description="Decode a token sent in the body and return its claims.",
    operation_id="checkToken",
    responses={
        200: {"description": "Token is valid"},
        401: {"model": ErrorResponse, "description": "Invalid or expired token"},
    },
)
async def check_token(data: CheckTokenRequest, app: AppDep) -> DataResponse[TokenData]:
    claims = app.check_token(AuthToken(data.token))
    return DataResponse(message="Token is valid", data=TokenData(token=claims))
