"""Account endpoints.

Provides:
- /accounts/register - Account registration
- /accounts/login - Access token issuance
- /accounts - Profile of the authenticated caller
"""

from fastapi import APIRouter, Depends, Response, status

from pds.core.logging import get_api_logger
from pds.core.security import TokenClaims, get_current_claims
from pds.models.schemas import AccessTokenResponse, AccountCredentials, ProfileResponse
from pds.services.account_service import AccountService
from .dependencies import get_account_service

logger = get_api_logger()

router = APIRouter()


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register Account",
    operation_id="registerAccount",
    response_class=Response,
    responses={
        201: {"description": "Account created"},
        400: {"description": "Empty username or password"},
        409: {"description": "Username already taken"},
        503: {"description": "Credential store unavailable"},
    },
)
async def register(
    credentials: AccountCredentials,
    account_service: AccountService = Depends(get_account_service),
) -> Response:
    """Create an account. Usernames are case-sensitive."""
    await account_service.register(credentials.username, credentials.password)
    return Response(status_code=status.HTTP_201_CREATED)


@router.post(
    "/login",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Login",
    operation_id="login",
    description="""Exchange username and password for a signed access token.

Send the token as `Authorization: Bearer <access_token>` on document requests.
The token expires after `ACCESS_TOKEN_EXPIRE_MINUTES` (two days by default).""",
    responses={
        401: {"description": "Invalid username or password"},
        503: {"description": "Credential store unavailable"},
    },
)
async def login(
    credentials: AccountCredentials,
    account_service: AccountService = Depends(get_account_service),
) -> AccessTokenResponse:
    result = await account_service.login(credentials.username, credentials.password)
    return AccessTokenResponse(**result)


@router.get(
    "",
    response_model=ProfileResponse,
    summary="Current Account",
    operation_id="getProfile",
    responses={401: {"description": "Missing, invalid or expired token"}},
)
async def profile(
    claims: TokenClaims = Depends(get_current_claims),
) -> ProfileResponse:
    """Claims of the caller's verified token; no store lookup is made."""
    return ProfileResponse(**claims.to_payload())
