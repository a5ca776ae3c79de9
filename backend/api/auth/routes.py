"""Authentication routes: registration, email/password login and profile."""

import logging
import uuid

from fastapi import APIRouter, status

from backend.core.errors import InvalidLogin, UserNotFound
from ..dependencies import CurrentPrincipal, Repository, Resolver, Users
from ..models.requests import LoginRequest, RegisterRequest
from ..models.responses import TokenResponse, UserResponse
from .passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, users: Users, resolver: Resolver) -> TokenResponse:
    """Create an account and receive an access token.

    Returns 409 if the email is already registered.
    """
    user = await users.create_user(
        user_id=str(uuid.uuid4()),
        name=request.name,
        email=request.email,
        password_hash=hash_password(request.password),
    )
    logger.info("User registered", extra={"user_id": user.id})
    return TokenResponse(access_token=resolver.issue(user.id))


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, users: Users, resolver: Resolver) -> TokenResponse:
    """Authenticate with email and password and receive an access token.

    The token should be included in the Authorization header for all
    subsequent requests.
    """
    user = await users.get_user_by_email(request.email)
    if user is None or not verify_password(request.password, user.password_hash):
        raise InvalidLogin()

    return TokenResponse(access_token=resolver.issue(user.id))


@router.get("/me", response_model=UserResponse)
async def me(principal: CurrentPrincipal, users: Users, repo: Repository) -> UserResponse:
    """Get the authenticated user's profile and liked tale ids."""
    user = await users.get_user(principal.id)
    if user is None:
        raise UserNotFound()

    liked = await repo.get_liked_tale_ids(principal.id)
    return UserResponse.from_user(user, liked)
