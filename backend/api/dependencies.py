"""FastAPI dependency injection for services, repositories and credentials."""

from typing import Annotated, Optional

import asyncpg
from fastapi import Depends
from fastapi.security import APIKeyHeader

from backend.core.credentials import CredentialResolver, CredentialResult
from backend.core.engagement import PairLocks
from backend.core.types import Principal
from .config import get_auth_settings
from .database.db import get_connection
from .database.repository import TaleRepository, UserRepository
from .services.tale_generation import TaleGenerationService
from .services.tale_service import TaleService

# Raw Authorization header: accepts "Bearer <token>" and bare tokens alike.
# auto_error=False so missing credentials reach the resolver as Absent.
authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,
    description="Bearer access token",
)

# Process-wide singletons
_credential_resolver = CredentialResolver(get_auth_settings())
_pair_locks = PairLocks()
_generation_service = TaleGenerationService()


def get_credential_resolver() -> CredentialResolver:
    return _credential_resolver


def get_pair_locks() -> PairLocks:
    return _pair_locks


def get_generation_service() -> TaleGenerationService:
    return _generation_service


# Repositories - require a pooled connection
def get_repository(
    conn: Annotated[asyncpg.Connection, Depends(get_connection)]
) -> TaleRepository:
    """Get a TaleRepository instance with injected connection."""
    return TaleRepository(conn)


def get_user_repository(
    conn: Annotated[asyncpg.Connection, Depends(get_connection)]
) -> UserRepository:
    """Get a UserRepository instance with injected connection."""
    return UserRepository(conn)


# Service - depends on repository and the shared lock registry
def get_tale_service(
    repo: Annotated[TaleRepository, Depends(get_repository)],
    locks: Annotated[PairLocks, Depends(get_pair_locks)],
) -> TaleService:
    """Get a TaleService instance with injected repository."""
    return TaleService(repo, locks=locks)


# Authentication dependencies
def get_optional_credential(
    authorization: Annotated[Optional[str], Depends(authorization_header)],
    resolver: Annotated[CredentialResolver, Depends(get_credential_resolver)],
) -> CredentialResult:
    """Resolve the credential without failing: Present, Absent or Invalid."""
    return resolver.resolve(authorization)


def get_current_principal(
    authorization: Annotated[Optional[str], Depends(authorization_header)],
    resolver: Annotated[CredentialResolver, Depends(get_credential_resolver)],
) -> Principal:
    """Resolve a mandatory credential.

    Raises:
        MissingCredential: no Authorization header (401)
        InvalidCredential: token failed verification (401)
    """
    return resolver.require(authorization)


# Type aliases for cleaner route signatures
Repository = Annotated[TaleRepository, Depends(get_repository)]
Users = Annotated[UserRepository, Depends(get_user_repository)]
Service = Annotated[TaleService, Depends(get_tale_service)]
Generation = Annotated[TaleGenerationService, Depends(get_generation_service)]
Resolver = Annotated[CredentialResolver, Depends(get_credential_resolver)]
OptionalCredential = Annotated[CredentialResult, Depends(get_optional_credential)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
