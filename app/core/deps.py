"""
Dependency Injection

FastAPI dependencies for routes.
"""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationError
from app.core.security import AuthenticatedUser, IdentityProviderClient, identity_provider
from app.infra.db import get_db
from app.infra.storage import StorageClient, get_storage
from app.workers.dispatcher import PipelineDispatcher, get_pipeline_dispatcher

# Bearer scheme; missing headers are turned into our own 401 below
bearer_scheme = HTTPBearer(auto_error=False)

# Type aliases for common dependencies
SessionDep = Annotated[AsyncSession, Depends(get_db)]
StorageDep = Annotated[StorageClient, Depends(get_storage)]
DispatcherDep = Annotated[PipelineDispatcher, Depends(get_pipeline_dispatcher)]


def get_identity_provider() -> IdentityProviderClient:
    return identity_provider


IdentityProviderDep = Annotated[IdentityProviderClient, Depends(get_identity_provider)]


def get_bearer_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return credentials.credentials


BearerTokenDep = Annotated[str, Depends(get_bearer_token)]


async def get_current_user(token: BearerTokenDep, provider: IdentityProviderDep) -> AuthenticatedUser:
    """
    Resolve the bearer token to a user via the identity provider.
    """
    return await provider.verify_token(token)


CurrentUserDep = Annotated[AuthenticatedUser, Depends(get_current_user)]
