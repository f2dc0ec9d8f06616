"""
Auth endpoints

Thin proxy over the identity provider: sign-up, login and logout are
forwarded to it, and the profile is whoever the bearer token belongs to.
"""

from fastapi import APIRouter, Response, status

from app.core.deps import BearerTokenDep, CurrentUserDep, IdentityProviderDep
from app.core.security import AuthenticatedUser, AuthSession
from app.schemas.auth import LoginRequest, SignupRequest

router = APIRouter()


@router.post("/signup", response_model=AuthSession, status_code=status.HTTP_201_CREATED)
async def signup(signup_in: SignupRequest, provider: IdentityProviderDep):
    return await provider.sign_up(signup_in.email, signup_in.password, signup_in.name)


@router.post("/login", response_model=AuthSession)
async def login(login_in: LoginRequest, provider: IdentityProviderDep):
    return await provider.sign_in(login_in.email, login_in.password)


@router.get("/profile", response_model=AuthenticatedUser)
async def get_profile(current_user: CurrentUserDep):
    return current_user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(token: BearerTokenDep, provider: IdentityProviderDep):
    await provider.sign_out(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
