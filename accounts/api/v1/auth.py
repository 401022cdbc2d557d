"""User account endpoints (login, register, protected, updateProfile) and auth dependencies."""

from functools import lru_cache
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from accounts.core.config import get_settings
from accounts.core.database import get_db
from accounts.core.security import InvalidTokenError, PasswordHasher, TokenIssuer
from accounts.schemas.auth import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProtectedResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UserClaims,
)
from accounts.services.auth_workflow import (
    AuthOutcome,
    AuthWorkflow,
    OutcomeStatus,
    user_claims,
)
from accounts.services.credential_store import CredentialStore

router = APIRouter()
security = HTTPBearer(auto_error=False)

# Outcome -> HTTP status for failed operations.
_FAILURE_STATUS = {
    OutcomeStatus.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    OutcomeStatus.DUPLICATE_FIELD: status.HTTP_409_CONFLICT,
    OutcomeStatus.INTERNAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Token issuer built once from settings; the secret is read only here."""
    settings = get_settings()
    return TokenIssuer(
        secret=settings.SECRET_KEY.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.JWT_EXPIRE_MINUTES,
    )


def get_auth_workflow(
    db: Annotated[Session, Depends(get_db)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> AuthWorkflow:
    return AuthWorkflow(CredentialStore(db), hasher, issuer)


def get_current_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> dict[str, Any]:
    """Dependency: require a valid Bearer JWT and return its claims. Raises 401 if missing or invalid."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return issuer.verify(credentials.credentials)
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


def _raise_for_outcome(outcome: AuthOutcome, not_found_status: int) -> None:
    if outcome.ok:
        return
    if outcome.status is OutcomeStatus.USER_NOT_FOUND:
        code = not_found_status
    else:
        code = _FAILURE_STATUS[outcome.status]
    raise HTTPException(status_code=code, detail=outcome.message)


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    workflow: Annotated[AuthWorkflow, Depends(get_auth_workflow)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns a JWT and the user's profile.
    Include the token in the Authorization header as: Bearer <token>
    """
    outcome = workflow.login(body.username, body.password)
    # Unknown user and wrong password are indistinguishable to the caller.
    _raise_for_outcome(outcome, not_found_status=status.HTTP_401_UNAUTHORIZED)
    return LoginResponse(token=outcome.token, user=UserClaims(**user_claims(outcome.user)))


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    workflow: Annotated[AuthWorkflow, Depends(get_auth_workflow)],
) -> MessageResponse:
    """Create an account with role 'user'. Log in separately to obtain a token."""
    outcome = workflow.register(
        username=body.username,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        address=body.address,
    )
    _raise_for_outcome(outcome, not_found_status=status.HTTP_404_NOT_FOUND)
    return MessageResponse(msg=outcome.message)


@router.get("/protected", response_model=ProtectedResponse)
def protected(
    claims: Annotated[dict[str, Any], Depends(get_current_claims)],
    workflow: Annotated[AuthWorkflow, Depends(get_auth_workflow)],
) -> ProtectedResponse:
    """Return the identity carried by the bearer token."""
    return ProtectedResponse(user=UserClaims(**workflow.fetch_protected(claims)))


@router.patch("/updateProfile", response_model=UpdateProfileResponse)
def update_profile(
    body: UpdateProfileRequest,
    claims: Annotated[dict[str, Any], Depends(get_current_claims)],
    workflow: Annotated[AuthWorkflow, Depends(get_auth_workflow)],
) -> UpdateProfileResponse:
    """Update first name, last name and address of the token holder; returns a reissued token."""
    if body.username != claims["username"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot update another user's profile",
        )
    outcome = workflow.update_profile(
        username=body.username,
        first_name=body.first_name,
        last_name=body.last_name,
        address=body.address,
    )
    _raise_for_outcome(outcome, not_found_status=status.HTTP_404_NOT_FOUND)
    return UpdateProfileResponse(
        msg=outcome.message,
        token=outcome.token,
        user=UserClaims(**user_claims(outcome.user)),
    )
