from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from identity_search.api.deps import (
    client_key,
    get_context,
    get_current_identity,
    get_settings,
)
from identity_search.api.schemas import (
    IdentityResponse,
    LoginRequest,
    SignupRequest,
    SignupResponse,
    Token,
    VerifyEmailResponse,
)
from identity_search.app_shell.context import ServiceContext
from identity_search.components.auth import (
    LoginInput,
    SignupInput,
    VerifyEmailInput,
    run_login,
    run_signup,
    run_verify_email,
)
from identity_search.domain.entities import Identity

router = APIRouter()


def _too_many_requests() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many requests, please try again later",
    )


def _set_auth_cookie(response: Response, token: str, ttl_minutes: int) -> None:
    response.set_cookie(
        key="access_token",
        value=f"Bearer {token}",
        httponly=True,
        max_age=ttl_minutes * 60,
        samesite="lax",
        secure=False,  # Set to True for HTTPS prod
    )


@router.post("/sign-up", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def sign_up(
    req: SignupRequest,
    request: Request,
    ctx: ServiceContext = Depends(get_context),
) -> Any:
    """Create an account and send the verification email."""
    if not ctx.rate_limiter.check_signup(client_key(request)):
        raise _too_many_requests()

    result = run_signup(
        SignupInput(email=req.email, password=req.password, name=req.name),
        identity_repo=ctx.identity_repo,
        verification_repo=ctx.verification_repo,
        auth_adapter=ctx.auth_adapter,
        mailer=ctx.mailer,
        hooks=ctx.bridge,
        time=ctx.clock,
        rules=ctx.rules.auth,
        base_url=get_settings().public_base_url,
    )
    if not result.success:
        if result.error == "Email already in use":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.error)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)

    return SignupResponse(
        user=IdentityResponse.model_validate(result.identity),
        verification_required=ctx.rules.auth.require_email_verification,
    )


@router.get("/verify-email", response_model=VerifyEmailResponse)
def verify_email(
    token: str,
    request: Request,
    response: Response,
    ctx: ServiceContext = Depends(get_context),
) -> Any:
    """Consume a verification token and mark the account verified."""
    if not ctx.rate_limiter.check_verify(client_key(request)):
        raise _too_many_requests()

    result = run_verify_email(
        VerifyEmailInput(token=token),
        identity_repo=ctx.identity_repo,
        verification_repo=ctx.verification_repo,
        auth_adapter=ctx.auth_adapter,
        hooks=ctx.bridge,
        time=ctx.clock,
        rules=ctx.rules.auth,
    )
    if not result.success:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)

    if result.token_raw:
        _set_auth_cookie(response, result.token_raw, ctx.rules.auth.access_token_ttl_minutes)

    return VerifyEmailResponse(
        status=True,
        user=IdentityResponse.model_validate(result.identity),
        access_token=result.token_raw,
    )


@router.post("/login", response_model=Token)
def login(
    req: LoginRequest,
    request: Request,
    response: Response,
    ctx: ServiceContext = Depends(get_context),
) -> Token:
    """Authenticate and return an access token."""
    if not ctx.rate_limiter.check_login(client_key(request)):
        raise _too_many_requests()

    result = run_login(
        LoginInput(email=req.email, password=req.password),
        identity_repo=ctx.identity_repo,
        auth_adapter=ctx.auth_adapter,
        rules=ctx.rules.auth,
    )
    if not result.success or not result.token_raw:
        if result.error == "Invalid credentials":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=result.error)

    _set_auth_cookie(response, result.token_raw, ctx.rules.auth.access_token_ttl_minutes)
    return Token(access_token=result.token_raw)


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    """Log out user by clearing cookie."""
    response.delete_cookie(key="access_token")
    return {"status": "success"}


@router.get("/me", response_model=IdentityResponse)
def read_me(current: Identity = Depends(get_current_identity)) -> Any:
    return current
