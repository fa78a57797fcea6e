"""Account endpoints."""

from fastapi import APIRouter, Depends, status

from schemabuilder.api.container import ServiceContainer
from schemabuilder.api.dependencies import bearer_token, get_container
from schemabuilder.models.auth import (
    EmailRequest,
    FederatedLoginRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SuccessResponse,
    VerifyRequest,
)

router = APIRouter()


@router.post("/register", response_model=SuccessResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, container: ServiceContainer = Depends(get_container)):
    user = await container.identities.register(body)
    return SuccessResponse(
        message="Registration successful. Please check your email for verification code.",
        data={"email": user.email},
    )


@router.post("/login", response_model=SuccessResponse)
async def login(body: LoginRequest, container: ServiceContainer = Depends(get_container)):
    result = await container.identities.login(body.email, body.password)
    return SuccessResponse(message="Login successful", data=result)


@router.post("/verify", response_model=SuccessResponse)
async def verify(body: VerifyRequest, container: ServiceContainer = Depends(get_container)):
    await container.identities.verify(body.email, body.code)
    return SuccessResponse(message="Email verified successfully")


@router.post("/resend-code", response_model=SuccessResponse)
async def resend_code(body: EmailRequest, container: ServiceContainer = Depends(get_container)):
    await container.identities.resend_code(body.email)
    return SuccessResponse(message="Verification code sent")


@router.post("/forgot-password", response_model=SuccessResponse)
async def forgot_password(body: EmailRequest, container: ServiceContainer = Depends(get_container)):
    await container.identities.forgot_password(body.email)
    return SuccessResponse(message="If an account exists for this email, a reset code has been sent")


@router.post("/reset-password", response_model=SuccessResponse)
async def reset_password(body: ResetPasswordRequest, container: ServiceContainer = Depends(get_container)):
    await container.identities.reset_password(body.email, body.code, body.new_password)
    return SuccessResponse(message="Password reset successfully")


@router.post("/federated", response_model=SuccessResponse)
async def federated_login(body: FederatedLoginRequest, container: ServiceContainer = Depends(get_container)):
    result = await container.identities.federated_login(body.id_token)
    return SuccessResponse(message="Authentication successful", data=result)


@router.post("/check-user", response_model=SuccessResponse)
async def check_user(body: EmailRequest, container: ServiceContainer = Depends(get_container)):
    result = await container.identities.check_user(body.email)
    return SuccessResponse(message="User check completed", data=result)


@router.post("/refresh", response_model=SuccessResponse)
async def refresh(token: str = Depends(bearer_token), container: ServiceContainer = Depends(get_container)):
    result = await container.identities.refresh(token)
    return SuccessResponse(message="Token refreshed", data=result)
