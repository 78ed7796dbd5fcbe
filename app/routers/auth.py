from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from app.dependencies import get_db, verify_client, client_ip
from app.schemas.auth import (
    AuthResponse,
    RegisterOrLoginRequest,
    SignOutRequest,
    ValidateSessionRequest,
    ValidateSessionResponse,
    VerifyCodeRequest,
)
from app.services import identity, sessions

router = APIRouter(tags=["auth"], dependencies=[Depends(verify_client)])

@router.post("/auth-register-or-login", response_model=AuthResponse)
async def register_or_login(
    payload: RegisterOrLoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    return await identity.register_or_login(
        db,
        project_id=payload.project_id,
        display_name=payload.display_name,
        role=payload.role,
        password=payload.password,
        contractor_role=payload.contractor_role,
        ip_address=client_ip(request),
    )

@router.post("/auth-verify-code", response_model=AuthResponse)
async def verify_code(
    payload: VerifyCodeRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    return await identity.verify_access_code(
        db,
        code=payload.code,
        display_name=payload.display_name,
        role=payload.role,
        ip_address=client_ip(request),
    )

@router.post("/auth-validate-session", response_model=ValidateSessionResponse)
async def validate_session(payload: ValidateSessionRequest, db: AsyncSession = Depends(get_db)):
    session_identity = await sessions.validate_session(db, payload.session_token)
    if session_identity is None:
        # Never say whether the token expired or never existed
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"valid": False, "error": "Invalid or expired session"},
        )
    return ValidateSessionResponse(valid=True, session=session_identity)

@router.post("/auth-sign-out")
async def sign_out(payload: SignOutRequest, request: Request, db: AsyncSession = Depends(get_db)):
    await sessions.revoke_session(db, payload.session_token, ip_address=client_ip(request))
    return {"success": True}
