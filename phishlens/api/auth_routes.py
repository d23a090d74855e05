import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from phishlens.api.deps import get_current_user
from phishlens.database import get_db
from phishlens.models import User
from phishlens.schemas import (
    LoginRequest, RegisterRequest, ResendOTPRequest, UserResponse, VerifyOTPRequest
)
from phishlens.services.auth_service import AuthError, AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_payload(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json", by_alias=True)


@router.post("/register", status_code=201, response_model=dict)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user = AuthService(db).register(request.name, request.email, request.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "message": "Registration successful. Please check your email for OTP verification.",
        "data": {"userId": user.id, "email": user.email, "name": user.name}
    }


@router.post("/verify-otp", response_model=dict)
def verify_otp(request: VerifyOTPRequest, db: Session = Depends(get_db)):
    try:
        user, token = AuthService(db).verify_otp(request.email, request.otp)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "message": "Email verified successfully",
        "data": {"token": token, "user": _user_payload(user)}
    }


@router.post("/resend-otp", response_model=dict)
def resend_otp(request: ResendOTPRequest, db: Session = Depends(get_db)):
    try:
        AuthService(db).resend_otp(request.email)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {"success": True, "message": "A new OTP has been sent to your email"}


@router.post("/login", response_model=dict)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    try:
        user, token = AuthService(db).login(request.email, request.password)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "message": "Login successful",
        "data": {"token": token, "user": _user_payload(user)}
    }


@router.get("/me", response_model=dict)
def get_me(user: User = Depends(get_current_user)):
    return {"success": True, "data": _user_payload(user)}


@router.post("/logout", response_model=dict)
def logout(request: Request, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    AuthService(db).logout(request.state.token)
    logger.info(f"User {user.id} logged out")
    return {"success": True, "message": "Logged out successfully"}
