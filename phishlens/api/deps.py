from typing import Optional
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from phishlens.database import get_db
from phishlens.models import User
from phishlens.services.auth_service import AuthError, AuthService

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the bearer token to its user or fail with 401"""
    token = credentials.credentials if credentials else None
    try:
        user = AuthService(db).authenticate_token(token)
    except AuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    request.state.token = token
    return user
