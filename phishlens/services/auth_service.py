import re
import secrets
import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple
from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash, check_password_hash

from phishlens.config import settings
from phishlens.models import AuthToken, User
from phishlens.services.email_service import EmailService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')


class AuthError(Exception):
    """Authentication failure carrying the HTTP status to report"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def generate_otp() -> str:
    return str(secrets.randbelow(900000) + 100000)  # 6-digit OTP


class AuthService:
    def __init__(self, db: Session, email_service: Optional[EmailService] = None):
        self.db = db
        self.email_service = email_service or EmailService()

    # ===== REGISTRATION & VERIFICATION =====

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
        if not name or not email or not password:
            raise AuthError("Please provide all required fields")
        if len(password) < settings.MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")

        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise AuthError("Please provide a valid email address")
        if self._find_by_email(email):
            raise AuthError("User already exists with this email")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=generate_password_hash(password),
            is_verified=False,
            analysis_count=0
        )
        self.db.add(user)
        self.db.flush()

        otp = self._issue_otp(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Registered user {user.id}")

        self.email_service.send_otp(user.email, user.name, otp)
        return user

    def verify_otp(self, email: Optional[str], otp: Optional[str]) -> Tuple[User, str]:
        if not email or not otp:
            raise AuthError("Please provide email and OTP")

        user = self._find_by_email(email.strip().lower())
        if not user:
            raise AuthError("User not found", 404)

        if not user.otp or not user.otp_expires_at:
            raise AuthError("Invalid or expired OTP")
        if user.otp_expires_at < datetime.utcnow():
            raise AuthError("Invalid or expired OTP")
        if not secrets.compare_digest(user.otp, otp.strip()):
            raise AuthError("Invalid or expired OTP")

        user.is_verified = True
        user.otp = None
        user.otp_expires_at = None
        user.last_login = datetime.utcnow()
        token = self._issue_token(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} verified")

        self.email_service.send_welcome(user.email, user.name)
        return user, token

    def resend_otp(self, email: Optional[str]) -> User:
        if not email:
            raise AuthError("Please provide email")

        user = self._find_by_email(email.strip().lower())
        if not user:
            raise AuthError("User not found", 404)
        if user.is_verified:
            raise AuthError("User is already verified")

        otp = self._issue_otp(user)
        self.db.commit()
        self.email_service.send_otp(user.email, user.name, otp)
        return user

    # ===== SESSIONS =====

    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        if not email or not password:
            raise AuthError("Please provide email and password")

        user = self._find_by_email(email.strip().lower())
        if not user or not check_password_hash(user.password_hash, password):
            raise AuthError("Invalid email or password", 401)

        if not user.is_verified:
            otp = self._issue_otp(user)
            self.db.commit()
            self.email_service.send_otp(user.email, user.name, otp)
            raise AuthError("Please verify your email first. A new OTP has been sent.", 403)

        user.last_login = datetime.utcnow()
        token = self._issue_token(user)
        self.db.commit()
        self.db.refresh(user)
        return user, token

    def authenticate_token(self, token: Optional[str]) -> User:
        if not token:
            raise AuthError("Not authorized, no token", 401)

        record = self.db.query(AuthToken).filter(AuthToken.token == token).first()
        if not record:
            raise AuthError("Not authorized, token failed", 401)
        if record.expires_at < datetime.utcnow():
            self.db.delete(record)
            self.db.commit()
            raise AuthError("Not authorized, token expired", 401)
        if not record.user:
            raise AuthError("User not found", 401)
        return record.user

    def logout(self, token: str) -> None:
        self.db.query(AuthToken).filter(AuthToken.token == token).delete()
        self.db.commit()

    # ===== HELPERS =====

    def _find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def _issue_otp(self, user: User) -> str:
        otp = generate_otp()
        user.otp = otp
        user.otp_expires_at = datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
        return otp

    def _issue_token(self, user: User) -> str:
        token = secrets.token_urlsafe(32)
        self.db.add(AuthToken(
            user_id=user.id,
            token=token,
            expires_at=datetime.utcnow() + timedelta(days=settings.TOKEN_EXPIRE_DAYS)
        ))
        return token
