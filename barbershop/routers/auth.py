import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from barbershop import schemas
from barbershop.accounts import ensure_profile, find_by_email, revoke_refresh_tokens, user_view
from barbershop.database import get_db
from barbershop.deps import client_ip, get_app_settings, get_current_user, get_login_guard
from barbershop.emailer import send_password_reset_email
from barbershop.errors import (
    AccountDisabled,
    Conflict,
    InvalidCredentials,
    InvalidRenewalCredential,
    InvalidRequest,
    TokenExpired,
    TokenInvalidOrUsed,
    TooManyAttempts,
)
from barbershop.login_guard import LoginGuard
from barbershop.models import ROLE_CUSTOMER, PasswordReset, Profile, RefreshToken, User
from barbershop.security import (
    TokenError,
    as_utc,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    utcnow,
    validate_password_policy,
    verify_password,
)
from barbershop.settings import Settings

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If the email exists, reset instructions have been sent."


def _check_password_policy(password: str, settings: Settings) -> None:
    password_ok, password_error = validate_password_policy(password, settings.password_min_length)
    if not password_ok:
        raise InvalidRequest(password_error)


@router.post("/register", response_model=schemas.RegisterResponse, status_code=201)
def register(
    user_in: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    name = user_in.name.strip()
    phone = user_in.phone.strip()
    if not user_in.password or not name or not phone:
        raise InvalidRequest("All fields are required")
    _check_password_policy(user_in.password, settings)

    email = user_in.email.lower()
    existing_user = find_by_email(db, email)
    if existing_user and existing_user.is_active:
        raise Conflict("Email already registered")

    if existing_user:
        user = existing_user
        user.password = hash_password(user_in.password)
        user.is_active = True
        user.must_change_password = False
        user.deleted_at = None
        logger.info("Reactivating disabled account user_id=%s", user.id)
    else:
        user = User(email=email, password=hash_password(user_in.password), role=ROLE_CUSTOMER)
        user.profile = Profile()
        db.add(user)

    profile = ensure_profile(user)
    profile.name = name
    profile.phone = phone
    db.commit()
    db.refresh(user)
    logger.info("Account registered user_id=%s", user.id)

    return {"message": "Account created. Log in to continue.", "user_id": user.id}


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    request: Request,
    user_in: schemas.LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    guard: LoginGuard = Depends(get_login_guard),
):
    ip = client_ip(request)
    allowed, retry_after = guard.is_allowed(email=user_in.email, client_ip=ip)
    if not allowed:
        raise TooManyAttempts(f"Too many failed attempts. Try again in {retry_after} seconds")

    user = find_by_email(db, user_in.email)
    if not user or not verify_password(user_in.password, user.password):
        still_open, lockout_for = guard.register_failure(email=user_in.email, client_ip=ip)
        logger.info("Login failed email=%s ip=%s", user_in.email, ip)
        if not still_open:
            raise TooManyAttempts(f"Too many failed attempts. Try again in {lockout_for} seconds")
        raise InvalidCredentials()

    guard.register_success(email=user_in.email, client_ip=ip)
    if not user.is_active:
        raise AccountDisabled()

    access_token = create_access_token(settings, user.id, user.email, user.role)
    refresh_token, expires_at = create_refresh_token(settings, user.id, user.email, user.role)
    db.add(RefreshToken(user_id=user.id, token=refresh_token, expires_at=expires_at))
    db.commit()
    logger.info("Login succeeded user_id=%s", user.id)

    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "user": user_view(user),
    }


@router.post("/refresh", response_model=schemas.AccessTokenResponse)
def refresh(
    payload: schemas.RefreshRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    record = db.query(RefreshToken).filter(RefreshToken.token == payload.refresh_token).first()
    if record is None or as_utc(record.expires_at) < utcnow():
        raise InvalidRenewalCredential()

    try:
        claims = decode_refresh_token(settings, payload.refresh_token)
    except TokenError:
        raise InvalidRenewalCredential() from None

    user = db.get(User, claims["user_id"])
    if user is None or user.id != record.user_id or not user.is_active:
        raise InvalidRenewalCredential()

    return {"access_token": create_access_token(settings, user.id, user.email, user.role)}


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(
    payload: schemas.LogoutRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload.refresh_token:
        db.query(RefreshToken).filter(
            RefreshToken.token == payload.refresh_token,
            RefreshToken.user_id == current_user.id,
        ).delete(synchronize_session=False)
        db.commit()
    return {"message": "Logged out"}


@router.get("/validate", response_model=schemas.ValidateResponse)
def validate(current_user: User = Depends(get_current_user)):
    return {"valid": True, "user": user_view(current_user)}


@router.put("/change-password", response_model=schemas.MessageResponse)
def change_password(
    payload: schemas.ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    if not payload.old_password or not payload.new_password:
        raise InvalidRequest("Current and new password are required")
    if not verify_password(payload.old_password, current_user.password):
        raise InvalidRequest("Current password is incorrect")
    _check_password_policy(payload.new_password, settings)

    current_user.password = hash_password(payload.new_password)
    current_user.must_change_password = False
    db.commit()
    logger.info("Password changed user_id=%s", current_user.id)
    return {"message": "Password changed"}


@router.delete("/profile", response_model=schemas.MessageResponse)
def delete_own_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    current_user.is_active = False
    current_user.deleted_at = utcnow()
    revoke_refresh_tokens(db, current_user.id)
    db.commit()
    logger.info("Account disabled by owner user_id=%s", current_user.id)
    return {"message": "Account deleted"}


@router.post(
    "/forgot-password",
    response_model=schemas.ForgotPasswordResponse,
    response_model_exclude_none=True,
)
def forgot_password(
    payload: schemas.ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    user = find_by_email(db, payload.email)
    token_for_response = None
    if user:
        raw_token = generate_reset_token()
        db.add(
            PasswordReset(
                user_id=user.id,
                token_hash=hash_reset_token(raw_token),
                expires_at=utcnow() + timedelta(minutes=settings.reset_token_ttl_minutes),
            )
        )
        db.commit()
        logger.info("Password reset token issued user_id=%s", user.id)
        try:
            send_password_reset_email(settings, user.email, raw_token)
        except Exception:
            # The response must not reveal whether the account exists.
            logger.exception("Failed to send password reset email user_id=%s", user.id)
        if settings.expose_reset_token_in_response:
            token_for_response = raw_token

    return {"message": FORGOT_PASSWORD_MESSAGE, "reset_token": token_for_response}


@router.post("/reset-password", response_model=schemas.MessageResponse)
def reset_password(
    payload: schemas.ResetPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    if not payload.token or not payload.new_password:
        raise InvalidRequest("Token and new password are required")

    reset = (
        db.query(PasswordReset)
        .filter(PasswordReset.token_hash == hash_reset_token(payload.token))
        .first()
    )
    if reset is None or reset.used_at is not None:
        raise TokenInvalidOrUsed()
    if as_utc(reset.expires_at) < utcnow():
        raise TokenExpired()
    _check_password_policy(payload.new_password, settings)

    user = db.get(User, reset.user_id)
    if user is None:
        raise TokenInvalidOrUsed()
    user.password = hash_password(payload.new_password)
    user.must_change_password = False
    reset.used_at = utcnow()
    db.commit()
    logger.info("Password reset completed user_id=%s", user.id)

    return {"message": "Password has been reset"}
