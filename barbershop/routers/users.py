import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from barbershop import schemas
from barbershop.accounts import ensure_profile, revoke_refresh_tokens, user_view
from barbershop.database import get_db
from barbershop.deps import get_app_settings, get_current_user, require_admin
from barbershop.errors import Conflict, InvalidRequest, NotFound
from barbershop.models import ROLE_ADMIN, User
from barbershop.security import hash_password, validate_password_policy
from barbershop.settings import Settings
from barbershop.uploads import save_image

router = APIRouter(prefix="/users", tags=["Users"])
logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("/me", response_model=schemas.UserResponse)
def read_me(current_user: User = Depends(get_current_user)):
    return {"user": user_view(current_user)}


@router.put("/me", response_model=schemas.UserResponse)
def update_me(
    payload: schemas.ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = ensure_profile(current_user)
    if payload.name is not None:
        profile.name = payload.name.strip() or None
    if payload.phone is not None:
        profile.phone = payload.phone.strip() or None
    if payload.photo:
        profile.photo = payload.photo
    db.commit()
    db.refresh(current_user)
    return {"user": user_view(current_user)}


@router.put("/me/photo", response_model=schemas.UserResponse)
async def upload_photo(
    photo: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    path = await save_image(photo, settings.upload_dir, settings.max_upload_bytes)
    ensure_profile(current_user).photo = path
    db.commit()
    db.refresh(current_user)
    logger.info("Profile photo updated user_id=%s path=%s", current_user.id, path)
    return {"user": user_view(current_user)}


@router.get("/admin", response_model=schemas.UserListResponse)
def admin_list_users(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    users = db.query(User).filter(User.id != admin.id).order_by(User.id.asc()).all()
    return {"users": [user_view(user) for user in users]}


@router.put("/admin/{user_id}", response_model=schemas.UserResponse)
def admin_update_user(
    user_id: int,
    payload: schemas.AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = _get_user(db, user_id)

    if user.id == admin.id:
        if payload.role is not None and payload.role != ROLE_ADMIN:
            raise Conflict("You cannot remove your own admin role")
        if payload.is_active is False:
            raise Conflict("You cannot disable your own account")

    if payload.role is not None and payload.role != user.role:
        if user.role == ROLE_ADMIN and user.is_active:
            admin_count = (
                db.query(User).filter(User.role == ROLE_ADMIN, User.is_active.is_(True)).count()
            )
            if admin_count <= 1:
                raise Conflict("At least one admin account is required")
        user.role = payload.role

    if payload.must_change_password is not None:
        user.must_change_password = payload.must_change_password

    if payload.is_active is not None and payload.is_active != user.is_active:
        user.is_active = payload.is_active
        if not payload.is_active:
            revoke_refresh_tokens(db, user.id)

    db.commit()
    db.refresh(user)
    logger.info(
        "Account updated by admin user_id=%s admin_id=%s role=%s is_active=%s",
        user.id,
        admin.id,
        user.role,
        user.is_active,
    )
    return {"user": user_view(user)}


@router.put("/admin/{user_id}/password", response_model=schemas.MessageResponse)
def admin_set_password(
    user_id: int,
    payload: schemas.AdminPasswordRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    if not payload.new_password:
        raise InvalidRequest("New password is required")
    password_ok, password_error = validate_password_policy(payload.new_password, settings.password_min_length)
    if not password_ok:
        raise InvalidRequest(password_error)

    user = _get_user(db, user_id)
    user.password = hash_password(payload.new_password)
    user.must_change_password = True
    db.commit()
    logger.info("Password set by admin user_id=%s admin_id=%s", user.id, admin.id)
    return {"message": "Password changed"}
