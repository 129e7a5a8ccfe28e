from sqlalchemy.orm import Session

from barbershop.models import Profile, RefreshToken, User


def user_view(user: User) -> dict:
    profile = user.profile
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "must_change_password": bool(user.must_change_password),
        "is_active": bool(user.is_active),
        "name": profile.name if profile else None,
        "phone": profile.phone if profile else None,
        "photo": profile.photo if profile else None,
    }


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def ensure_profile(user: User) -> Profile:
    if user.profile is None:
        user.profile = Profile()
    return user.profile


def revoke_refresh_tokens(db: Session, user_id: int) -> int:
    return db.query(RefreshToken).filter(RefreshToken.user_id == user_id).delete(synchronize_session=False)
