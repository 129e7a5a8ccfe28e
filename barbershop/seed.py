import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from barbershop.database import Database
from barbershop.models import ROLE_ADMIN, Establishment, Profile, Service, User
from barbershop.security import hash_password
from barbershop.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    ("Haircut", "Modern styled haircut", Decimal("30.00"), 30),
    ("Beard", "Beard trim and shaping", Decimal("20.00"), 20),
    ("Eyebrows", "Eyebrow design", Decimal("15.00"), 15),
    ("Neckline", "Neckline and sides touch-up", Decimal("10.00"), 10),
]

DEFAULT_ESTABLISHMENT = ("Main Street Barbershop", "123 Main Street", "(11) 9999-9999")


def ensure_admin_user(database: Database, settings: Settings) -> None:
    admin_email = settings.admin_email
    admin_password = settings.admin_password
    if not admin_email or not admin_password:
        return

    with Session(database.engine) as db:
        admin = db.query(User).filter(User.email == admin_email).first()
        if admin:
            if admin.role != ROLE_ADMIN or not admin.is_active:
                admin.role = ROLE_ADMIN
                admin.is_active = True
                db.commit()
            return

        user = User(
            email=admin_email,
            password=hash_password(admin_password),
            role=ROLE_ADMIN,
        )
        user.profile = Profile(name="Administrator")
        db.add(user)
        db.commit()
        logger.info("Admin user created from environment configuration email=%s", admin_email)


def seed_catalog_defaults(database: Database) -> None:
    with Session(database.engine) as db:
        if db.query(Service.id).first() is None:
            for name, description, price, duration in DEFAULT_SERVICES:
                db.add(
                    Service(
                        name=name,
                        description=description,
                        price=price,
                        duration_minutes=duration,
                    )
                )
            logger.info("Seeded %s default services", len(DEFAULT_SERVICES))

        if db.query(Establishment.id).first() is None:
            name, address, contact = DEFAULT_ESTABLISHMENT
            db.add(Establishment(name=name, address=address, contact=contact))
            logger.info("Seeded default establishment")

        db.commit()
