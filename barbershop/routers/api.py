from fastapi import APIRouter

from barbershop.routers import appointments, auth, barbers, establishments, health, services, users

router = APIRouter(prefix="/api")
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(services.router)
router.include_router(barbers.router)
router.include_router(establishments.router)
router.include_router(appointments.router)


@router.get("/health", tags=["Health"])
def api_health():
    return health.healthz()
