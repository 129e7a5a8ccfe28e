import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/healthz")
def healthz():
    return {"status": "ok"}


@router.get("/readyz")
def readyz(request: Request):
    try:
        request.app.state.database.ping()
        return {"status": "ready"}
    except SQLAlchemyError:
        logger.warning("Readiness check failed", exc_info=True)
        return JSONResponse(status_code=503, content={"status": "not_ready"})
