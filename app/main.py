import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.database import engine
from app import models
from app.schemas.responses import ErrorResponse

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    models.Base.metadata.create_all(bind=engine)
    missing = settings.missing_payment_settings()
    if missing:
        # Not fatal: the initiate endpoint reports the configuration error per request.
        logger.warning("M-Pesa settings missing: %s", ", ".join(missing))
    logger.info("Ticketing service ready on port %s", settings.PORT)
    yield


app = FastAPI(
    title="Wepesi Tickets API",
    description="Issues QR tickets on confirmed M-Pesa payments and redeems them at the gate",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    body = ErrorResponse(error=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error(request: Request, exc: RequestValidationError):
    # malformed bodies share the 400 {error} shape of service-level validation
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid value")
    body = ErrorResponse(error="Invalid request", detail=f"{field}: {message}" if field else message)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, body.detail)
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "wepesi-tickets"}


from app.routers import payments, tickets, admin  # noqa: E402
app.include_router(payments.router, prefix="/api/payments", tags=["payments"])
app.include_router(tickets.router, prefix="/api/tickets", tags=["tickets"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
