from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slotbooking.routers import slots, reservations
from slotbooking.config import settings
from slotbooking.errors import BookingError, NotFoundError, InvalidArgumentError, ConflictError
from slotbooking.utils.logging_config import setup_logging
from slotbooking.middleware.logging_middleware import log_requests


logger = setup_logging()
logger.info("Application starting...")
app = FastAPI(title=settings.app_name, debug=settings.debug)

app.middleware("http")(log_requests)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(slots.router)
app.include_router(reservations.router)

ERROR_STATUS = [
    (NotFoundError, 404),
    (InvalidArgumentError, 400),
    (ConflictError, 409),
]


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.get("/")
def root() -> dict:
        return {"message": "Slotbooking läuft!", "app": settings.app_name}

@app.get("/health")
def health() -> dict:
        return {"status": "ok"}
