from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from venue_booking.core.config import settings
from venue_booking.api import bookings
from venue_booking.services.results import ErrorKind
from venue_booking.core.logger import setup_logging, logger
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} (storage: {settings.STORAGE_BACKEND})")
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal Server Error"}
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = ", ".join(error.get("msg", "Invalid value") for error in exc.errors())
    logger.info(f"❌ Validation Error: {messages}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": messages, "error": ErrorKind.VALIDATION_FAILED.value}
    )

# Include routers
app.include_router(bookings.router, prefix=settings.API_V1_STR, tags=["Booking"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health")
async def health_check_std():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    # Single worker: confirmations are serialized in-process
    uvicorn.run("venue_booking.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
