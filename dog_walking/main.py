from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dog_walking.core.config import settings
from dog_walking.core.exceptions import DanglingReference, NotFound, StorageError, ValidationError
from dog_walking.api import bookings, owners
from dog_walking.core.logger import setup_logging, logger
from dog_walking.services.db_service import Database
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: a missing connection setting stops the process here
    logger.info("🚀 Starting Dog Walking Backend")
    if getattr(app.state, "database", None) is None:
        app.state.database = await Database.connect(settings)
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

def _error(status_code: int, message: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "detail": str(exc)})

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    logger.warning(f"⚠️ Rejected {request.method} {request.url.path}: {exc}")
    return _error(400, "Invalid Request", exc)

@app.exception_handler(DanglingReference)
async def dangling_reference_handler(request: Request, exc: DanglingReference):
    logger.warning(f"⚠️ {request.method} {request.url.path}: {exc}")
    return _error(404, "Referenced Record Not Found", exc)

@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return _error(404, "Not Found", exc)

@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError):
    logger.error(f"❌ Storage failure on {request.method} {request.url.path}: {exc}")
    return _error(500, "Storage Error", exc)

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"message": "Internal Server Error", "detail": "An unexpected error occurred. Please contact support."}
    )

# Include routers
app.include_router(owners.router, tags=["Owners"])
app.include_router(bookings.router, tags=["Bookings"])

@app.get("/health")
async def health_check():
    return {"status": "ok", "environment": settings.ENVIRONMENT, "timestamp": datetime.now().isoformat()}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dog_walking.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
