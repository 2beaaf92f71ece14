# parlour_api/main.py
# REST routes are mounted under /api; the push channel lives at /ws.

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from parlour_api.config import AUTO_INIT_DB, CORS_ORIGINS, LOG_LEVEL, PORT
from parlour_api.database import Base, SessionLocal, engine
from parlour_api.errors import ParlourError
from parlour_api.realtime.broadcaster import Broadcaster

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

# Create app immediately (safer for circular imports)
app = FastAPI(title="Parlour Admin API")

app.state.publisher = Broadcaster()
app.state.session_factory = SessionLocal

# ---------------------------------------------------------------------
# Import routers AFTER app creation (avoids early eval / circular import)
# ---------------------------------------------------------------------
from parlour_api import models  # noqa: E402,F401  registers every table
from parlour_api.auth.login import router as auth_router  # noqa: E402
from parlour_api.employees.router import router as employee_router  # noqa: E402
from parlour_api.tasks.router import router as task_router  # noqa: E402
from parlour_api.attendance.router import router as attendance_router  # noqa: E402
from parlour_api.dashboard_router import router as dashboard_router  # noqa: E402
from parlour_api.realtime.socket import router as socket_router  # noqa: E402

# -------------------- Middleware --------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


# -------------------- Error envelope --------------------
@app.exception_handler(ParlourError)
async def parlour_error_handler(request: Request, exc: ParlourError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


@app.get("/")
def home():
    return {
        "message": "Parlour Admin API running!",
        "endpoints": {
            "login": "/api/auth/login",
            "employees": "/api/employees",
            "tasks": "/api/tasks",
            "attendance": "/api/attendance",
            "attendance_daily": "/api/attendance/daily",
            "dashboard": "/api/dashboard/stats",
            "socket": "/ws",
        }
    }


# ------------------- INCLUDE ROUTERS -------------------
app.include_router(auth_router, prefix="/api")
app.include_router(employee_router, prefix="/api")
app.include_router(task_router, prefix="/api")
app.include_router(attendance_router, prefix="/api")
app.include_router(dashboard_router, prefix="/api")
app.include_router(socket_router)


# ------------------- STARTUP -------------------
@app.on_event("startup")
def _startup():
    if AUTO_INIT_DB:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
    for r in app.routes:
        if hasattr(r, "path"):
            methods = sorted(list(getattr(r, "methods", None) or []))
            logger.debug("route %-35s %s", r.path, methods)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("parlour_api.main:app", host="0.0.0.0", port=PORT)
