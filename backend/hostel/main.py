"""
Hostel Management Platform - Main FastAPI Application
"""
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from contextlib import asynccontextmanager
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import logging

from hostel.config import settings
from hostel.database import get_db
from hostel.rate_limit import limiter
from hostel.api.v1 import (
    admin_management,
    attendance,
    auth,
    courses,
    leave,
    menu,
    navigation,
    outpass,
    payments,
    preregistrations,
    rooms,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting up %s...", settings.APP_NAME)
    logger.info("Payment gateway: Cashfree %s", settings.CASHFREE_ENVIRONMENT)
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="Hostel Management Platform API",
    description="Role-based hostel administration: rooms, billing, leave, attendance and mess",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Trusted Host Middleware: reject requests with spoofed Host headers
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    return response


# Include routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(navigation.router, prefix="/api/v1/navigation", tags=["Navigation"])
app.include_router(admin_management.router, prefix="/api/admin-management", tags=["Admin Management"])
app.include_router(courses.router, prefix="/api/courses", tags=["Courses"])
app.include_router(rooms.router, prefix="/api/admin/rooms", tags=["Rooms"])
app.include_router(rooms.student_router, prefix="/api/rooms", tags=["Rooms"])
app.include_router(payments.router, prefix="/api/payments", tags=["Payments"])
app.include_router(leave.router, prefix="/api/leave", tags=["Leave"])
app.include_router(leave.admin_router, prefix="/api/admin/leave", tags=["Leave"])
app.include_router(outpass.router, prefix="/api/outpass", tags=["Outpass"])
app.include_router(outpass.admin_router, prefix="/api/admin/outpass", tags=["Outpass"])
app.include_router(menu.router, prefix="/api/menu", tags=["Menu"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(preregistrations.router, prefix="/api/student/preregistrations", tags=["Pre-registrations"])


@app.get("/health")
async def health_check(response: Response, db: Session = Depends(get_db)):
    """Liveness plus a database round trip"""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        response.status_code = 503
        return {"status": "unhealthy", "database": "unreachable"}
    return {"status": "healthy", "database": "ok"}
