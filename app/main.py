from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
from app.core.config import settings
from app.core.database import engine, Base
from app.core.error_handlers import create_error_response, register_error_handlers
from app.core.logging_config import setup_logging
from app.core.middleware import add_middleware
from app.auth.routes import router as auth_router
from app.leaves.routes import router as leaves_router
from app.complaints.routes import router as complaints_router
from app.admin.routes import router as admin_router

# Set up logging
setup_logging(log_level=settings.log_level, log_file=settings.log_file)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Workplace portal: authentication, leave requests and complaints",
    version="1.0.0",
    debug=settings.debug
)

# Register error handlers
register_error_handlers(app)

# Add middleware
add_middleware(app)

# CORS goes last so it wraps everything, preflight requests included
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(leaves_router)
app.include_router(complaints_router)
app.include_router(admin_router)


@app.on_event("startup")
async def startup_event():
    """Initialize database tables on startup."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Application shutting down...")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": f"{settings.app_name} API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "endpoints": {
            "auth": "/api/auth",
            "leave": "/api/leave",
            "complaints": "/api/complaints",
            "admin": "/api/admin"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "message": "API is running"}


@app.api_route("/error", methods=["GET", "POST"])
async def error_page(request: Request):
    """Generic error page; never carries details of the original failure."""
    return create_error_response(
        status_code=500,
        detail="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
        request_id=getattr(request.state, "request_id", None)
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
