from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from kinship.core.config import settings
from kinship.core.exceptions import InternalError, InvalidInputError, KinshipError
from kinship.db.init_db import create_all_tables
from kinship.middleware.request_logging import RequestLoggingMiddleware
from kinship.middleware.auth_logging import AuthLoggingMiddleware
from kinship.modules.auth.api.router import router as auth_router
from kinship.modules.user_management.api.router import router as user_router
from kinship.modules.friendships.api.router import router as friendships_router
from kinship.modules.groups.api.router import router as groups_router
from kinship.modules.personal_posts.api.router import router as personal_posts_router
from kinship.modules.posts.api.router import router as posts_router
from kinship.modules.posts.comments.api.router import router as comments_router
from kinship.modules.events.api.router import router as events_router
from kinship.modules.feed.api.router import router as feed_router
from kinship.modules.messages.api.router import router as messages_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("kinship")

# Initialize the FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    exception_handlers={
        HTTPException: http_exception_handler,
    },
    debug=settings.DEBUG,
    description="Groups, friends, events and a unified feed",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
)

@app.on_event("startup")
def startup_event():
    logger.info(f"Starting server in {settings.ENVIRONMENT} mode")
    create_all_tables()

@app.exception_handler(KinshipError)
async def kinship_error_handler(request: Request, exc: KinshipError):
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Only the first problem is reported, without pydantic internals
    errors = exc.errors()
    if not errors:
        detail = InvalidInputError.default_detail
    elif errors[0]["type"] == "json_invalid":
        detail = "Request body is not valid JSON"
    else:
        field = ".".join(str(part) for part in errors[0]["loc"][1:])
        detail = f"{field}: {errors[0]['msg']}" if field else errors[0]["msg"]
    logger.info(f"Rejected input on {request.method} {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})

@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    # A unique constraint lost a race against a concurrent write
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=409, content={"detail": "Resource already exists"})

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(AuthLoggingMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers; personal posts before posts so /posts/personal is not read as a post id
app.include_router(auth_router, prefix=f"{settings.API_V1_STR}/auth", tags=["authentication"])
app.include_router(user_router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(friendships_router, prefix=f"{settings.API_V1_STR}/friends", tags=["friendships"])
app.include_router(groups_router, prefix=f"{settings.API_V1_STR}/groups", tags=["groups"])
app.include_router(personal_posts_router, prefix=f"{settings.API_V1_STR}/posts/personal", tags=["personal posts"])
app.include_router(posts_router, prefix=f"{settings.API_V1_STR}/posts", tags=["posts"])
app.include_router(comments_router, prefix=f"{settings.API_V1_STR}/posts/{{post_id}}/comments", tags=["comments"])
app.include_router(events_router, prefix=f"{settings.API_V1_STR}/events", tags=["events"])
app.include_router(feed_router, prefix=f"{settings.API_V1_STR}/feed", tags=["feed"])
app.include_router(messages_router, prefix=f"{settings.API_V1_STR}/conversations", tags=["messages"])

@app.get("/")
async def root():
    return {
        "message": "Welcome to Kinship",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "documentation": "/docs" if settings.DEBUG else None,
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kinship.main:app", host="0.0.0.0", port=8000, reload=True)
