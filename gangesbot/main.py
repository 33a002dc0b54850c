from contextlib import asynccontextmanager
from pathlib import Path
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from gangesbot.core.config import settings
from gangesbot.core.database import Base, SessionLocal, engine
from gangesbot.core.errors import NotFoundFailure, RemoteFailure, ValidationFailure

# Import models so SQLAlchemy registers tables for create_all().
import gangesbot.models.user  # noqa: F401
import gangesbot.models.otp_challenge  # noqa: F401
import gangesbot.models.predefined_question  # noqa: F401
import gangesbot.models.order  # noqa: F401
import gangesbot.models.conversation  # noqa: F401
import gangesbot.models.message  # noqa: F401
import gangesbot.models.escalated_query  # noqa: F401

# Routes
from gangesbot.api.routes import auth, chat, conversations, orders, questions, support
from gangesbot.models.user import User

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def bootstrap_admin() -> None:
    """Create or promote ADMIN_BOOTSTRAP_PHONE to admin."""
    phone = settings.ADMIN_BOOTSTRAP_PHONE
    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.phone_number == phone).first()
        if not admin:
            db.add(User(phone_number=phone, role="admin", is_test_account=False))
            db.commit()
            logger.info("Bootstrapped admin user for phone ending %s", phone[-4:])
        elif admin.role != "admin":
            admin.role = "admin"
            db.commit()
            logger.info("Promoted user %s to admin from bootstrap settings", admin.id)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up: initializing database...")
    try:
        Base.metadata.create_all(bind=engine)
        if settings.ADMIN_BOOTSTRAP_PHONE:
            bootstrap_admin()
        logger.info("Database initialized successfully.")
    except Exception:
        logger.exception("Database initialization failed")
        raise

    if settings.BLOB_BACKEND == "local":
        Path(settings.MEDIA_ROOT).mkdir(parents=True, exist_ok=True)

    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Allow frontend access (tighten allow_origins in production).
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NotFoundFailure)
async def not_found_handler(request: Request, exc: NotFoundFailure):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(RemoteFailure)
async def remote_failure_handler(request: Request, exc: RemoteFailure):
    return JSONResponse(status_code=502, content={"detail": exc.message, "step": exc.step})


app.include_router(auth.router, prefix=f"{settings.API_V1_STR}/auth", tags=["Auth"])
app.include_router(chat.router, prefix=f"{settings.API_V1_STR}/chat", tags=["Chat Interface"])
app.include_router(conversations.router, prefix=f"{settings.API_V1_STR}/conversations", tags=["Conversations"])
app.include_router(orders.router, prefix=f"{settings.API_V1_STR}/orders", tags=["Orders"])
app.include_router(questions.router, prefix=f"{settings.API_V1_STR}/questions", tags=["Predefined Questions"])
app.include_router(support.router, prefix=f"{settings.API_V1_STR}/support", tags=["Support Queries"])

if settings.BLOB_BACKEND == "local":
    app.mount(settings.MEDIA_URL_PREFIX, StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False), name="media")


@app.get("/")
def read_root():
    return {"status": "success", "message": f"Welcome to {settings.PROJECT_NAME} API"}
