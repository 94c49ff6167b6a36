from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from core import db
from core.log import configure_logging
from core.settings import env_str, get_settings
from users import repository as users_repository
from users import router as users_router


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    # Fail fast on a missing/short signing secret before accepting traffic.
    get_settings()
    await db.init_pool()
    try:
        await users_repository.ensure_schema()
        yield
    finally:
        await db.close_pool()


app = FastAPI(title="user-management-api", lifespan=lifespan)

# Comma-separated list of browser origins allowed to call this API.
cors_origins = [origin.strip() for origin in env_str("CORS_ORIGINS").split(",") if origin.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(auth_router.router, tags=["auth"])
app.include_router(users_router.router, tags=["users"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/")
def root() -> dict:
    return {"message": "user-management api"}
