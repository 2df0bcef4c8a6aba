from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .database import init_db
from .routes import CLUB_NAME, router


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    init_db()
    yield


def create_app() -> FastAPI:
    """Application factory for the team registration site."""
    base_dir = Path(__file__).resolve().parent
    app = FastAPI(title=f"{CLUB_NAME} Team Registration", lifespan=lifespan)
    app.include_router(router)
    static_dir = base_dir / "static"
    static_dir.joinpath("uploads").mkdir(parents=True, exist_ok=True)
    app.mount("/static", StaticFiles(directory=static_dir), name="static")
    return app


app = create_app()
