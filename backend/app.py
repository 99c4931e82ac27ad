import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from backend import engine
from backend.routes import router

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.json"


def create_app(db_path: Path | str | None = None, config_path: Path | None = None) -> FastAPI:
    """Build the API. db_path overrides config/env; ":memory:" gives a throwaway store."""
    resolved_config = config_path or Path(os.getenv("WORLD_STATE_CONFIG", str(DEFAULT_CONFIG_PATH)))
    engine.init_engine(db_path, resolved_config)

    app = FastAPI(title="World State Engine")
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses WORLD_STATE_* env vars or config.json)
app = create_app()
