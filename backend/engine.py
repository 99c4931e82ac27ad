"""Process-wide engine used by the HTTP routes and the MCP server.

init_engine() builds (or replaces) it; get_engine() hands it out. Tests point
it at an in-memory database with set_engine().
"""

from pathlib import Path

from world_state import Engine, build_engine, load_settings
from world_state.log import configure_logging

_engine: Engine | None = None


def init_engine(db_path: Path | str | None = None, config_path: Path | None = None) -> Engine:
    """Build the engine from config/env, optionally forcing the database path."""
    settings = load_settings(config_path)
    if db_path is not None:
        settings.database.path = str(db_path)
    configure_logging(settings.logging.level)
    return set_engine(build_engine(settings))


def set_engine(engine: Engine) -> Engine:
    global _engine
    if _engine is not None and _engine is not engine:
        _engine.close()
    _engine = engine
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialised; call init_engine() first")
    return _engine
