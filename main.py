"""World State Engine API launcher. Starts the FastAPI backend under uvicorn."""

import argparse
import os
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="World State Engine API server")
    parser.add_argument("--db", type=Path, default=None,
                        help="SQLite database file (default: WORLD_STATE_DB_PATH or data/world_state.db)")
    parser.add_argument("--reload", action="store_true",
                        help="Restart the server when source files change")
    args = parser.parse_args()

    # backend.app builds its engine from the environment at import time
    if args.db:
        os.environ["WORLD_STATE_DB_PATH"] = str(args.db.resolve())

    import uvicorn

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    uvicorn.run("backend.app:app", host=HOST, port=int(BACKEND_PORT), reload=args.reload)


if __name__ == "__main__":
    main()
