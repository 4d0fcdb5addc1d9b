import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from tale_companion.config import load_settings
from tale_companion.llm import HttpLLM, InstructLLM
from tale_companion.routes import router
from tale_companion.sessions import Sessions
from tale_companion.storage import ThreadStorage

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

logger = logging.getLogger(__name__)


def create_app(data_dir: Path | None = None, llm: InstructLLM | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    storage = ThreadStorage(resolved)
    settings = load_settings(resolved)
    if llm is None:
        llm = HttpLLM(**settings.llm_connection.model_dump())
    logger.info("Data dir %s, version pin %s", resolved, settings.version)

    app = FastAPI(title="Tale Companion")
    app.state.sessions = Sessions(storage, settings, llm)
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
