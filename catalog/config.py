# catalog/config.py
import os
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    """Runtime settings, read from the environment (and .env) by from_env()."""

    db_file: Path = Path("data/db.json")
    uploads_dir: Path = Path("uploads")
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CATALOG_CORS_ORIGINS", "*")
        log_file = os.getenv("LOG_FILE")
        return cls(
            db_file=Path(os.getenv("CATALOG_DB_FILE", "data/db.json")),
            uploads_dir=Path(os.getenv("CATALOG_UPLOADS_DIR", "uploads")),
            host=os.getenv("CATALOG_HOST", "0.0.0.0"),
            port=int(os.getenv("CATALOG_PORT", "5000")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=Path(log_file) if log_file else None,
        )


def setup_logging(settings: Settings):
    """Configure root logging: stderr always, plus a file when LOG_FILE is set."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.log_file))

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        handlers=handlers,
    )
