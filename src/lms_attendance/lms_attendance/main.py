from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv

from config import get_settings_module

from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)
    # The portal client is chatty at DEBUG; keep urllib3 connection noise out.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def bootstrap(settings_module: Optional[str] = None) -> Container:
    """Load settings, prepare storage and wire the scrape pipeline."""
    load_dotenv(override=False)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = dict(getattr(settings, "DB_CONFIG", {}) or {})
    storage_backend = getattr(settings, "STORAGE_BACKEND", "mysql")

    if storage_backend == "mysql":
        logger.info(
            f"settings={settings_module} db={db_config.get('user')}@{db_config.get('host')}:"
            f"{db_config.get('port', 3306)}/{db_config.get('database')}"
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info(f"schema ready (tables={len(list_tables(db_config))})")
    else:
        logger.info(f"settings={settings_module} storage={storage_backend}")

    return build_container(
        db_config=db_config,
        storage_backend=storage_backend,
        portal_base_url=getattr(settings, "PORTAL_BASE_URL"),
        portal_timeout=float(getattr(settings, "PORTAL_TIMEOUT")),
        default_from_date=getattr(settings, "DEFAULT_FROM_DATE"),
        scrape_wait_ms=int(getattr(settings, "SCRAPE_WAIT_MS")),
        scrape_max_workers=int(getattr(settings, "SCRAPE_MAX_WORKERS")),
    )
