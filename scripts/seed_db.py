from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from workday.config import get_settings_module
from workday.database.bootstrap import apply_schema, ensure_demo_users

logger = logging.getLogger("workday.scripts.seed_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    ensure_demo_users(db_config)
    logger.info(
        "Seeded demo accounts -> %s@%s:%s/%s",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )


if __name__ == "__main__":
    main()
