import logging
from dotenv import load_dotenv
from pathlib import Path

load_dotenv(dotenv_path=Path(__file__).with_name(".env"), override=True)

from taskboard.config import load_config
from taskboard.db.engine import make_engine
from taskboard.services.seed_admin import ensure_seeded

def seed_data() -> str:
    cfg = load_config()
    engine = make_engine(cfg["DATABASE_URL"])
    try:
        return ensure_seeded(
            engine,
            cfg["SEED_ADMIN_EMAIL"],
            cfg["SEED_ADMIN_PASSWORD"],
            cfg["SEED_ADMIN_NAME"],
        )
    finally:
        engine.dispose()

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    print(seed_data())
