import logging
from dotenv import load_dotenv
from pathlib import Path
from sqlalchemy import text

load_dotenv(dotenv_path=Path(__file__).with_name(".env"), override=True)

from taskboard.config import load_config  # import AFTER load_dotenv
from taskboard.db.engine import init_db, make_engine

log = logging.getLogger("create_db")

def main():
    engine = make_engine(load_config()["DATABASE_URL"])
    try:
        log.info("Creating tables...")
        init_db(engine)
        # simple connectivity check
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        log.info("Done.")
    finally:
        engine.dispose()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
