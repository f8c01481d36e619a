"""
CLI entrypoint for the expired reset-token sweep. Run from cron, e.g.:

  python -m app.token_cleanup

Or hourly: 0 * * * * cd /path/to/adikart && .venv/bin/python -m app.token_cleanup
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.security import PasswordHasher
from app.services.credential_store import SqlCredentialStore
from app.services.token_cleanup import run_token_cleanup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Clear reset tokens that are past their expiry."""
    settings = get_settings()
    db = SessionLocal()
    try:
        store = SqlCredentialStore(db, PasswordHasher(settings.BCRYPT_ROUNDS))
        cleared = run_token_cleanup(store)
        logger.info("Token cleanup completed: tokens_cleared=%s", cleared)
        return 0
    except Exception as e:
        logger.exception("Token cleanup job failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
