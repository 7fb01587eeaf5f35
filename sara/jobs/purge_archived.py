"""Delete archived contracts whose retention window has elapsed.

Meant to be run periodically (cron, systemd timer, k8s CronJob):

    python -m sara.jobs.purge_archived
"""

import logging

from sara.core.config import settings
from sara.db import SessionLocal
from sara.services.contract import purge_archived_contracts

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db = SessionLocal()
    try:
        deleted = purge_archived_contracts(db)
    finally:
        db.close()
    logger.info(
        "Purge finished: %d archived contracts older than %d days deleted",
        deleted,
        settings.archived_contract_retention_days,
    )
    return deleted


if __name__ == "__main__":
    main()
