import sys
import os
import logging

# Ensure we can import recruiter modules
sys.path.append(os.getcwd())

from recruiter.core.config import settings
from recruiter.database import init_db
from recruiter.services.storage import ResumeStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def main():
    init_db()
    logger.info(f"Tables created on {settings.database_url}")

    os.makedirs(settings.storage.resume_dir, exist_ok=True)
    logger.info(f"Resume bucket ready at {ResumeStore().bucket_dir}")


if __name__ == "__main__":
    main()
