import sys
import os
import logging

from sqlalchemy.exc import SQLAlchemyError

# Ensure we can import recruiter modules
sys.path.append(os.getcwd())

from recruiter.core.config import settings
from recruiter.database import SessionLocal, init_db
from recruiter.services.persistence import RecruitingRepository

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def check_connection() -> bool:
    logger.info(f"Testing database connection ({settings.database_url}) and fetching jobs...")
    db = SessionLocal()
    try:
        init_db()
        jobs = RecruitingRepository(db).list_jobs()
    except SQLAlchemyError as e:
        logger.error(f"Connection failed: {e}")
        return False
    finally:
        db.close()

    print(f"Connection successful. Total jobs in database: {len(jobs)}")
    if not jobs:
        print("No jobs found in database.")
    for index, job in enumerate(jobs, start=1):
        print(f"\n{index}. {job.title}")
        print(f"   ID: {job.id}")
        print(f"   Location: {job.location}")
        print(f"   Type: {job.type.value}")
        print(f"   Created: {job.created_at}")
    return True


if __name__ == "__main__":
    sys.exit(0 if check_connection() else 1)
