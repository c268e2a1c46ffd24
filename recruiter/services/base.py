from sqlalchemy.orm import Session


class BaseService:
    """Common base for services that own a request-scoped SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
