"""SQLAlchemy model for records kept by the SQL store adapter."""

from sqlalchemy import JSON, Column, String

from app.infrastructure.database import Base


class StoreRecordModel(Base):
    """A JSON document addressed by its ``<collection>/<key>`` path."""

    __tablename__ = "store_record"

    path = Column(String(255), primary_key=True)
    collection = Column(String(120), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)


__all__ = ["StoreRecordModel"]
