from sqlalchemy import Column, String, Text, func
from sqlalchemy.sql.sqltypes import DateTime
from .database import Base

class StoredBlob(Base):
    """One serialized collection (or the current-user pointer) per row."""
    __tablename__ = "kv_store"
    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
