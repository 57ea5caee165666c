"""Plugin key-value store and slash command registrations."""

from datetime import datetime

from sqlalchemy import Column, DateTime, LargeBinary, String

from app.database import Base


class KVEntry(Base):
    """Opaque plugin-scoped value."""

    __tablename__ = "plugin_kv"

    key = Column(String(150), primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Command(Base):
    """Registered slash command trigger."""

    __tablename__ = "command"

    trigger = Column(String(64), primary_key=True)
    display_name = Column(String(128), nullable=False, default="")
    description = Column(String(256), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
