"""Stored file metadata."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from app.database import Base


class FileInfo(Base):
    """Uploaded file. Bytes live on disk at `path`, relative to UPLOAD_DIR."""

    __tablename__ = "file_info"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    channel_id = Column(String(32), ForeignKey("channel.id"), nullable=False, index=True)
    name = Column(String(512), nullable=False)
    path = Column(String(512), nullable=False, unique=True)
    size = Column(Integer, nullable=False)
    mime_type = Column(String(128), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
