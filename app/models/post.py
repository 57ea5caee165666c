"""Post models. Voice messages are posts of type `custom_voice_message` with one attached file."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text

from app.database import Base


class Post(Base):
    """Channel message with attached files and a string-keyed props map."""

    __tablename__ = "post"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String(32), ForeignKey("user.id"), nullable=False, index=True)
    channel_id = Column(String(32), ForeignKey("channel.id"), nullable=False, index=True)
    root_id = Column(String(32), nullable=True)
    type = Column(String(64), nullable=False, default="")
    message = Column(Text, nullable=False, default="")
    file_ids = Column(JSON, nullable=False, default=list)
    props = Column(JSON, nullable=False, default=dict)
    create_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    update_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class EphemeralPost(Base):
    """Message visible to a single user only (slash command feedback)."""

    __tablename__ = "ephemeral_post"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String(32), nullable=False, index=True)
    channel_id = Column(String(32), nullable=False)
    message = Column(Text, nullable=False, default="")
    create_at = Column(DateTime, nullable=False, default=datetime.utcnow)
