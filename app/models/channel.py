"""Channel and channel membership models."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint

from app.database import Base


class Channel(Base):
    """Chat channel."""

    __tablename__ = "channel"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(64), nullable=False)
    display_name = Column(String(256), nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class ChannelMember(Base):
    """Membership of a user in a channel."""

    __tablename__ = "channel_member"
    __table_args__ = (UniqueConstraint("channel_id", "user_id", name="uq_channel_member"),)

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    channel_id = Column(String(32), ForeignKey("channel.id"), nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("user.id"), nullable=False, index=True)
