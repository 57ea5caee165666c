"""Host user model."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String

from app.database import Base


class User(Base):
    """Chat user known to the host. `roles` is a space-separated role list."""

    __tablename__ = "user"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    username = Column(String(64), unique=True, nullable=False, index=True)
    roles = Column(String(256), nullable=False, default="system_user")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
