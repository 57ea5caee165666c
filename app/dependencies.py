"""Request dependencies: host identity, host adapter and configuration snapshot."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.config import PluginConfiguration, get_config_store
from app.database import get_db
from app.services.host import SqlAlchemyHost

USER_ID_HEADER = "Mattermost-User-Id"


@dataclass
class CurrentUser:
    """Authenticated user context, as asserted by the host proxy."""

    user_id: str


def get_optional_user(request: Request) -> CurrentUser | None:
    """User from the host identity header, or None for sessionless requests."""
    user_id = request.headers.get(USER_ID_HEADER, "").strip()
    if not user_id:
        return None
    return CurrentUser(user_id=user_id)


def get_current_user(user: CurrentUser | None = Depends(get_optional_user)) -> CurrentUser:
    """Require an authenticated user. Raises 401 if missing."""
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def get_host(db: Session = Depends(get_db)) -> SqlAlchemyHost:
    return SqlAlchemyHost(db)


def get_plugin_config() -> PluginConfiguration:
    """Current configuration snapshot; one consistent object for the whole request."""
    return get_config_store().get()
