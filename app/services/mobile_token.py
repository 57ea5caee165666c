"""One-time tokens for the mobile recording flow."""

import base64
import logging
import secrets
import time
from collections.abc import Callable

from pydantic import BaseModel, ValidationError

from app.ports import HostError, KVStore

logger = logging.getLogger("voice_message.mobile_token")

KV_PREFIX = "vm_mobile_token_"


class MobileToken(BaseModel):
    user_id: str
    channel_id: str
    root_id: str = ""
    ephemeral_post_id: str = ""
    expires_at: int


class TokenInvalid(Exception):
    """Token unknown, malformed, already used or expired."""


class MobileTokenService:
    """Issues, reads and consumes single-use tokens stored in the plugin KV store."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def issue(self, kv: KVStore, user_id: str, channel_id: str, root_id: str | None, ttl_seconds: int) -> str:
        """Create a token valid for ttl_seconds."""
        token = base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b"=").decode("ascii")
        payload = MobileToken(
            user_id=user_id,
            channel_id=channel_id,
            root_id=root_id or "",
            expires_at=int(self._clock()) + ttl_seconds,
        )
        kv.kv_set(KV_PREFIX + token, payload.model_dump_json().encode("utf-8"))
        return token

    def get(self, kv: KVStore, token: str) -> MobileToken:
        """Read a live token. Expired tokens are deleted on sight.

        Raises:
            TokenInvalid: If the token cannot be used.
        """
        if not token:
            raise TokenInvalid("missing")
        try:
            raw = kv.kv_get(KV_PREFIX + token)
        except HostError as e:
            raise TokenInvalid(f"kv read failed: {e}") from None
        if raw is None:
            raise TokenInvalid("not found")
        try:
            data = MobileToken.model_validate_json(raw)
        except ValidationError:
            raise TokenInvalid("malformed") from None
        if not data.user_id or not data.channel_id:
            raise TokenInvalid("invalid")
        if self._clock() >= data.expires_at:
            kv.kv_delete(KV_PREFIX + token)
            raise TokenInvalid("expired")
        return data

    def set_ephemeral_post_id(self, kv: KVStore, token: str, post_id: str) -> None:
        if not token.strip() or not post_id.strip():
            return
        data = self.get(kv, token)
        data.ephemeral_post_id = post_id
        kv.kv_set(KV_PREFIX + token, data.model_dump_json().encode("utf-8"))

    def consume(self, kv: KVStore, token: str) -> None:
        """Claim the token. Only one caller can ever succeed.

        Raises:
            TokenInvalid: If someone else already consumed it.
        """
        if not kv.kv_delete(KV_PREFIX + token):
            raise TokenInvalid("already used")


_mobile_token_service: MobileTokenService | None = None


def get_mobile_token_service() -> MobileTokenService:
    """Get singleton mobile token service instance."""
    global _mobile_token_service
    if _mobile_token_service is None:
        _mobile_token_service = MobileTokenService()
    return _mobile_token_service
