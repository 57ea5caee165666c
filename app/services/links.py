"""URL construction relative to the host's site URL."""

from urllib.parse import quote, urlparse

from app.config import get_settings
from app.plugin import PLUGIN_ID


class LinkBuilder:
    """Builds absolute links when SITE_URL is known, root-relative ones otherwise."""

    def __init__(self, site_url: str | None = None) -> None:
        self.site_url = (get_settings().SITE_URL if site_url is None else site_url).strip()

    def base_path(self) -> str:
        if not self.site_url:
            return ""
        path = urlparse(self.site_url).path.rstrip("/")
        return path

    def _absolute(self, path: str) -> str:
        if not self.site_url:
            return path
        parsed = urlparse(self.site_url)
        if not parsed.scheme or not parsed.netloc:
            return path
        return f"{parsed.scheme}://{parsed.netloc}{path}"

    def mobile_record_url(self, token: str, channel_id: str, root_id: str | None = None) -> str:
        path = f"{self.base_path()}/plugins/{PLUGIN_ID}/mobile/record?token={quote(token, safe='')}"
        if channel_id:
            path += f"&channel_id={quote(channel_id, safe='')}"
        if root_id:
            path += f"&root_id={quote(root_id, safe='')}"
        return self._absolute(path)

    def mobile_upload_path(self, token: str) -> str:
        return f"{self.base_path()}/plugins/{PLUGIN_ID}/api/v1/mobile/upload?token={quote(token, safe='')}"

    def permalink(self, post_id: str) -> str:
        return self._absolute(f"{self.base_path()}/pl/{post_id}")

    def is_allowed_origin(self, origin: str | None) -> bool:
        """Same-host check for browser uploads without a session; lenient when anything is unknown."""
        origin = (origin or "").strip()
        if not origin or not self.site_url:
            return True
        site_host = urlparse(self.site_url).netloc
        origin_host = urlparse(origin).netloc
        if not site_host or not origin_host:
            return True
        return origin_host.lower() == site_host.lower()
