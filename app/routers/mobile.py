"""Mobile recording flow: token-authenticated recording page and upload."""

import logging
import threading
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from app.config import PluginConfiguration, get_settings
from app.dependencies import CurrentUser, get_host, get_optional_user, get_plugin_config
from app.ports import HostError
from app.rate_limit import limiter
from app.schemas.voice_message import MobileUploadResponse
from app.services.auto_transcribe import get_auto_transcriber, should_auto_transcribe
from app.services.host import SqlAlchemyHost, open_host
from app.services.links import LinkBuilder
from app.services.mobile_token import TokenInvalid, get_mobile_token_service
from app.services.voice_message import UploadTooLarge, get_voice_message_service

logger = logging.getLogger("voice_message.mobile")

router = APIRouter(tags=["Mobile"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))

RECORD_PAGE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
    "Referrer-Policy": "no-referrer",
    "X-Content-Type-Options": "nosniff",
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'unsafe-inline'; script-src 'unsafe-inline'; "
        "connect-src 'self'; img-src 'self' data:; media-src 'self' blob: data:;"
    ),
}

MSG_SENT = "✅ Voice message sent."


def _delete_prompt(user_id: str, post_id: str) -> None:
    try:
        with open_host() as host:
            host.delete_ephemeral_post(user_id, post_id)
    except Exception:
        logger.exception("Failed to delete recording prompt post_id=%s", post_id)


def schedule_prompt_cleanup(user_id: str, post_id: str) -> None:
    """Remove the slash command prompt a few seconds after the upload succeeded."""
    timer = threading.Timer(get_settings().EPHEMERAL_CLEANUP_SECONDS, _delete_prompt, args=(user_id, post_id))
    timer.daemon = True
    timer.start()


def _check_token_owner(token_user_id: str, user: CurrentUser | None) -> None:
    if user is not None and user.user_id != token_user_id:
        raise HTTPException(status_code=403, detail="Forbidden")


@router.get("/mobile/record", response_class=HTMLResponse)
def mobile_record_page(
    request: Request,
    token: str = "",
    user: CurrentUser | None = Depends(get_optional_user),
    host: SqlAlchemyHost = Depends(get_host),
    config: PluginConfiguration = Depends(get_plugin_config),
) -> HTMLResponse:
    """Render the self-contained recording page for a one-time token."""
    token = token.strip()
    if not token:
        raise HTTPException(status_code=400, detail="missing token")

    try:
        mobile_token = get_mobile_token_service().get(host, token)
    except TokenInvalid:
        raise HTTPException(status_code=401, detail="token invalid or expired") from None
    _check_token_owner(mobile_token.user_id, user)

    max_seconds = config.max_recording_duration_seconds()
    channel_display = host.get_channel_display_name(mobile_token.channel_id) or mobile_token.channel_id

    return templates.TemplateResponse(
        request,
        "mobile_record.html",
        {
            "channel_display": channel_display,
            "is_thread": bool(mobile_token.root_id),
            "upload_url": LinkBuilder().mobile_upload_path(token),
            "max_seconds": max_seconds,
            "limit_label": f"{max_seconds // 60:02d}:{max_seconds % 60:02d}",
        },
        headers=RECORD_PAGE_HEADERS,
    )


@router.post("/api/v1/mobile/upload", response_model=MobileUploadResponse, status_code=201)
@limiter.limit(get_settings().UPLOAD_RATE_LIMIT)
async def mobile_upload(
    request: Request,
    token: str = "",
    duration: str = "",
    user: CurrentUser | None = Depends(get_optional_user),
    host: SqlAlchemyHost = Depends(get_host),
    config: PluginConfiguration = Depends(get_plugin_config),
):
    """Upload a recording authorised by a one-time token instead of a session."""
    token = token.strip()
    if not token:
        raise HTTPException(status_code=400, detail="missing token")

    tokens = get_mobile_token_service()
    try:
        mobile_token = tokens.get(host, token)
    except TokenInvalid:
        raise HTTPException(status_code=401, detail="token invalid or expired") from None
    _check_token_owner(mobile_token.user_id, user)

    links = LinkBuilder()
    if user is None and not links.is_allowed_origin(request.headers.get("origin")):
        raise HTTPException(status_code=403, detail="Forbidden")

    if not host.is_channel_member(mobile_token.channel_id, mobile_token.user_id):
        raise HTTPException(status_code=403, detail="not a channel member")

    service = get_voice_message_service()
    content_type = request.headers.get("content-type", "")
    try:
        data = await service.read_limited(request.stream(), config.max_file_size_bytes())
    except UploadTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e)) from None
    if not data:
        raise HTTPException(status_code=400, detail="Failed to read audio data")

    try:
        tokens.consume(host, token)
    except TokenInvalid:
        raise HTTPException(status_code=401, detail="token invalid or expired") from None

    try:
        post, file_id = service.create_voice_message(
            posts=host,
            files=host,
            user_id=mobile_token.user_id,
            channel_id=mobile_token.channel_id,
            root_id=mobile_token.root_id or None,
            data=data,
            content_type=content_type,
            duration=service.normalize_duration(duration),
        )
    except HostError:
        raise HTTPException(status_code=500, detail="Upload failed") from None

    permalink = links.permalink(post.id)
    if mobile_token.ephemeral_post_id:
        host.update_ephemeral_post(mobile_token.user_id, mobile_token.ephemeral_post_id, f"{MSG_SENT}\n{permalink}")
        schedule_prompt_cleanup(mobile_token.user_id, mobile_token.ephemeral_post_id)

    if should_auto_transcribe(config):
        get_auto_transcriber().submit(post.id, data, content_type)

    body = MobileUploadResponse(post_id=post.id, file_id=file_id, permalink=permalink)
    return JSONResponse(status_code=201, content=body.model_dump(), headers={"Cache-Control": "no-store"})
