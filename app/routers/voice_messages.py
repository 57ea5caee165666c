"""Voice message API endpoints used by the webapp."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from app.config import PluginConfiguration, get_settings
from app.dependencies import CurrentUser, get_current_user, get_host, get_plugin_config
from app.ports import HostError
from app.rate_limit import limiter
from app.schemas.voice_message import (
    PublicConfigResponse,
    TranscribeErrorResponse,
    TranscribeResponse,
    UploadResponse,
)
from app.services.auto_transcribe import get_auto_transcriber, should_auto_transcribe
from app.services.host import SqlAlchemyHost
from app.services.transcript import TranscribeRejected, get_transcript_service
from app.services.voice_message import UploadTooLarge, get_voice_message_service

logger = logging.getLogger("voice_message.api")

router = APIRouter(prefix="/api/v1", tags=["Voice Messages"])


@router.get("/config", response_model=PublicConfigResponse)
def get_public_config(
    user: CurrentUser = Depends(get_current_user),
    config: PluginConfiguration = Depends(get_plugin_config),
) -> PublicConfigResponse:
    """Effective settings the recorder UI needs."""
    return PublicConfigResponse(**config.public_view())


@router.post("/upload", response_model=UploadResponse, status_code=201)
@limiter.limit(get_settings().UPLOAD_RATE_LIMIT)
async def upload_voice_message(
    request: Request,
    channel_id: str = "",
    root_id: str = "",
    duration: str = "",
    user: CurrentUser = Depends(get_current_user),
    host: SqlAlchemyHost = Depends(get_host),
    config: PluginConfiguration = Depends(get_plugin_config),
) -> UploadResponse:
    """Upload a raw audio body and post it as a voice message."""
    service = get_voice_message_service()

    if not service.is_user_allowed(host, config, user.user_id):
        raise HTTPException(status_code=403, detail="Forbidden")
    if not channel_id:
        raise HTTPException(status_code=400, detail="channel_id required")
    if not host.is_channel_member(channel_id, user.user_id):
        raise HTTPException(status_code=403, detail="Forbidden")

    content_type = request.headers.get("content-type", "")
    try:
        data = await service.read_limited(request.stream(), config.max_file_size_bytes())
    except UploadTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e)) from None
    if not data:
        raise HTTPException(status_code=400, detail="Failed to read audio data")

    try:
        post, file_id = service.create_voice_message(
            posts=host,
            files=host,
            user_id=user.user_id,
            channel_id=channel_id,
            root_id=root_id or None,
            data=data,
            content_type=content_type,
            duration=service.normalize_duration(duration),
        )
    except HostError:
        raise HTTPException(status_code=500, detail="Upload failed") from None

    if should_auto_transcribe(config):
        get_auto_transcriber().submit(post.id, data, content_type)

    return UploadResponse(post_id=post.id, file_id=file_id)


@router.post(
    "/transcribe",
    response_model=TranscribeResponse,
    responses={500: {"model": TranscribeErrorResponse}},
)
def transcribe_voice_message(
    post_id: str = "",
    user: CurrentUser = Depends(get_current_user),
    host: SqlAlchemyHost = Depends(get_host),
    config: PluginConfiguration = Depends(get_plugin_config),
):
    """Transcribe a voice message, or return the transcript already stored on it."""
    service = get_transcript_service()
    try:
        outcome = service.transcribe_post(
            posts=host,
            files=host,
            channels=host,
            config=config,
            user_id=user.user_id,
            post_id=post_id,
        )
    except TranscribeRejected as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from None

    if not outcome.success:
        body = TranscribeErrorResponse(error=outcome.error or "", detail=outcome.detail or "")
        return JSONResponse(status_code=500, content=body.model_dump())

    return TranscribeResponse(transcript=outcome.transcript, cached=outcome.cached)
