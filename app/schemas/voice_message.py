"""Pydantic schemas for voice message endpoints."""

from pydantic import BaseModel


class PublicConfigResponse(BaseModel):
    maxDurationSeconds: int
    enableTranscription: bool
    autoTranscribe: bool
    transcriptionMaxDuration: int


class UploadResponse(BaseModel):
    post_id: str
    file_id: str


class MobileUploadResponse(UploadResponse):
    permalink: str


class TranscribeResponse(BaseModel):
    transcript: str
    cached: bool


class TranscribeErrorResponse(BaseModel):
    error: str
    detail: str
