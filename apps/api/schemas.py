"""
Pydantic schemas for the subtitle burner API.

Defines request/response models for API endpoints with validation.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SubtitleItem(BaseModel):
    """One subtitle line as exchanged with clients."""

    speaker: Optional[str] = Field(None, description="Speaker label, groups lines for coloring")
    line: str = Field(..., description="Display text")
    startTime: float = Field(..., description="Start time in seconds")
    endTime: float = Field(..., description="End time in seconds")
    overrideColor: Optional[str] = Field(None, description="Explicit color for this line")


class CompileRequest(BaseModel):
    """Request model for the compile endpoint."""

    subtitles: List[Dict[str, Any]] = Field(..., description="Subtitle lines")
    style: Dict[str, Any] = Field(default_factory=dict, description="Partial style options")
    speakerColors: Optional[Dict[str, str]] = Field(None, description="Speaker -> color reference")
    renderMode: str = Field("overlay", description="overlay, ass or srt")

    class Config:
        json_schema_extra = {
            "example": {
                "subtitles": [{"speaker": "A", "line": "Hello world", "startTime": 0, "endTime": 2}],
                "style": {"fontSize": 44, "textAlign": "center"},
                "speakerColors": {"A": "#00FFFF"},
                "renderMode": "overlay",
            }
        }


class CompileResponse(BaseModel):
    """Compiled filter graph, plus the track document in track modes."""

    success: bool = Field(True, description="Whether compilation succeeded")
    mode: str = Field(..., description="Render mode used")
    filterGraph: str = Field(..., description="ffmpeg -vf expression")
    trackDocument: Optional[str] = Field(None, description="Subtitle track text (ass/srt modes)")


class ProcessResponse(BaseModel):
    """Response model for upload/reprocess endpoints."""

    success: bool = Field(..., description="Whether processing succeeded")
    message: str = Field(..., description="Human readable summary")
    videoUrl: str = Field(..., description="Download URL of the processed video")
    videoPath: str = Field(..., description="Upload id to pass back to /api/reprocess")
    subtitles: List[SubtitleItem] = Field(default_factory=list, description="Subtitles that were burned")
    logs: List[str] = Field(default_factory=list, description="Processing log lines")

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Video processed",
                "videoUrl": "/processed/subtitled_input_ab12.mp4",
                "videoPath": "input_ab12.mp4",
                "subtitles": [{"speaker": "Speaker 1", "line": "Hello", "startTime": 0.2, "endTime": 2.8}],
                "logs": ["mode: overlay"],
            }
        }


class ErrorResponse(BaseModel):
    """Error envelope shared by all endpoints."""

    success: bool = Field(False, description="Always false")
    message: str = Field(..., description="Human readable reason")
    error: str = Field(..., description="Stable error code")
    logs: List[str] = Field(default_factory=list, description="Log lines collected before the failure")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Service health status")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "ok"
            }
        }


class ServiceHealthResponse(HealthResponse):
    """Detailed health: collaborators the burner depends on."""

    ffmpeg: bool = Field(..., description="ffmpeg executable found")
    transcription: str = Field(..., description="'live' or 'dry-run'")
    renderMode: str = Field(..., description="Default render mode")
    fonts: List[str] = Field(default_factory=list, description="Registered fonts present in the fonts directory")


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(..., description="API version")
