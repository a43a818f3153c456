"""Response schemas for API endpoints.

Pydantic models used for response serialization and OpenAPI examples.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class FormatEntry(BaseModel):
    """A downloadable media variant."""

    label: str = Field(..., examples=["720p"])
    size: str = Field(..., description="Human-readable size or 'Unknown'", examples=["12.4 MB"])
    url: str = Field(..., examples=["https://cdn.example.com/video-720.mp4"])
    type: Literal["video", "audio", "image"] = Field(..., examples=["video"])


class ExtractResponse(BaseModel):
    """Formats available for a media page."""

    formats: List[FormatEntry]
    title: Optional[str] = Field(default=None, examples=["Big Buck Bunny"])
    thumbnail: Optional[str] = Field(
        default=None, examples=["https://cdn.example.com/thumbnail.jpg"]
    )


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(..., examples=["Invalid url"])


class CheckResponse(BaseModel):
    """Extractor availability report."""

    ok: bool = Field(..., examples=[True])
    version: Optional[str] = Field(default=None, examples=["2024.08.06"])
    error: Optional[str] = Field(default=None, examples=["yt-dlp not found"])


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    status: Literal["healthy", "unhealthy"] = Field(..., examples=["healthy"])
    version: Optional[str] = Field(default=None, examples=["2024.08.06"])
    details: Optional[Dict[str, Any]] = Field(default=None, examples=[{"backend": "redis"}])


class HealthResponse(BaseModel):
    """Detailed health check response."""

    status: Literal["healthy", "unhealthy"] = Field(..., examples=["healthy"])
    timestamp: str = Field(..., examples=["2025-12-25T10:30:00Z"])
    version: str = Field(..., examples=["1.0.0"])
    uptime_seconds: float = Field(..., examples=[3600.5])
    components: Dict[str, ComponentHealth]


class LivenessResponse(BaseModel):
    """Simple liveness check response for container orchestration."""

    status: Literal["alive"] = Field(..., examples=["alive"])
