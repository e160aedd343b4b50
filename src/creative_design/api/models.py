"""Pydantic request and response models for the Creative Design API.

Models
------
GenerateDesignRequest
    Payload for ``POST /api/designs/generate``: the generation request plus
    the owning artifact.
DraftUpdateRequest
    Payload for ``PUT /api/drafts/{artifact_id}``: any subset of draft fields.
RateLimitStatus
    Response of ``GET /api/rate-limit``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from creative_design.core.models import DesignStyle, GenerationRequest


class GenerateDesignRequest(BaseModel):
    """Request body for the ``POST /api/designs/generate`` endpoint.

    Attributes:
        artifact_id: Identifier of the artifact the screenshot shows.
        artifact_title: Display name of that artifact.
        request: The generation request itself.
    """

    artifact_id: str = Field(..., min_length=1, description="Owning artifact identifier.")
    artifact_title: str = Field(default="", description="Owning artifact display name.")
    request: GenerationRequest


class DraftUpdateRequest(BaseModel):
    """Request body for ``PUT /api/drafts/{artifact_id}``.

    Omitted fields keep their stored value.
    """

    screenshot: str | None = None
    prompt: str | None = None
    style: DesignStyle | None = None
    aspect_ratio: str | None = None


class RateLimitStatus(BaseModel):
    """Current state of the shared generation rate limiter."""

    remaining: int
    max_requests: int
    window_ms: int
    time_until_reset_ms: float
