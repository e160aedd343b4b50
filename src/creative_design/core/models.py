"""Pydantic models for design generation requests, results and drafts.

Models
------
DesignStyle
    Closed set of visual styles, each with a prompt description.
GenerationRequest
    Immutable user input handed to the orchestrator.
GeneratedDesign
    Immutable result record owned by the design repository once saved.
DraftState
    In-progress user input persisted by the draft cache.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DesignStyle(str, Enum):
    """Design style options for creative generation."""

    MODERN = "modern"
    TRADITIONAL = "traditional"
    ABSTRACT = "abstract"
    MINIMALIST = "minimalist"
    WATERCOLOR = "watercolor"
    VINTAGE = "vintage"


STYLE_DESCRIPTIONS: dict[DesignStyle, str] = {
    DesignStyle.MODERN: "Modern and clean, with fluid lines",
    DesignStyle.TRADITIONAL: "Traditional culture with classical charm",
    DesignStyle.ABSTRACT: "Abstract art with creative expression",
    DesignStyle.MINIMALIST: "Minimalism with the aesthetics of empty space",
    DesignStyle.WATERCOLOR: "Watercolour style with soft gradients",
    DesignStyle.VINTAGE: "Vintage nostalgia with the marks of time",
}


class GenerationRequest(BaseModel):
    """Input for one design generation.

    Attributes:
        reference_image: Screenshot of the 3D view as a ``data:image/...``
            URL (base64 payload).
        prompt: The user's design request.
        style: Optional style; the configured default applies when omitted.
        aspect_ratio: Optional aspect ratio such as ``"1:1"`` or ``"16:9"``.
        image_count: Number of images requested from the backend (1-4).
    """

    model_config = ConfigDict(frozen=True)

    reference_image: str = Field(..., description="Base64 data URL of the reference image.")
    prompt: str = Field(..., description="User design request.")
    style: DesignStyle | None = Field(default=None)
    aspect_ratio: str | None = Field(default=None)
    image_count: int | None = Field(default=None, ge=1, le=4)


class DesignMetadata(BaseModel):
    """Technical metadata recorded with each generated design."""

    model_config = ConfigDict(frozen=True)

    aspect_ratio: str
    byte_size: int
    width: int
    height: int
    generation_duration_ms: int


class GeneratedDesign(BaseModel):
    """A completed generation result.

    Attributes:
        id: Unique identifier assigned at creation.
        image_data: Generated image as a base64 data URL.
        prompt: The user's original prompt.
        enhanced_prompt: Prompt actually sent to the backend.
        style: Style applied to the generation.
        reference_image: The screenshot the design was based on.
        created_at: Creation time as epoch seconds.
        owner_artifact_id: Artifact the design belongs to.
        owner_artifact_title: Display name of that artifact.
        metadata: Dimensions, size and timing.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    image_data: str
    prompt: str
    enhanced_prompt: str
    style: DesignStyle
    reference_image: str
    created_at: float
    owner_artifact_id: str
    owner_artifact_title: str
    metadata: DesignMetadata


class DraftState(BaseModel):
    """An unsubmitted design draft for one artifact."""

    model_config = ConfigDict(frozen=True)

    screenshot: str | None = None
    prompt: str = ""
    style: DesignStyle = DesignStyle.MODERN
    aspect_ratio: str = "1:1"
    owner_artifact_id: str
    saved_at: float
