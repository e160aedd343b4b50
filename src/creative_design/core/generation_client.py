"""Interface to the external generative-image backend.

The orchestrator only needs "send (prompt, reference image, aspect ratio,
image count), receive image bytes".  Any backend implementing
:class:`GenerationClient` can be plugged in; every exception it raises is
raw input for :class:`~creative_design.core.error_classifier.ErrorClassifier`.

:class:`EchoGenerationClient` returns the reference image unchanged.  It
keeps the whole flow usable locally when no image model is configured.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class GenerationCall(BaseModel):
    """Parameters sent to the backend for one attempt.

    Attributes:
        prompt: The enhanced prompt.
        reference_image_base64: Reference image payload without the data URL
            prefix.
        reference_mime_type: Mime type of the reference image.
        aspect_ratio: Requested output aspect ratio.
        image_count: Number of images requested.
    """

    model_config = ConfigDict(frozen=True)

    prompt: str
    reference_image_base64: str
    reference_mime_type: str = "image/png"
    aspect_ratio: str = "1:1"
    image_count: int = Field(default=1, ge=1, le=4)


class GenerationResponse(BaseModel):
    """Backend reply: the first generated image as base64."""

    image_base64: str
    mime_type: str = "image/png"


@runtime_checkable
class GenerationClient(Protocol):
    """Anything that can turn a :class:`GenerationCall` into image bytes."""

    async def generate_image(self, call: GenerationCall) -> GenerationResponse:
        ...


class EchoGenerationClient:
    """Local stand-in backend that returns the reference image."""

    async def generate_image(self, call: GenerationCall) -> GenerationResponse:
        logger.info(
            f"Echo backend called (prompt length {len(call.prompt)}, "
            f"aspect ratio {call.aspect_ratio}, images {call.image_count})"
        )
        return GenerationResponse(
            image_base64=call.reference_image_base64,
            mime_type=call.reference_mime_type,
        )
