"""Generation request orchestration.

:class:`GenerationOrchestrator` turns a :class:`GenerationRequest` into a
:class:`GeneratedDesign`.  Each request moves through a fixed sequence of
stages and stops at the first success or the first non-retryable failure::

    Validating -> RateLimiting -> Enhancing -> Calling -> Assembling -> Done
         \\             \\              \\           \\            \\
          +-------------+--------------+-----------+------------+--> Failed(DesignError)

Validating
    Prompt length and reference image checks.  Failures are
    ``INVALID_PROMPT`` / ``SCREENSHOT_FAILED`` and never consume a rate-limit
    slot.
RateLimiting
    One admission on the shared :class:`RateLimiter`.  Rejection is
    ``RATE_LIMIT_EXCEEDED``; the orchestrator never waits on the caller's
    behalf.
Enhancing
    Pure prompt compilation via :func:`build_enhanced_prompt`.
Calling
    The backend call runs through :class:`RetryExecutor`.  An empty or
    undecodable image counts as a failed attempt.  Every failure is
    classified by :class:`ErrorClassifier` before the retry decision.
Assembling
    Size, dimensions, elapsed time and a fresh id go into the result record.

The orchestrator does not persist results.  Callers hand the returned
design to :class:`~creative_design.core.design_repository.DesignRepository`.

Usage
-----
::

    orchestrator = GenerationOrchestrator(cfg, RateLimiter(cfg.rate_limit_config()), client)
    design = await orchestrator.generate(request, "art-1", "Vase")
    await repository.save(design)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from creative_design.core.config import CreativeDesignConfig
from creative_design.core.error_classifier import ErrorClassifier
from creative_design.core.errors import DesignError, DesignErrorType
from creative_design.core.generation_client import (
    GenerationCall,
    GenerationClient,
    GenerationResponse,
)
from creative_design.core.image_utils import (
    decode_image_bytes,
    decoded_size,
    generate_design_id,
    get_image_dimensions,
    is_supported_image,
    split_data_url,
    to_data_url,
)
from creative_design.core.models import (
    DesignMetadata,
    DesignStyle,
    GeneratedDesign,
    GenerationRequest,
)
from creative_design.core.prompt_builder import build_enhanced_prompt
from creative_design.core.rate_limiter import RateLimiter
from creative_design.core.retry import RetryExecutor

logger = logging.getLogger(__name__)


class GenerationOrchestrator:
    """Validate, rate-limit, call and assemble one design generation.

    Args:
        config: Limits, retry policy and defaults.
        rate_limiter: Limiter shared by every caller of the same backend quota.
        client: The external image backend.
        retry_executor: Retry/timeout runner; a default one is created if omitted.
        classifier: Failure classifier; a default one is created if omitted.
        wall_clock: Epoch seconds for ``created_at``.
        timer: Monotonic seconds for measuring generation duration.
    """

    def __init__(
        self,
        config: CreativeDesignConfig,
        rate_limiter: RateLimiter,
        client: GenerationClient,
        retry_executor: RetryExecutor | None = None,
        classifier: ErrorClassifier | None = None,
        wall_clock: Callable[[], float] = time.time,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config
        self.rate_limiter = rate_limiter
        self.client = client
        self.retry_executor = retry_executor or RetryExecutor()
        self.classifier = classifier or ErrorClassifier()
        self._wall_clock = wall_clock
        self._timer = timer

    # -- Public interface ---------------------------------------------------

    async def generate(
        self,
        request: GenerationRequest,
        owner_artifact_id: str,
        owner_artifact_title: str,
    ) -> GeneratedDesign:
        """Run one request through every stage.

        Args:
            request: Validated-on-entry user input.
            owner_artifact_id: Artifact the design will belong to.
            owner_artifact_title: Display name of that artifact.

        Returns:
            The assembled design.  It is not persisted.

        Raises:
            DesignError: From whichever stage failed.
        """
        start = self._timer()

        # --- Validating ----------------------------------------------------
        self._validate(request)

        # --- RateLimiting --------------------------------------------------
        self.rate_limiter.admit()

        # --- Enhancing -----------------------------------------------------
        style = request.style or self.config.default_style
        aspect_ratio = request.aspect_ratio or self.config.default_aspect_ratio
        enhanced_prompt = build_enhanced_prompt(request.prompt, request.style)

        # --- Calling -------------------------------------------------------
        mime_type, payload = split_data_url(request.reference_image)
        call = GenerationCall(
            prompt=enhanced_prompt,
            reference_image_base64=payload,
            reference_mime_type=mime_type or "image/png",
            aspect_ratio=aspect_ratio,
            image_count=request.image_count or 1,
        )
        logger.info(
            f"Calling generation backend for artifact {owner_artifact_id} "
            f"(prompt length {len(request.prompt)}, style {style.value}, "
            f"aspect ratio {aspect_ratio})"
        )
        image_data, image_bytes = await self.retry_executor.run(
            lambda: self._call_backend(call),
            self.config.retry_policy(),
            classify=self._classify_call_failure,
        )

        # --- Assembling ----------------------------------------------------
        design = self._assemble(
            request,
            image_data,
            image_bytes,
            style=style,
            aspect_ratio=aspect_ratio,
            enhanced_prompt=enhanced_prompt,
            owner_artifact_id=owner_artifact_id,
            owner_artifact_title=owner_artifact_title,
            duration_ms=int((self._timer() - start) * 1000),
        )
        logger.info(
            f"Design {design.id} generated in {design.metadata.generation_duration_ms}ms "
            f"for artifact {owner_artifact_id}"
        )
        return design

    def remaining_requests(self) -> int:
        return self.rate_limiter.remaining()

    def time_until_reset(self) -> float:
        return self.rate_limiter.time_until_reset()

    def reset_rate_limit(self) -> None:
        self.rate_limiter.reset()

    # -- Stages -------------------------------------------------------------

    def _validate(self, request: GenerationRequest) -> None:
        """Fail fast on bad prompts or reference images.

        Raises:
            DesignError: ``INVALID_PROMPT`` or ``SCREENSHOT_FAILED``, never
                retryable.
        """
        prompt = (request.prompt or "").strip()
        if not prompt:
            raise self._invalid(
                DesignErrorType.INVALID_PROMPT,
                "The prompt cannot be empty. Please describe the design you want.",
            )
        if len(prompt) < self.config.prompt_min_length:
            raise self._invalid(
                DesignErrorType.INVALID_PROMPT,
                f"The prompt must be at least {self.config.prompt_min_length} characters.",
            )
        if len(prompt) > self.config.prompt_max_length:
            raise self._invalid(
                DesignErrorType.INVALID_PROMPT,
                f"The prompt is too long. Keep it within {self.config.prompt_max_length} characters.",
            )

        reference = request.reference_image
        if not reference:
            raise self._invalid(
                DesignErrorType.SCREENSHOT_FAILED,
                "A reference image is required. Please capture the 3D view first.",
            )
        if not is_supported_image(reference, self.config.supported_image_formats):
            raise self._invalid(
                DesignErrorType.SCREENSHOT_FAILED,
                "The reference image format is not supported. Please capture the view again.",
            )
        size = decoded_size(reference)
        if size > self.config.max_reference_image_bytes:
            raise self._invalid(
                DesignErrorType.SCREENSHOT_FAILED,
                "The reference image is too large. Lower the screenshot quality and try again.",
                details={"byte_size": size, "max_bytes": self.config.max_reference_image_bytes},
            )

    def _classify_call_failure(self, failure: Exception) -> DesignError:
        return self.classifier.classify(failure, context="generate_image")

    async def _call_backend(self, call: GenerationCall) -> tuple[str, bytes]:
        """One backend attempt, including checks on the returned payload.

        Returns:
            The image as a data URL and its decoded bytes.

        Raises:
            ValueError: If the backend returned no image or invalid base64.
        """
        response: GenerationResponse = await self.client.generate_image(call)
        if not response.image_base64:
            raise ValueError("Empty image data returned by backend")

        image_data = to_data_url(response.image_base64, response.mime_type)
        return image_data, decode_image_bytes(image_data)

    def _assemble(
        self,
        request: GenerationRequest,
        image_data: str,
        image_bytes: bytes,
        *,
        style: DesignStyle,
        aspect_ratio: str,
        enhanced_prompt: str,
        owner_artifact_id: str,
        owner_artifact_title: str,
        duration_ms: int,
    ) -> GeneratedDesign:
        dimensions = get_image_dimensions(image_bytes)
        if dimensions is None:
            logger.warning("Generated image dimensions unreadable, using configured defaults")
            dimensions = (self.config.default_width, self.config.default_height)
        width, height = dimensions

        return GeneratedDesign(
            id=generate_design_id(),
            image_data=image_data,
            prompt=request.prompt,
            enhanced_prompt=enhanced_prompt,
            style=style,
            reference_image=request.reference_image,
            created_at=self._wall_clock(),
            owner_artifact_id=owner_artifact_id,
            owner_artifact_title=owner_artifact_title,
            metadata=DesignMetadata(
                aspect_ratio=aspect_ratio,
                byte_size=len(image_bytes),
                width=width,
                height=height,
                generation_duration_ms=duration_ms,
            ),
        )

    @staticmethod
    def _invalid(kind: DesignErrorType, message: str, details: dict | None = None) -> DesignError:
        logger.warning(f"Request rejected during validation ({kind.value}): {message}")
        return DesignError(kind, message, retryable=False, details=details)
