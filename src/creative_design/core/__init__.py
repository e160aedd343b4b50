"""Core generation, rate-limiting and persistence components.

This package holds everything that has real invariants in the creative
design feature.  Components, leaf-first:

- **RateLimiter** (rate_limiter.py): sliding-window admission control
- **RetryExecutor** (retry.py): exponential backoff and per-attempt timeouts
- **ErrorClassifier** (error_classifier.py): raw failures to DesignError
- **GenerationOrchestrator** (orchestrator.py): validate, admit, enhance,
  call, assemble
- **DesignRepository** (design_repository.py): SQLite store of results with
  an owner index
- **DraftStateCache** (draft_cache.py): TTL-bound draft persistence

Data Flow
---------
    draft cache -> orchestrator.generate(request)
        -> rate_limiter.admit -> retry_executor.run(backend call)
        -> error_classifier on failure
    -> design_repository.save(design)

Usage Example
-------------
    from creative_design.core import (
        CreativeDesignConfig, DesignRepository, EchoGenerationClient,
        GenerationOrchestrator, RateLimiter,
    )

    cfg = CreativeDesignConfig()
    orchestrator = GenerationOrchestrator(
        cfg, RateLimiter(cfg.rate_limit_config()), EchoGenerationClient()
    )
    design = await orchestrator.generate(request, "art-1", "Vase")
    await DesignRepository(cfg.designs_db_path).save(design)
"""

from creative_design.core.config import CreativeDesignConfig, RateLimitConfig, RetryPolicy
from creative_design.core.design_repository import DesignRepository
from creative_design.core.draft_cache import (
    DraftStateCache,
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)
from creative_design.core.error_classifier import ErrorClassifier
from creative_design.core.errors import DesignError, DesignErrorType, Outcome, RateLimitExceeded
from creative_design.core.generation_client import (
    EchoGenerationClient,
    GenerationCall,
    GenerationClient,
    GenerationResponse,
)
from creative_design.core.models import (
    STYLE_DESCRIPTIONS,
    DesignMetadata,
    DesignStyle,
    DraftState,
    GeneratedDesign,
    GenerationRequest,
)
from creative_design.core.orchestrator import GenerationOrchestrator
from creative_design.core.prompt_builder import build_enhanced_prompt
from creative_design.core.rate_limiter import RateLimiter
from creative_design.core.retry import RetryExecutor

__all__ = [
    "CreativeDesignConfig",
    "DesignError",
    "DesignErrorType",
    "DesignMetadata",
    "DesignRepository",
    "DesignStyle",
    "DraftState",
    "DraftStateCache",
    "EchoGenerationClient",
    "ErrorClassifier",
    "GeneratedDesign",
    "GenerationCall",
    "GenerationClient",
    "GenerationOrchestrator",
    "GenerationRequest",
    "GenerationResponse",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "Outcome",
    "RateLimitConfig",
    "RateLimitExceeded",
    "RateLimiter",
    "RetryExecutor",
    "RetryPolicy",
    "STYLE_DESCRIPTIONS",
    "build_enhanced_prompt",
]
