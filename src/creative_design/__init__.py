"""Creative Design - AI creative design generation for the 3D artifact gallery."""

__version__ = "0.1.0"

from creative_design.core.config import CreativeDesignConfig
from creative_design.core.errors import DesignError, DesignErrorType
from creative_design.core.orchestrator import GenerationOrchestrator

__all__ = [
    "CreativeDesignConfig",
    "DesignError",
    "DesignErrorType",
    "GenerationOrchestrator",
]
