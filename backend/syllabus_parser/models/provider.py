"""
Models describing AI backends and the outcome of selecting one.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    OLLAMA = "ollama"
    GROQ = "groq"
    GEMINI = "gemini"


LOCAL_PROVIDERS = {LLMProvider.OLLAMA}


class PerformanceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Higher is better."""
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class Capability(str, Enum):
    GENERAL = "general"
    CODING = "coding"
    VISION = "vision"
    EMBEDDING = "embedding"


class ModelDescriptor(BaseModel):
    """
    One selectable backend. Lives in the ProviderCatalog.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Model identifier as the provider knows it")
    performance_tier: PerformanceTier
    capability: Capability
    approx_resource_cost: int = Field(0, ge=0, description="Approximate memory footprint in MB")
    provider: LLMProvider = LLMProvider.OLLAMA

    @property
    def is_local(self) -> bool:
        return self.provider in LOCAL_PROVIDERS

    @property
    def base_name(self) -> str:
        """'llama3.1:8b' -> 'llama3.1'"""
        return self.id.split(":", 1)[0]


class GenerationParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: float
    max_tokens: int
    num_ctx: int
    top_p: float
    top_k: int


# Precomputed per tier so every attempt at a tier behaves the same.
# Low temperatures keep structured (JSON) output stable.
TIER_PARAMETERS: Dict[PerformanceTier, GenerationParams] = {
    PerformanceTier.HIGH: GenerationParams(temperature=0.2, max_tokens=2000, num_ctx=6144, top_p=0.95, top_k=40),
    PerformanceTier.MEDIUM: GenerationParams(temperature=0.2, max_tokens=1500, num_ctx=4096, top_p=0.95, top_k=40),
    PerformanceTier.LOW: GenerationParams(temperature=0.1, max_tokens=1000, num_ctx=4096, top_p=0.9, top_k=40),
}


def params_for(tier: PerformanceTier) -> GenerationParams:
    return TIER_PARAMETERS[tier]


class SelectionRequest(BaseModel):
    """One per extraction call."""
    capability: Capability = Capability.GENERAL
    deadline_seconds: float = Field(60.0, gt=0)
    preference_order: List[str] = Field(default_factory=list, description="Model ids tried first within a tier")


# ==================== Selection outcomes ====================

@dataclass
class ProviderAttempt:
    """
    Record of one call (or skipped call) against a candidate.
    """
    model_id: str
    provider: str
    ok: bool
    error: Optional[str] = None
    elapsed_seconds: float = 0.0


@dataclass
class ProviderResult:
    content: str
    model_id: str
    provider: str
    attempts: List[ProviderAttempt] = field(default_factory=list)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


@dataclass
class ExhaustedFallback:
    """Every candidate was attempted and failed."""
    capability: str
    attempts: List[ProviderAttempt] = field(default_factory=list)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    @property
    def errors(self) -> List[str]:
        return [f"{a.model_id}: {a.error}" for a in self.attempts]
