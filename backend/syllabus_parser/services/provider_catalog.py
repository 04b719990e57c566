"""
Provider Catalog - Registry of the model backends that can serve a request.

Readers call `snapshot()` and get an immutable tuple. A single refresher task
(or an on-demand `ensure_fresh`) probes Ollama and swaps in a new tuple, so a
reader never sees a half-built list and never needs a lock.
"""
import asyncio
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from syllabus_parser.core.config import settings
from syllabus_parser.models.provider import (
    Capability, LLMProvider, ModelDescriptor, PerformanceTier
)
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)

ProbeFn = Callable[[], Awaitable[List[str]]]


def _local(model_id: str, tier: PerformanceTier, capability: Capability, cost: int) -> ModelDescriptor:
    return ModelDescriptor(
        id=model_id,
        performance_tier=tier,
        capability=capability,
        approx_resource_cost=cost,
        provider=LLMProvider.OLLAMA,
    )


# Models we know how to rank. Installed models are matched against this table.
KNOWN_MODELS: Tuple[ModelDescriptor, ...] = (
    _local("llama3.1:70b", PerformanceTier.HIGH, Capability.GENERAL, 40960),
    _local("llama3.1:8b", PerformanceTier.HIGH, Capability.GENERAL, 4900),
    _local("llava:latest", PerformanceTier.MEDIUM, Capability.VISION, 4700),
    _local("codellama:latest", PerformanceTier.HIGH, Capability.CODING, 3800),
    _local("gemma2:2b", PerformanceTier.MEDIUM, Capability.GENERAL, 1600),
    _local("qwen2.5:1.5b", PerformanceTier.LOW, Capability.GENERAL, 986),
    _local("nomic-embed-text:latest", PerformanceTier.LOW, Capability.EMBEDDING, 274),
)

# Used when discovery has never succeeded
FALLBACK_MODEL_IDS: Tuple[str, ...] = ("llama3.1:8b", "gemma2:2b", "qwen2.5:1.5b")

_KNOWN_BY_ID: Dict[str, ModelDescriptor] = {m.id: m for m in KNOWN_MODELS}


def fallback_models() -> List[ModelDescriptor]:
    return [_KNOWN_BY_ID[model_id] for model_id in FALLBACK_MODEL_IDS]


def configured_remote_models() -> List[ModelDescriptor]:
    """Remote backends are listed only when their API key is set."""
    remote = []
    if settings.GROQ_API_KEY:
        remote.append(ModelDescriptor(
            id=settings.GROQ_MODEL,
            performance_tier=PerformanceTier.HIGH,
            capability=Capability.GENERAL,
            provider=LLMProvider.GROQ,
        ))
    if settings.GEMINI_API_KEY:
        remote.append(ModelDescriptor(
            id=settings.GEMINI_MODEL,
            performance_tier=PerformanceTier.HIGH,
            capability=Capability.GENERAL,
            provider=LLMProvider.GEMINI,
        ))
    return remote


def match_installed(installed: List[str]) -> List[ModelDescriptor]:
    """
    Map installed Ollama model names onto KNOWN_MODELS, keeping discovery order.

    Exact ids win. Otherwise the base name ('llama3.1' of 'llama3.1:latest')
    borrows the ranking of the first known model with that base.
    """
    matched: List[ModelDescriptor] = []
    seen = set()

    for name in installed:
        if name in seen:
            continue

        descriptor = _KNOWN_BY_ID.get(name)
        if descriptor is None:
            base = name.split(":", 1)[0]
            known = next((m for m in KNOWN_MODELS if m.base_name == base), None)
            if known is None:
                logger.debug(f"Ignoring unranked model: {name}")
                continue
            descriptor = known.model_copy(update={"id": name})

        matched.append(descriptor)
        seen.add(name)

    return matched


class ProviderCatalog:
    """
    Snapshot-read registry of ModelDescriptor.
    """

    def __init__(
            self,
            base_url: str = None,
            refresh_interval: float = None,
            discovery_timeout: float = None,
            probe: Optional[ProbeFn] = None,
            remote_models: Optional[List[ModelDescriptor]] = None,
    ):
        """
        Args:
            base_url: Ollama daemon URL
            refresh_interval: Seconds between background refreshes
            discovery_timeout: Timeout for one probe
            probe: Coroutine returning installed model names (replaces the HTTP probe)
            remote_models: Remote descriptors to always list (default: from API keys)
        """
        self.base_url = (base_url or settings.OLLAMA_BASE_URL).rstrip("/")
        self.refresh_interval = refresh_interval or settings.CATALOG_REFRESH_INTERVAL
        self.discovery_timeout = discovery_timeout or settings.DISCOVERY_TIMEOUT
        self._probe = probe or self._probe_ollama
        self._remote = list(configured_remote_models() if remote_models is None else remote_models)

        self._snapshot: Tuple[ModelDescriptor, ...] = ()
        self._local_known: List[ModelDescriptor] = []
        self._refreshed_monotonic: Optional[float] = None
        self._refreshed_at: Optional[datetime] = None
        self._discovery_ok = False

        self._refresh_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    # ==================== Reads ====================

    def snapshot(self) -> Tuple[ModelDescriptor, ...]:
        return self._snapshot

    @property
    def last_refreshed_at(self) -> Optional[datetime]:
        return self._refreshed_at

    def age(self) -> Optional[float]:
        if self._refreshed_monotonic is None:
            return None
        return time.monotonic() - self._refreshed_monotonic

    @property
    def is_stale(self) -> bool:
        age = self.age()
        return age is None or age > self.refresh_interval * 2

    def info(self) -> Dict:
        """Catalog state for health checks."""
        return {
            "models": [m.id for m in self._snapshot],
            "count": len(self._snapshot),
            "discovery_ok": self._discovery_ok,
            "stale": self.is_stale,
            "last_refreshed_at": self._refreshed_at.isoformat() if self._refreshed_at else None,
        }

    # ==================== Writes ====================

    async def _probe_ollama(self) -> List[str]:
        async with httpx.AsyncClient(timeout=self.discovery_timeout) as client:
            response = await client.get(f"{self.base_url}/api/tags")
            response.raise_for_status()
            return [m["name"] for m in response.json().get("models", [])]

    async def refresh(self) -> Tuple[ModelDescriptor, ...]:
        """
        Probe for installed models and replace the snapshot.

        A failed probe keeps the last-known local models, or the minimal
        fallback list if discovery never succeeded.
        """
        async with self._refresh_lock:
            try:
                installed = await self._probe()
                local = match_installed(installed)
                self._local_known = local
                self._discovery_ok = True
                logger.debug(f"Discovered {len(installed)} installed model(s), {len(local)} usable")
            except Exception as e:
                self._discovery_ok = False
                if self._local_known:
                    local = self._local_known
                    logger.warning(f"Model discovery failed, keeping last-known list: {e}")
                else:
                    local = fallback_models()
                    logger.warning(f"Model discovery failed, using fallback list: {e}")

            self._snapshot = tuple(local) + tuple(self._remote)
            self._refreshed_monotonic = time.monotonic()
            self._refreshed_at = datetime.now(timezone.utc)

            logger.info(f"Provider catalog refreshed: {[m.id for m in self._snapshot]}")
            return self._snapshot

    async def ensure_fresh(self, max_age: float = None) -> Tuple[ModelDescriptor, ...]:
        """
        Refresh first if the snapshot is older than `max_age` seconds.

        Defaults to the staleness limit (twice the refresh interval).
        """
        max_age = self.refresh_interval * 2 if max_age is None else max_age
        age = self.age()
        if age is None or age > max_age:
            return await self.refresh()
        return self._snapshot

    # ==================== Background refresher ====================

    async def _run(self) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(self.refresh_interval)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        logger.info(f"Starting provider catalog refresher (every {self.refresh_interval:.0f}s)")
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Provider catalog refresher stopped")


# ==================== Module-level instance ====================

_catalog_instance: Optional[ProviderCatalog] = None


def get_provider_catalog() -> ProviderCatalog:
    global _catalog_instance

    if _catalog_instance is None:
        _catalog_instance = ProviderCatalog()

    return _catalog_instance
