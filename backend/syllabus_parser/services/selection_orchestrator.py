"""
Selection Orchestrator - Picks a model backend and falls back on failure.

Candidates come from one ProviderCatalog snapshot, ordered:
1. Performance tier, highest first
2. Explicit preference order
3. Local before remote (cheaper)
4. Discovery order

Each attempt is bounded by min(per-attempt cap, time left before the
deadline). Timeouts and transport errors move on to the next candidate.
"""
import asyncio
import time
from typing import Callable, List, Optional, Sequence, Union

from syllabus_parser.core.config import settings
from syllabus_parser.core.exceptions import ProviderTimeout, ProviderUnavailable
from syllabus_parser.models.provider import (
    ExhaustedFallback, GenerationParams, ModelDescriptor, ProviderAttempt,
    ProviderResult, SelectionRequest, params_for
)
from syllabus_parser.services.llm_service import create_llm_service
from syllabus_parser.services.provider_catalog import ProviderCatalog, get_provider_catalog
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)

DEADLINE_EXCEEDED = "deadline exceeded"

# (descriptor, params) -> object with `async agenerate(prompt, system_prompt)`
BackendFactory = Callable[[ModelDescriptor, GenerationParams], object]


def order_candidates(
        snapshot: Sequence[ModelDescriptor],
        request: SelectionRequest,
) -> List[ModelDescriptor]:
    """
    Deterministic candidate order for a request. Pure.
    """
    preference = {model_id: rank for rank, model_id in enumerate(request.preference_order)}
    unranked = len(preference)

    eligible = [
        (position, m) for position, m in enumerate(snapshot)
        if m.capability == request.capability
    ]
    eligible.sort(key=lambda item: (
        -item[1].performance_tier.rank,
        preference.get(item[1].id, unranked),
        0 if item[1].is_local else 1,
        item[0],
    ))
    return [m for _, m in eligible]


class SelectionOrchestrator:
    """
    Calls candidates in order until one answers.
    """

    def __init__(
            self,
            catalog: Optional[ProviderCatalog] = None,
            backend_factory: Optional[BackendFactory] = None,
            attempt_timeout: float = None,
    ):
        self.catalog = catalog or get_provider_catalog()
        self.backend_factory = backend_factory or create_llm_service
        self.attempt_timeout = attempt_timeout or settings.PROVIDER_ATTEMPT_TIMEOUT

    async def select(
            self,
            request: SelectionRequest,
            prompt: str,
            system_prompt: Optional[str] = None,
    ) -> Union[ProviderResult, ExhaustedFallback]:
        """
        Run `prompt` against the best available backend.

        Returns:
            ProviderResult from the first candidate that answered, or
            ExhaustedFallback when every candidate failed. Every candidate
            appears in `attempts`, including ones skipped for the deadline.
        """
        started = time.monotonic()
        deadline_at = started + request.deadline_seconds

        snapshot = await self.catalog.ensure_fresh()
        candidates = order_candidates(snapshot, request)
        logger.info(
            f"Selecting for '{request.capability.value}': "
            f"{[c.id for c in candidates]} (deadline {request.deadline_seconds:.0f}s)"
        )

        attempts: List[ProviderAttempt] = []
        for descriptor in candidates:
            remaining = deadline_at - time.monotonic()
            if remaining <= 0:
                attempts.append(ProviderAttempt(
                    model_id=descriptor.id,
                    provider=descriptor.provider.value,
                    ok=False,
                    error=DEADLINE_EXCEEDED,
                ))
                continue

            timeout = min(self.attempt_timeout, remaining)
            attempt_started = time.monotonic()
            try:
                content = await self._call(descriptor, prompt, system_prompt, timeout)
            except (ProviderTimeout, ProviderUnavailable) as e:
                elapsed = time.monotonic() - attempt_started
                logger.warning(f"Falling back after {descriptor.id}: {e}")
                attempts.append(ProviderAttempt(
                    model_id=descriptor.id,
                    provider=descriptor.provider.value,
                    ok=False,
                    error=str(e),
                    elapsed_seconds=elapsed,
                ))
                continue

            elapsed = time.monotonic() - attempt_started
            attempts.append(ProviderAttempt(
                model_id=descriptor.id,
                provider=descriptor.provider.value,
                ok=True,
                elapsed_seconds=elapsed,
            ))
            logger.info(f"{descriptor.id} answered in {elapsed:.1f}s (attempt {len(attempts)})")
            return ProviderResult(
                content=content,
                model_id=descriptor.id,
                provider=descriptor.provider.value,
                attempts=attempts,
            )

        logger.error(
            f"All providers exhausted for '{request.capability.value}' "
            f"after {len(attempts)} attempt(s)"
        )
        return ExhaustedFallback(capability=request.capability.value, attempts=attempts)

    async def _call(
            self,
            descriptor: ModelDescriptor,
            prompt: str,
            system_prompt: Optional[str],
            timeout: float,
    ) -> str:
        """
        One bounded call. Cancellation of the caller is never swallowed.

        Raises:
            ProviderTimeout: no answer within `timeout`
            ProviderUnavailable: backend could not be built or the call failed
        """
        try:
            backend = self.backend_factory(descriptor, params_for(descriptor.performance_tier))
            response = await asyncio.wait_for(backend.agenerate(prompt, system_prompt), timeout=timeout)
            content = response.content
            if response.total_tokens is not None:
                logger.debug(f"{descriptor.id} used {response.total_tokens} tokens")
        except asyncio.TimeoutError:
            raise ProviderTimeout(descriptor.id, timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise ProviderUnavailable(descriptor.id, e) from e

        return content
