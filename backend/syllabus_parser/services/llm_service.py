"""
LLM Service - One chat backend (Ollama, Groq or Gemini) behind a single
`agenerate` call.

An instance wraps one ModelDescriptor with the generation parameters of its
tier and keeps no conversation state. Timeouts and fallback belong to the
SelectionOrchestrator.
"""

from dataclasses import dataclass
from typing import Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_groq import ChatGroq
from langchain_ollama import ChatOllama

from syllabus_parser.core.config import settings
from syllabus_parser.models.provider import (
    GenerationParams, LLMProvider, ModelDescriptor, params_for
)
from syllabus_parser.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class LLMResponse:
    content: str
    model_id: str
    # From langchain usage_metadata; None when the backend omits it
    total_tokens: Optional[int] = None


class LLMService:
    """Stateless wrapper around one chat model backend."""

    def __init__(
            self,
            descriptor: ModelDescriptor,
            params: Optional[GenerationParams] = None,
            api_key: Optional[str] = None,
            base_url: Optional[str] = None
    ):
        self.descriptor = descriptor
        self.model = descriptor.id
        self.provider = descriptor.provider
        self.params = params or params_for(descriptor.performance_tier)
        self.api_key = api_key or self._get_default_api_key(descriptor.provider)
        self.base_url = base_url or settings.OLLAMA_BASE_URL

        self.llm = self._initialize_provider()
        logger.debug(
            f"LLMService initialized: provider={self.provider.value}, "
            f"model={self.model}, temperature={self.params.temperature}"
        )

    @staticmethod
    def _get_default_api_key(provider: LLMProvider) -> Optional[str]:
        defaults = {
            LLMProvider.GROQ: settings.GROQ_API_KEY,
            LLMProvider.GEMINI: settings.GEMINI_API_KEY,
        }
        return defaults.get(provider)

    def _initialize_provider(self):
        if self.provider == LLMProvider.OLLAMA:
            return ChatOllama(
                model=self.model,
                base_url=self.base_url,
                temperature=self.params.temperature,
                num_ctx=self.params.num_ctx,
                num_predict=self.params.max_tokens,
                top_p=self.params.top_p,
                top_k=self.params.top_k,
            )

        elif self.provider == LLMProvider.GEMINI:
            if not self.api_key:
                raise ValueError("Gemini requires an API key")

            return ChatGoogleGenerativeAI(
                model=self.model,
                google_api_key=self.api_key,
                temperature=self.params.temperature,
                max_output_tokens=self.params.max_tokens,
                top_p=self.params.top_p,
                top_k=self.params.top_k,
            )

        elif self.provider == LLMProvider.GROQ:
            if not self.api_key:
                raise ValueError("Groq requires an API key")

            return ChatGroq(
                model=self.model,
                api_key=self.api_key,
                temperature=self.params.temperature,
                max_tokens=self.params.max_tokens,
            )

        else:
            raise ValueError(f"Unsupported provider: {self.provider}")

    async def agenerate(self, prompt: str, system_prompt: Optional[str] = None) -> LLMResponse:
        """
        Send one prompt and return the model's reply.

        Args:
            prompt: User message (document text plus instructions)
            system_prompt: System instructions (optional, prepended)

        Returns:
            LLMResponse with the generated text.
        """
        lc_messages = [HumanMessage(content=prompt)]
        if system_prompt:
            lc_messages.insert(0, SystemMessage(content=system_prompt))

        logger.debug(f"Calling {self.provider.value}/{self.model} with {len(prompt)} chars")
        response = await self.llm.ainvoke(lc_messages)

        content = response.content if isinstance(response.content, str) else str(response.content)
        usage = getattr(response, "usage_metadata", None) or {}

        logger.debug(f"{self.model} replied with {len(content)} chars")
        return LLMResponse(content=content, model_id=self.model, total_tokens=usage.get("total_tokens"))


def create_llm_service(descriptor: ModelDescriptor, params: GenerationParams) -> LLMService:
    """Default backend factory used by the SelectionOrchestrator."""
    return LLMService(descriptor, params)
