"""
Metadata Generator

LLM integration for filling in a book's description and category.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from google import genai
from google.genai import types
from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from bookcatalog.assistant.prompts import GeneratedBookDetails, PromptTemplates


DEFAULT_MODEL = "gemini-2.5-flash"

MISSING_KEY_FALLBACK = GeneratedBookDetails(
    description="Descripción no disponible (Falta API Key)",
    category="General",
)

GENERATION_FALLBACK = GeneratedBookDetails(
    description="No se pudo generar la descripción automáticamente.",
    category="Sin Categoría",
)


@dataclass
class GeneratedResponse:
    """Raw response from an LLM client."""

    content: str
    model: str = ""
    generation_time_ms: float = 0.0


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    model: str = ""

    @abstractmethod
    async def generate_structured(
        self,
        prompt: str,
        response_schema: type[BaseModel],
        temperature: float = 0.3,
    ) -> GeneratedResponse:
        """Generate a JSON response constrained to ``response_schema``."""
        pass


class GoogleClient(BaseLLMClient):
    """
    Google Gemini client using structured JSON output.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
    ):
        self.api_key = api_key
        self.model = model
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        """Lazy initialization of the Gemini client."""
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate_structured(
        self,
        prompt: str,
        response_schema: type[BaseModel],
        temperature: float = 0.3,
    ) -> GeneratedResponse:
        """
        Generate a structured response using Gemini.

        Args:
            prompt: Full user prompt
            response_schema: Pydantic model describing the JSON object
            temperature: Sampling temperature

        Returns:
            GeneratedResponse with the raw JSON text
        """
        start_time = time.time()
        client = self._get_client()

        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type=PromptTemplates.RESPONSE_MIME_TYPE,
                response_schema=response_schema,
                temperature=temperature,
            ),
        )

        return GeneratedResponse(
            content=response.text or "",
            model=self.model,
            generation_time_ms=(time.time() - start_time) * 1000,
        )


class MetadataAssistant:
    """
    Fills in description and category for a title/author pair.

    Never raises: a missing key, a transport error, an empty answer or an
    answer that does not match the two-field schema all produce a fixed
    fallback payload.
    """

    def __init__(self, llm_client: Optional[BaseLLMClient] = None):
        """
        Initialize assistant.

        Args:
            llm_client: Client to call, or ``None`` when no API key is configured
        """
        self.llm_client = llm_client

    @property
    def is_configured(self) -> bool:
        return self.llm_client is not None

    async def generate_book_metadata(self, title: str, author: str) -> GeneratedBookDetails:
        """
        Generate a summary and genre for a book.

        Args:
            title: Book title
            author: Book author

        Returns:
            GeneratedBookDetails, or one of the fallback payloads
        """
        if self.llm_client is None:
            logger.error("API key is missing; metadata generation disabled")
            return MISSING_KEY_FALLBACK

        prompt = PromptTemplates.build_metadata_prompt(title, author)

        try:
            response = await self.llm_client.generate_structured(
                prompt=prompt,
                response_schema=GeneratedBookDetails,
                temperature=PromptTemplates.TEMPERATURE,
            )
            if not response.content:
                raise ValueError("No response from AI")

            details = GeneratedBookDetails.model_validate_json(response.content)
            logger.info(
                f"Generated metadata for '{title}' with {response.model} "
                f"in {response.generation_time_ms:.0f}ms"
            )
            return details

        except SchemaValidationError as e:
            logger.error(f"Metadata response did not match schema: {e.error_count()} error(s)")
        except Exception as e:
            logger.error(f"Error generating book metadata: {type(e).__name__}: {e}")

        return GENERATION_FALLBACK


def create_assistant(
    api_key: Optional[str] = None,
    model: Optional[str] = None,
) -> MetadataAssistant:
    """
    Factory function to create a MetadataAssistant.

    Args:
        api_key: Gemini API key; without one the assistant only returns
            the missing-key fallback
        model: Model name (uses default if not specified)

    Returns:
        Configured MetadataAssistant
    """
    if not api_key:
        logger.warning("No Gemini API key configured. Metadata generation will use fallbacks.")
        return MetadataAssistant(llm_client=None)

    return MetadataAssistant(
        llm_client=GoogleClient(api_key=api_key, model=model or DEFAULT_MODEL),
    )
