"""
Assistant Module for the book catalog

Generative-AI helpers for the book editor:
- Prompt template and two-field response schema
- Gemini client with structured JSON output
- Fallback payloads when generation is unavailable
"""

from bookcatalog.assistant.prompts import (
    GeneratedBookDetails,
    PromptTemplates,
)
from bookcatalog.assistant.generator import (
    BaseLLMClient,
    GeneratedResponse,
    GoogleClient,
    MetadataAssistant,
    create_assistant,
    GENERATION_FALLBACK,
    MISSING_KEY_FALLBACK,
)

__all__ = [
    # Prompts
    "GeneratedBookDetails",
    "PromptTemplates",
    # Generator
    "BaseLLMClient",
    "GeneratedResponse",
    "GoogleClient",
    "MetadataAssistant",
    "create_assistant",
    "GENERATION_FALLBACK",
    "MISSING_KEY_FALLBACK",
]
