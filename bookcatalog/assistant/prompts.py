"""
Metadata Prompts

Prompt template and structured output schema for book metadata generation.
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field


class GeneratedBookDetails(BaseModel):
    """Structured answer expected from the model."""

    description: str = Field(
        ...,
        description="A short summary of the book in Spanish.",
    )
    category: str = Field(
        ...,
        description="The main genre of the book in Spanish (e.g., Ficción, Ciencia, Historia).",
    )


@dataclass
class PromptTemplates:
    """
    Collection of prompt templates for metadata generation.
    """

    METADATA_PROMPT = (
        'Generate a concise summary (max 300 chars) and a primary genre category '
        'for the book titled "{title}" by "{author}". The summary must be in Spanish.'
    )

    # Low temperature favors factual phrasing
    TEMPERATURE = 0.3

    RESPONSE_MIME_TYPE = "application/json"

    @classmethod
    def build_metadata_prompt(cls, title: str, author: str) -> str:
        return cls.METADATA_PROMPT.format(title=title, author=author)
