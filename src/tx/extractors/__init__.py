"""
Semantic extractors.

Public API:
    SemanticExtractor - Protocol every extractor satisfies
    Extraction - Fields and recurrence hint for a piece of text
    LLMExtractor - OpenAI-compatible chat completions extractor
    RuleExtractor - Offline shorthand extractor
    create_extractor - Extractor for the configured provider
"""

from typing import Optional

import httpx

from tx.core.config import TxConfig
from tx.extractors.base import Extraction, SemanticExtractor
from tx.extractors.llm_extractor import ExtractionPayload, LLMExtractor, parse_payload
from tx.extractors.rule_extractor import RuleExtractor


def create_extractor(config: TxConfig, client: Optional[httpx.Client] = None) -> SemanticExtractor:
    """Create the extractor for ``config.provider``."""
    if config.provider == "none":
        return RuleExtractor()
    return LLMExtractor.from_config(config, client=client)


__all__ = [
    "Extraction",
    "SemanticExtractor",
    "ExtractionPayload",
    "LLMExtractor",
    "RuleExtractor",
    "create_extractor",
    "parse_payload",
]
