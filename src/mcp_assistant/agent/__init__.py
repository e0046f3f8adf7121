"""
Agent instructions, query classification and agent construction.
"""

from .classifier import QueryClassification, QueryType, classify_query, variant_for
from .instructions import (
    DOMAIN_GUIDANCE,
    VARIANTS,
    build_contextual_instructions,
    build_debug_instructions,
    build_instructions,
    capabilities_summary,
)

__all__ = [
    "QueryClassification",
    "QueryType",
    "classify_query",
    "variant_for",
    "DOMAIN_GUIDANCE",
    "VARIANTS",
    "build_contextual_instructions",
    "build_debug_instructions",
    "build_instructions",
    "capabilities_summary",
]
