"""
Semantic index of discovered fields, aliases, and templates.

Public API:
    SemanticIndex - Field, alias, and template tables
    FieldEntry - Discovered field with samples and count
    AliasEntry - Canonical name and its variants
    AliasProposal - Variant recorded by alias detection
    TemplateEntry - Recurring task phrasing
    similarity - Name similarity score in [0, 1]
"""

from tx.index.semantic import AliasEntry, AliasProposal, FieldEntry, SemanticIndex
from tx.index.similarity import similarity
from tx.index.templates import TemplateEntry, compute_shape

__all__ = [
    "SemanticIndex",
    "FieldEntry",
    "AliasEntry",
    "AliasProposal",
    "TemplateEntry",
    "compute_shape",
    "similarity",
]
