from __future__ import annotations

from .codec import parse, serialize
from .errors import ConfigError, FormatError, ProviderError, StringsIOError, StringsSyncError
from .fill import FillOutcome, fill
from .lint import LintOptions, LintSummary, analyze_duplicates, analyze_empty_values, lint_catalog
from .merge import harvest_from_catalog, merge
from .models import Catalog, CatalogEntry, ChangeReport, DuplicateGroup, EmptyValue, HarvestedEntry
from .provider import TranslationProvider
from .repository import CatalogRepository
from .sink import Diagnostic, DiagnosticSink, PrintLevel

__all__ = [
    "parse",
    "serialize",
    "Catalog",
    "CatalogEntry",
    "ChangeReport",
    "DuplicateGroup",
    "EmptyValue",
    "HarvestedEntry",
    "analyze_duplicates",
    "analyze_empty_values",
    "lint_catalog",
    "LintOptions",
    "LintSummary",
    "merge",
    "harvest_from_catalog",
    "fill",
    "FillOutcome",
    "TranslationProvider",
    "CatalogRepository",
    "Diagnostic",
    "DiagnosticSink",
    "PrintLevel",
    "StringsSyncError",
    "ConfigError",
    "FormatError",
    "ProviderError",
    "StringsIOError",
]
