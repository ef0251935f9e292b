"""Blame parsing, caching, lookup, formatting and URL services."""

from .blame_parser import parse_blame_output
from .blame_store import BlameStore
from .query_engine import get_blame_info, resolve, resolve_range
from .text_formatter import BlameTextFormatter
from . import url_resolver

__all__ = [
    "parse_blame_output",
    "BlameStore",
    "get_blame_info",
    "resolve",
    "resolve_range",
    "BlameTextFormatter",
    "url_resolver",
]
