"""
VCS Blame - inline version-control attribution for source lines.

Runs the backend's blame/annotate command per file, caches the parsed
attribution records, renders them through a placeholder template and derives
shareable commit and file URLs for the repository's hosting provider.
"""

__version__ = "1.0.0"
