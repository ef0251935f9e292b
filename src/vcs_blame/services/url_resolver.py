"""
Web URLs for repositories, commits and files from a raw remote URL.

Remotes come in many shapes (scp-like SSH, HTTPS with or without user info,
Azure DevOps SSH/HTTPS, trailing ``.git``). ``canonicalize`` rewrites them to
the ``https://host/path`` page of the repository by trying a list of
patterns, most specific first. Nothing here raises: an unrecognized remote
is returned unchanged and used as a best-effort URL.
"""

import re
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

AZURE_HOST = "dev.azure.com"
SOURCEHUT_HOST = "git.sr.ht"
BITBUCKET_HOST = "bitbucket.org"

_AZURE_GIT_PATH = re.compile(r"(.*)/(.*)/_git/(.*)")
_AZURE_PLAIN_PATH = re.compile(r"(.*)/(.*)/(.*)")


def _azure_repo_url(rest: str) -> str:
    """Normalize ``org/project[/_git]/repo`` to the Azure DevOps repo page."""
    for pattern in (_AZURE_GIT_PATH, _AZURE_PLAIN_PATH):
        match = pattern.fullmatch(rest)
        if match:
            org, project, repo = match.groups()
            return f"https://{AZURE_HOST}/{org}/{project}/_git/{repo}"
    return rest


_Rule = Tuple["re.Pattern[str]", Callable[["re.Match[str]"], str]]

_RULES: List[_Rule] = [
    # git@github.com:owner/repo.git
    (re.compile(r".*git@(.*):(.*)\.git"), lambda m: f"https://{m.group(1)}/{m.group(2)}"),
    # git@ssh.dev.azure.com:v3/org/project/repo
    (re.compile(r".*git@*ssh\.dev\.azure\.com:v[0-9]/(.*)"), lambda m: _azure_repo_url(m.group(1))),
    # https://org@dev.azure.com/org/project/_git/repo
    (re.compile(r".*@dev\.azure\.com/(.*)"), lambda m: _azure_repo_url(m.group(1))),
    # git@host/owner/repo.git
    (re.compile(r".*git@(.*)\.git"), lambda m: f"https://{m.group(1)}"),
    # https://host/owner/repo.git
    (re.compile(r"(https://.*)\.git"), lambda m: m.group(1)),
    # git@host:owner/repo
    (re.compile(r".*git@(.*):(.*)"), lambda m: f"https://{m.group(1)}/{m.group(2)}"),
    # git@host/owner/repo
    (re.compile(r".*git@(.*)"), lambda m: f"https://{m.group(1)}"),
    # https://host/owner/repo
    (re.compile(r"(https://.*)"), lambda m: m.group(1)),
]


def canonicalize(raw: str) -> str:
    """Return the ``https://`` page of the repository behind ``raw``."""
    remote = raw.strip()
    for pattern, build in _RULES:
        match = pattern.search(remote)
        if match:
            return build(match)
    return raw


repo_url = canonicalize


def _host(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def commit_url(sha: str, raw_remote: str) -> str:
    """URL of commit ``sha`` on the remote's web UI."""
    base = canonicalize(raw_remote)
    if _host(base) == BITBUCKET_HOST:
        return f"{base}/commits/{sha}"
    return f"{base}/commit/{sha}"


def file_url(
    raw_remote: str,
    ref: str,
    rel_path: str,
    line1: Optional[int] = None,
    line2: Optional[int] = None,
) -> str:
    """URL of ``rel_path`` at ``ref``, optionally anchored to lines.

    Args:
        raw_remote: Remote URL as configured in the repository
        ref: Branch name or commit SHA (not used by Azure DevOps URLs)
        rel_path: File path relative to the repository root
        line1: First selected line
        line2: Last selected line

    Returns:
        The file URL with the host's line-anchor syntax
    """
    base = canonicalize(raw_remote)
    is_sourcehut = SOURCEHUT_HOST in base
    is_azure = AZURE_HOST in base

    if is_azure:
        # Azure resolves the ref in its UI; a SHA in the path would not open.
        path = f"?path=%2F{rel_path}"
    elif is_sourcehut:
        path = f"/tree/{ref}/{rel_path}"
    else:
        path = f"/blob/{ref}/{rel_path}"

    url = base + path
    if line1 is None:
        return url

    if line2 is None or line1 == line2:
        if is_azure:
            return url + _azure_line_range(line1, line1)
        return f"{url}#L{line1}"

    if is_sourcehut:
        return f"{url}#L{line1}-{line2}"
    if is_azure:
        return url + _azure_line_range(line1, line2)
    return f"{url}#L{line1}-L{line2}"


def _azure_line_range(line1: int, line2: int) -> str:
    return (
        f"&line={line1}&lineEnd={line2 + 1}"
        "&lineStartColumn=1&lineEndColumn=1"
    )
