"""Repository full-name helpers.

GitHub identifies repositories by their full name in ``owner/name`` form.
Webhook payloads, subscriptions and coverage rows all key on that string, so
parsing happens here rather than ad hoc at each call site.
"""

from __future__ import annotations


def repo_slug(owner: str, name: str) -> str:
    """Join an owner and repository name into ``owner/name``.

    Examples
    --------
    >>> repo_slug("octo", "repo")
    'octo/repo'

    """
    return f"{owner}/{name}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Split an ``owner/name`` full name into its parts.

    Raises
    ------
    ValueError
        If the value is not exactly two non-empty segments.

    Examples
    --------
    >>> parse_repo_slug("octo/repo")
    ('octo', 'repo')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository full name: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner or not name:
        msg = f"Invalid repository full name: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name


def is_repo_slug(value: str) -> bool:
    """Return True when *value* is a well-formed ``owner/name`` full name."""
    try:
        parse_repo_slug(value)
    except ValueError:
        return False
    return True
