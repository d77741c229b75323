"""Unit tests for repository full-name helpers."""

from __future__ import annotations

import pytest

from herald.common.slug import is_repo_slug, parse_repo_slug, repo_slug


def test_repo_slug_combines_owner_and_name() -> None:
    """repo_slug returns owner/name format."""
    assert repo_slug("octo", "repo") == "octo/repo"
    assert repo_slug("org", "tools") == "org/tools"


def test_parse_repo_slug_splits_owner_and_name() -> None:
    """parse_repo_slug returns (owner, name) for valid full names."""
    assert parse_repo_slug("octo/repo") == ("octo", "repo")
    assert parse_repo_slug("Owner-Org/Repo_Name") == ("Owner-Org", "Repo_Name")


@pytest.mark.parametrize(
    "slug",
    [
        "",
        "   ",
        "/",
        "invalid",
        "owner/name/extra",
        r"owner\\name",
        "owner/",
        "/name",
        "owner//name",
    ],
)
def test_parse_repo_slug_rejects_invalid_slugs(slug: str) -> None:
    """parse_repo_slug raises ValueError for malformed full names."""
    with pytest.raises(ValueError, match="Invalid repository full name"):
        parse_repo_slug(slug)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("octo/repo", True), ("octo", False), ("octo/repo/extra", False)],
)
def test_is_repo_slug(value: str, *, expected: bool) -> None:
    """is_repo_slug mirrors parse_repo_slug without raising."""
    assert is_repo_slug(value) is expected, f"unexpected result for {value!r}"
