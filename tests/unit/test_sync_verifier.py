"""Unit tests for order verification."""

from __future__ import annotations

import pytest

from repopin.sync.models import DesiredOrder
from repopin.sync.verifier import OrderVerifier, is_already_ordered
from tests.helpers.fake_github import FakeGitHub


class TestIsAlreadyOrdered:
    """Tests for the pure positional comparison."""

    def test_matching_prefix_is_ordered(self) -> None:
        """Only the first top_n entries are compared."""
        assert is_already_ordered(["a/x", "a/y", "a/q"], ["a/x", "a/y", "a/z"], 2)

    def test_swapped_entries_are_not_ordered(self) -> None:
        """Positions matter, not membership."""
        assert not is_already_ordered(["a/y", "a/x"], ["a/x", "a/y"], 2)

    def test_short_current_order_is_not_ordered(self) -> None:
        """A missing repository cannot be in position."""
        assert not is_already_ordered(["a/x"], ["a/x", "a/y"], 2)

    def test_non_positive_top_n_compares_everything(self) -> None:
        """top_n <= 0 means the full desired order."""
        assert not is_already_ordered(["a/x"], ["a/x", "a/y"], 0)
        assert is_already_ordered(["a/x", "a/y"], ["a/x", "a/y"], 0)


@pytest.mark.asyncio
async def test_fetch_current_order_filters_to_managed_repositories(
    fake_github: FakeGitHub,
) -> None:
    """Unmanaged repositories are dropped and remote order is kept."""
    for slug in ("octo/a", "octo/other", "octo/b"):
        fake_github.add_repository(slug)
    fake_github.recency = ["octo/b", "octo/other", "octo/a"]

    current = await OrderVerifier(fake_github).fetch_current_order(
        "octo", {"octo/a", "octo/b"}
    )

    assert current == ["octo/b", "octo/a"]


@pytest.mark.asyncio
async def test_fetch_failure_yields_empty_order(fake_github: FakeGitHub) -> None:
    """A listing error is treated as an unknown order, never as a skip."""
    fake_github.fail("list_repos", "octo/")

    verifier = OrderVerifier(fake_github)
    result = await verifier.verify(
        "octo", DesiredOrder.from_slugs(["octo/a", "octo/b"], top_n=2)
    )

    assert result.current_order == ()
    assert not result.already_ordered


@pytest.mark.asyncio
async def test_verify_truncates_both_orders_to_top_n(fake_github: FakeGitHub) -> None:
    """Verification reports only the active slice."""
    for slug in ("octo/c", "octo/b", "octo/a"):
        fake_github.add_repository(slug)
    fake_github.recency = ["octo/a", "octo/b", "octo/c"]

    result = await OrderVerifier(fake_github).verify(
        "octo", DesiredOrder.from_slugs(["octo/a", "octo/b", "octo/c"], top_n=2)
    )

    assert result.already_ordered
    assert result.current_order == ("octo/a", "octo/b")
    assert result.desired_order == ("octo/a", "octo/b")
