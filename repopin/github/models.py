"""Typed read views of GitHub git objects."""

from __future__ import annotations

import dataclasses

from repopin.common.slug import is_valid_repo_name, parse_repo_slug, repo_slug


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryReference:
    """Identifies a remote repository by owner and name.

    Construction does not validate the segments so that malformed stored
    entries can still be reported per repository; use :attr:`is_valid`
    before issuing remote calls.
    """

    owner: str
    name: str

    @property
    def slug(self) -> str:
        """Return ``owner/name``."""
        return repo_slug(self.owner, self.name)

    @property
    def is_valid(self) -> bool:
        """Return whether both segments satisfy GitHub naming constraints."""
        return is_valid_repo_name(self.owner) and is_valid_repo_name(self.name)

    @classmethod
    def from_slug(cls, slug: str) -> RepositoryReference:
        """Build a reference from ``owner/name``.

        Malformed slugs produce a reference with an empty segment so that
        validation, rather than parsing, rejects them.
        """
        try:
            owner, name = parse_repo_slug(slug)
        except ValueError:
            owner, _, name = slug.partition("/")
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        """Return the slug."""
        return self.slug


@dataclasses.dataclass(frozen=True, slots=True)
class CommitIdentity:
    """Author or committer signature of a commit."""

    name: str
    email: str
    date: str | None = None

    def as_payload(self) -> dict[str, str]:
        """Return the identity as a GitHub create-commit payload."""
        payload = {"name": self.name, "email": self.email}
        if self.date is not None:
            payload["date"] = self.date
        return payload


@dataclasses.dataclass(frozen=True, slots=True)
class CommitRecord:
    """Immutable read view of a remote commit object."""

    sha: str
    message: str
    tree_sha: str
    parent_shas: tuple[str, ...] = ()
    author: CommitIdentity | None = None
    committer: CommitIdentity | None = None

    def has_marker(self, marker: str) -> bool:
        """Return whether the commit message contains ``marker``."""
        return marker in self.message


@dataclasses.dataclass(frozen=True, slots=True)
class BranchRef:
    """A branch reference and the commit it points at."""

    name: str
    sha: str

    @property
    def qualified_name(self) -> str:
        """Return the fully qualified ``refs/heads/...`` name."""
        return f"refs/heads/{self.name}"


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryListing:
    """Repository entry from a recency-sorted listing."""

    full_name: str
    updated_at: str | None = None
    pushed_at: str | None = None
