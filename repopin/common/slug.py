"""Repository slug parsing and name validation.

Repository slugs are GitHub identifiers in ``owner/name`` format. They are not
filesystem paths, even though they use ``/`` as a separator, so they should be
parsed and validated using these helpers rather than ``pathlib``.

Both segments are checked against GitHub's naming constraints before any
remote call is issued, which rejects malformed or traversal-like input (such
as ``../secret``) before API quota is spent.
"""

from __future__ import annotations

import re

MAX_NAME_LENGTH = 100

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def repo_slug(owner: str, name: str) -> str:
    """Build a repository slug from owner and name.

    Examples
    --------
    >>> repo_slug("octo", "reef")
    'octo/reef'

    """
    return f"{owner}/{name}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Parse a repository slug into owner and name.

    Parameters
    ----------
    slug:
        Repository slug in ``owner/name`` format.

    Returns
    -------
    tuple[str, str]
        ``(owner, name)``.

    Raises
    ------
    ValueError
        If the slug is not in ``owner/name`` format.

    Examples
    --------
    >>> parse_repo_slug("octo/reef")
    ('octo', 'reef')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner or not name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name


def is_valid_repo_name(name: str) -> bool:
    """Return whether ``name`` is an acceptable owner or repository segment.

    A valid segment is non-empty, at most 100 characters, made only of ASCII
    letters, digits, ``.``, ``_`` and ``-``, does not start with ``.`` and is
    neither ``.`` nor ``..``.

    Examples
    --------
    >>> is_valid_repo_name("my-repo.name_1")
    True
    >>> is_valid_repo_name("../secret")
    False

    """
    if not name or len(name) > MAX_NAME_LENGTH:
        return False
    if name in {".", ".."} or name.startswith("."):
        return False
    return _NAME_PATTERN.fullmatch(name) is not None


def is_valid_repo_slug(slug: str) -> bool:
    """Return whether both segments of an ``owner/name`` slug are valid."""
    try:
        owner, name = parse_repo_slug(slug)
    except ValueError:
        return False
    return is_valid_repo_name(owner) and is_valid_repo_name(name)
