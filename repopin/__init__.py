"""RepoPin keeps chosen repositories at the top of a GitHub profile.

The service bumps each repository's "last updated" timestamp with synthetic
commits, in reverse of the desired order, then rewrites recent history to
drop those commits again. See :mod:`repopin.sync` for the engine and
:mod:`repopin.api` for the HTTP trigger.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
