"""RepoPin HTTP API layer.

Usage
-----
Create and run the application::

    from repopin.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # with the sync trigger endpoint

"""

from repopin.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
