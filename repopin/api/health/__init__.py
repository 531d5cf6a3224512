"""Liveness and readiness probes.

Usage
-----
Import health resources for route registration::

    from repopin.api.health.resources import HealthResource, ReadyResource
"""
