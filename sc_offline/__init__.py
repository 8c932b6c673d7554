"""Offline scripture corpus tooling.

Builds and serves an offline snapshot of the published scripture corpus:
facet index, facet resolution, legacy backfill, and the build pipeline that
keeps all of it current.
"""

__version__ = "1.0.0"
