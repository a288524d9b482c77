"""Revision-control collaborator (git)."""

from driftguard.vcs.git import GitAdapter, parse_porcelain
from driftguard.vcs.protocol import CommitInfo, RevisionControl

__all__ = [
    "CommitInfo",
    "GitAdapter",
    "RevisionControl",
    "parse_porcelain",
]
