"""
Read-side queries over the completed-interview archive.
All functions return new lists and never mutate the archive they are given.
"""
from typing import List, Optional, Sequence

from models.schemas import CompletedSession


def filter_sessions(archive: Sequence[CompletedSession], query: Optional[str]) -> List[CompletedSession]:
    """
    Case-insensitive substring search on candidate name or email.

    Args:
        archive: Completed interviews in insertion order
        query: Search text; blank returns everything

    Returns:
        Matching interviews, order preserved
    """
    needle = (query or "").strip().lower()
    if not needle:
        return list(archive)

    results = []
    for item in archive:
        name = (item.candidate.name or "").lower()
        email = (item.candidate.email or "").lower()
        if needle in name or needle in email:
            results.append(item)
    return results


def sort_by_score(archive: Sequence[CompletedSession]) -> List[CompletedSession]:
    """Highest score first; ties keep archive order."""
    return sorted(archive, key=lambda item: item.score, reverse=True)


def sort_by_name(archive: Sequence[CompletedSession]) -> List[CompletedSession]:
    return sorted(archive, key=lambda item: (item.candidate.name or "").casefold())


def find_session(archive: Sequence[CompletedSession], identity: str) -> Optional[CompletedSession]:
    for item in archive:
        if item.matches(identity):
            return item
    return None


def delete_session(archive: Sequence[CompletedSession], identity: str) -> List[CompletedSession]:
    """
    Remove the interview with the given identity.
    The caller must persist the returned archive.
    """
    return [item for item in archive if not item.matches(identity)]


SORTERS = {
    "score": sort_by_score,
    "name": sort_by_name,
}
