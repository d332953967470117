# order_scout/analysis/revisions.py
"""Selection of the revision whose content gets analysed."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Sequence

from order_scout.client.api import extract_revisions
from order_scout.client.models import Revision, RevisionSelection
from order_scout.utils import EPOCH


def _recency_key(revision: Revision) -> datetime:
    return revision.modification_timestamp or EPOCH


def _before_cutoff(revision: Revision, cutoff: datetime) -> bool:
    # a revision without a timestamp always passes
    ts = revision.modification_timestamp
    return ts is None or ts < cutoff


def select_revision(revisions: Sequence[Revision], cutoff: datetime) -> RevisionSelection:
    """
    Pick the revision to analyse.

    ``selected`` is the FIRST published revision older than ``cutoff`` in the
    order the API returned them. ``most_recently_published`` is the published
    revision with the latest timestamp (ties: earliest in input order), kept
    for the report's "published date" column; it ignores ``cutoff``.
    """
    published = [r for r in revisions if r.published]
    # sorted() is stable, so equal timestamps keep input order
    by_recency = sorted(published, key=_recency_key, reverse=True)
    filtered = [r for r in published if _before_cutoff(r, cutoff)]

    return RevisionSelection(
        selected=filtered[0] if filtered else None,
        most_recently_published=by_recency[0] if by_recency else None,
        total_count=len(revisions),
        filtered_count=len(filtered),
    )


def parse_revisions(records: Iterable[dict]) -> list[Revision]:
    return [Revision.from_payload(r) for r in records]


def select_from_response(payload: Any, cutoff: datetime) -> RevisionSelection:
    """Shortcut for a raw ``listRevisions`` response."""
    return select_revision(parse_revisions(extract_revisions(payload)), cutoff)


__all__ = ["select_revision", "select_from_response", "parse_revisions"]
