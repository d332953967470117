# order_scout/client/models.py
"""
Data models shared by the OrderScout client, analysis and report layers.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from order_scout.utils import parse_timestamp

PathT = Tuple[Union[str, int], ...]


@dataclass(slots=True, frozen=True)
class Revision:
    """One saved snapshot of a site, as returned by ``listRevisions``."""

    filename: str
    published: bool
    modification_timestamp: Optional[datetime] = None
    site_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> Revision:
        return cls(
            filename=str(data.get("filename") or ""),
            # only a literal ``true`` counts as published
            published=data.get("published") is True,
            modification_timestamp=parse_timestamp(data.get("modificationTimestamp")),
            site_id=data.get("siteId"),
            raw=data,
        )


@dataclass(slots=True, frozen=True)
class RevisionSelection:
    """Outcome of :func:`order_scout.analysis.revisions.select_revision`."""

    selected: Optional[Revision]
    most_recently_published: Optional[Revision]
    total_count: int
    filtered_count: int

    @property
    def selected_filename(self) -> Optional[str]:
        return self.selected.filename if self.selected else None


@dataclass(slots=True, frozen=True)
class Finding:
    """Where (and how) the online-ordering page was located."""

    found: bool
    search_type: str
    node: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)
    path: PathT = ()
    hidden: Optional[bool] = None

    @classmethod
    def not_found(cls) -> Finding:
        return cls(found=False, search_type="not-found")

    @property
    def page_uri_seo(self) -> Optional[str]:
        return self.node.get("pageUriSEO") if self.node else None

    @property
    def json_file_name(self) -> Optional[str]:
        return self.node.get("jsonFileName") if self.node else None

    @property
    def exact_match(self) -> bool:
        return self.search_type.startswith("exact-")

    @property
    def path_str(self) -> str:
        """Render the path the way a JS accessor would: ``pages[2].data``."""
        out = ""
        for part in self.path:
            if isinstance(part, int):
                out += f"[{part}]"
            else:
                out += f".{part}" if out else str(part)
        return out


@dataclass(slots=True)
class BatchResult:
    """Per-identifier outcome of a pipeline run."""

    identifier: str
    success: bool
    selection: Optional[RevisionSelection] = None
    finding: Optional[Finding] = None
    error: Optional[str] = None

    @property
    def selected_filename(self) -> Optional[str]:
        return self.selection.selected_filename if self.selection else None
