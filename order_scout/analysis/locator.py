# order_scout/analysis/locator.py
"""
Locating the online-ordering page inside a revision's content tree.

Three strategies run in a fixed order, each only when the previous one
produced nothing:

A. targeted traversal over pages whose slug mentions ordering;
B. every page whose slug contains ``order`` and that has its own document;
C. every node with its own document, whatever its slug.

Traversal is lazy (generators from :mod:`order_scout.analysis.document`) and
validation is a separate stage consuming it, so the first validated page stops
the walk.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, List, Optional

from order_scout.analysis.document import NodeKind, NodeRef, PageNode, iter_nodes, json_file_name_of
from order_scout.client.models import Finding
from order_scout.exceptions import ScoutError
from order_scout.logger import get_logger

if TYPE_CHECKING:
    from order_scout.client.api import BackofficeClient

logger = get_logger("locator")

TARGET_SLUG = "online-ordering"
GENERIC_TERM = "order"
EXCLUDED_TERMS = ("popup", "cart", "account", "checkout")

Validator = Callable[[str], Awaitable[bool]]


# --------------------------------------------------------------------------- #
# Traversal stage                                                             #
# --------------------------------------------------------------------------- #


def classify_slug(slug: str) -> Optional[str]:
    """Search type of a page slug, or ``None`` if the page is no candidate."""
    if slug == TARGET_SLUG:
        return "exact-online-ordering"
    if TARGET_SLUG in slug:
        return "contains-online-ordering"
    if GENERIC_TERM in slug:
        return "contains-order"
    return None


def is_excluded(value: Any) -> bool:
    """Pages such as popups, cart or checkout held under a mapping key are skipped."""
    page = PageNode.from_value(value)
    return page is not None and any(term in page.page_uri_seo for term in EXCLUDED_TERMS)


@dataclass(slots=True, frozen=True)
class Candidate:
    ref: NodeRef
    page: PageNode
    search_type: str


def iter_candidates(document: Any) -> Iterator[Candidate]:
    """Strategy A candidates, in traversal order, excluded subtrees pruned."""
    for ref in iter_nodes(document, prune=is_excluded):
        page = PageNode.from_value(ref.value)
        if page is None:
            continue
        search_type = classify_slug(page.page_uri_seo)
        if search_type:
            yield Candidate(ref, page, search_type)


def collect_order_pages(document: Any) -> List[NodeRef]:
    """Strategy B: every ``order`` page with a ``jsonFileName``; nothing pruned."""
    pages = []
    for ref in iter_nodes(document):
        page = PageNode.from_value(ref.value)
        if page is not None and page.json_file_name and GENERIC_TERM in page.page_uri_seo:
            pages.append(ref)
    if pages:
        logger.debug(
            'Found %d pages containing "order": %s',
            len(pages),
            ", ".join(ref.value["pageUriSEO"] for ref in pages),
        )
    return pages


def iter_page_documents(document: Any) -> Iterator[NodeRef]:
    """Strategy C: any node pointing at its own document, excluded subtrees pruned."""
    for ref in iter_nodes(document, prune=is_excluded):
        if json_file_name_of(ref.value):
            yield ref


# --------------------------------------------------------------------------- #
# Validation stage                                                            #
# --------------------------------------------------------------------------- #


def contains_app(document: Any, app_id: str) -> bool:
    """True if any mapping in ``document`` has ``appDefinitionId == app_id``."""
    return any(
        ref.kind is NodeKind.OBJECT and ref.value.get("appDefinitionId") == app_id
        for ref in iter_nodes(document)
    )


class PageValidator:
    """Fetches a page document and checks it hosts the ordering application.

    Outcomes of completed checks are memoised per ``jsonFileName``; fetch
    errors are not, and count as "not validated".
    """

    def __init__(self, client: BackofficeClient, app_id: str) -> None:
        self.client = client
        self.app_id = app_id
        self._checked: Dict[str, bool] = {}

    async def __call__(self, json_file_name: str) -> bool:
        if json_file_name in self._checked:
            return self._checked[json_file_name]
        try:
            document = await self.client.fetch_page(json_file_name)
        except ScoutError as exc:
            logger.warning("Error validating page %s: %s", json_file_name, exc)
            return False
        result = contains_app(document, self.app_id)
        self._checked[json_file_name] = result
        return result


async def _validate(validator: Validator, json_file_name: str, slug: Optional[str]) -> bool:
    logger.debug("Checking page %s (%s)", slug or "unknown", json_file_name)
    try:
        ok = await validator(json_file_name)
    except Exception as exc:  # a broken page must not end the search
        logger.warning("Validation of %s failed: %s", json_file_name, exc)
        return False
    if ok:
        logger.debug("Restaurant ordering app found in page: %s", slug or "unknown")
    else:
        logger.debug("No restaurant ordering app in page: %s", slug or "unknown")
    return ok


def _finding(ref: NodeRef, search_type: str) -> Finding:
    return Finding(
        found=True,
        search_type=search_type,
        node=ref.value,
        path=ref.path,
        hidden=ref.value.get("hidden") is True,
    )


async def _targeted(document: Any, validator: Validator) -> Optional[Finding]:
    for candidate in iter_candidates(document):
        name = candidate.page.json_file_name
        slug = candidate.page.page_uri_seo
        if not name:
            logger.debug("Found page without jsonFileName, not validated: %s", slug)
            return _finding(candidate.ref, f"{candidate.search_type}-no-validation")
        logger.debug("Found %s page %s, validating", candidate.search_type, slug)
        if await _validate(validator, name, slug):
            return _finding(candidate.ref, f"{candidate.search_type}-validated")
    return None


async def _order_pages(document: Any, validator: Validator) -> Optional[Finding]:
    for ref in collect_order_pages(document):
        if await _validate(validator, ref.value["jsonFileName"], ref.value["pageUriSEO"]):
            return _finding(ref, "order-with-app")
    return None


async def _any_page(document: Any, validator: Validator) -> Optional[Finding]:
    for ref in iter_page_documents(document):
        slug = ref.value.get("pageUriSEO")
        if await _validate(validator, json_file_name_of(ref.value), slug if isinstance(slug, str) else None):
            return _finding(ref, "restaurant-app-fallback")
    return None


async def locate(document: Any, validator: Validator) -> Finding:
    """Run strategies A, B and C in order and return the first finding."""
    finding = await _targeted(document, validator)
    if finding is None:
        logger.debug('No "online-ordering" page validated, collecting "order" pages')
        finding = await _order_pages(document, validator)
    if finding is None:
        logger.debug("Searching every page for the restaurant app")
        finding = await _any_page(document, validator)
    if finding is None:
        logger.debug("No page with the restaurant app was found")
        return Finding.not_found()

    logger.debug(
        "Page found: path=%s pageUriSEO=%s hidden=%s type=%s",
        finding.path_str,
        finding.page_uri_seo,
        finding.hidden,
        finding.search_type,
    )
    return finding


__all__ = [
    "Candidate",
    "PageValidator",
    "Validator",
    "classify_slug",
    "collect_order_pages",
    "contains_app",
    "is_excluded",
    "iter_candidates",
    "iter_page_documents",
    "locate",
]
