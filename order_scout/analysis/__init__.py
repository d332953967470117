"""order_scout.analysis: revision selection and page search over content documents."""

from order_scout.analysis.locator import PageValidator, locate
from order_scout.analysis.revisions import select_from_response, select_revision

__all__ = ["PageValidator", "locate", "select_from_response", "select_revision"]
