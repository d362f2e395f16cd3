import logging
import re
from typing import Any, Dict, Optional

from storefront.application.catalog_service import product_list_view
from storefront.core.exceptions import InputValidationError
from storefront.domain.normalization import normalize_search_text
from storefront.interfaces.IProductRepository import IProductRepository

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 60
DEFAULT_LIMIT = 20
MAX_LIMIT = 50

# any letter or digit, in any script
WORD_CHAR_RE = re.compile(r"[^\W_]")


def validate_search_query(raw: Optional[str]) -> str:
    """Returns the normalized term or raises InputValidationError with a code."""
    if raw is None or not raw.strip():
        raise InputValidationError("Missing or empty query", code="EMPTY_QUERY")

    term = normalize_search_text(raw)
    if len(term) < MIN_QUERY_LENGTH:
        raise InputValidationError(
            f"Query must be at least {MIN_QUERY_LENGTH} characters", code="QUERY_TOO_SHORT"
        )
    if len(term) > MAX_QUERY_LENGTH:
        raise InputValidationError(
            f"Query must be at most {MAX_QUERY_LENGTH} characters", code="QUERY_TOO_LONG"
        )
    if not WORD_CHAR_RE.search(term):
        raise InputValidationError("Query must contain a letter or a digit", code="INVALID_QUERY")
    return term


class SearchService:
    def __init__(self, product_repo: IProductRepository):
        self.product_repo = product_repo

    def search(self, raw_query: Optional[str], page: int = 1, limit: int = DEFAULT_LIMIT) -> Dict[str, Any]:
        term = validate_search_query(raw_query)
        page = max(1, page)
        limit = min(max(1, limit), MAX_LIMIT)

        products = self.product_repo.search(term, (page - 1) * limit, limit)
        logger.info(f"🔎 search '{term}' page={page} -> {len(products)} result(s)")
        return {
            "query": raw_query.strip(),
            "page": page,
            "limit": limit,
            "results": [product_list_view(p) for p in products],
        }
