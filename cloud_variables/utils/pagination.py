from typing import Optional, Tuple

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def normalize_pagination(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    """Clamp page to >= 1 and page_size to 1..MAX_PAGE_SIZE (DEFAULT_PAGE_SIZE when omitted)."""
    page = max(page or 1, 1)
    if page_size is None:
        page_size = DEFAULT_PAGE_SIZE
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    return page, page_size


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so a search term matches literally (use with escape="\\")."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
