"""
In-memory pagination over an already ordered list.
"""
from typing import Sequence, TypeVar

from geofeed.models.schemas import Page, PageRequest

T = TypeVar("T")


def paginate(items: Sequence[T], page_index: int, page_size: int) -> Page[T]:
    """
    Slice one page out of an ordered list.

    Out-of-range pages yield empty content; total_elements always reports
    the full list length.
    """
    start = page_index * page_size
    content = [] if start >= len(items) else list(items[start:start + page_size])

    return Page(
        content=content,
        total_elements=len(items),
        page_index=page_index,
        page_size=page_size,
    )


def paginate_request(items: Sequence[T], pageable: PageRequest) -> Page[T]:
    return paginate(items, pageable.page, pageable.size)


def empty_page(pageable: PageRequest) -> Page:
    return Page(content=[], total_elements=0, page_index=pageable.page, page_size=pageable.size)
