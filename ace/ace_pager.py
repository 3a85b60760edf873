"""
Fixed-size, 1-indexed pagination over an entry collection.
"""
import itertools
from typing import Collection, List, TypeVar

from ace.ace_datatypes import NoEntriesError

ENTRIES_PER_PAGE = 5

T = TypeVar("T")


def paginate(entries: Collection[T], page: int, page_size: int = ENTRIES_PER_PAGE) -> List[T]:
    """Return the entries of `page` in the collection's iteration order.

    Raises NoEntriesError when the page holds nothing, which includes any
    page below 1.
    """
    start = (page - 1) * page_size
    end = min(start + page_size, len(entries))
    if end <= start:
        raise NoEntriesError(page)
    return list(itertools.islice(entries, start, end))
