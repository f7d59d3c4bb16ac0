"""Search, sort and pagination for the restaurant activity list."""
import math
from dataclasses import dataclass, replace
from datetime import date
from typing import List, Literal, Sequence

from models.bill import Bill
from models.insights import ListingItem, ListingPage
from services.dashboard_service import map_markers

SortKey = Literal['date', 'spend']
DEFAULT_PAGE_SIZE = 12


@dataclass(frozen=True)
class ListingState:
    """Page-local view state: search query, sort order and current page."""
    query: str = ""
    sort: SortKey = 'date'
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


def update_listing(state: ListingState, **changes) -> ListingState:
    """Returns a new state. Changing the query or sort order resets the page to 1."""
    new_state = replace(state, **changes)
    if (new_state.query, new_state.sort) != (state.query, state.sort) and 'page' not in changes:
        new_state = replace(new_state, page=1)
    return new_state


def _matches(bill: Bill, term: str) -> bool:
    haystack = (bill.dish, bill.restaurant, bill.city, bill.country)
    return any(term in (value or '').lower() for value in haystack)


def _to_item(bill: Bill) -> ListingItem:
    return ListingItem(
        id=bill.id,
        dish=bill.dish or 'N/A',
        restaurant=bill.restaurant or 'N/A',
        city=bill.city or 'N/A',
        country=bill.country or 'N/A',
        spend=round(bill.amount, 2),
        date=bill.date.isoformat() if bill.date else None,
        emoji=bill.emoji,
        photo_url=bill.photo_url,
        coordinates=bill.coordinates,
    )


def apply_listing(bills: Sequence[Bill], state: ListingState) -> ListingPage:
    """Filters, sorts and slices `bills` according to `state`."""
    term = state.query.strip().lower()
    selected: List[Bill] = [bill for bill in bills if _matches(bill, term)] if term else list(bills)

    if state.sort == 'spend':
        selected.sort(key=lambda bill: bill.amount, reverse=True)
    else:
        selected.sort(key=lambda bill: bill.date or date.min, reverse=True)

    page_size = max(1, state.page_size)
    pages = max(1, math.ceil(len(selected) / page_size))
    page = min(max(1, state.page), pages)
    start = (page - 1) * page_size

    return ListingPage(
        items=[_to_item(bill) for bill in selected[start:start + page_size]],
        total=len(selected),
        page=page,
        pages=pages,
        page_size=page_size,
        query=state.query,
        sort=state.sort,
        map=map_markers(selected),
    )
