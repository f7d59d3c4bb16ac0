"""Tests for restaurant list search, sort and pagination."""
from datetime import date

from services.listing_service import ListingState, apply_listing, update_listing

from helpers import make_bill


def catalogue():
    return [
        make_bill(12, date(2024, 3, 1), id='r1', dish='Ramen', restaurant='Noodle Bar', city='Tallinn', country='Estonia'),
        make_bill(45, date(2024, 3, 9), id='r2', dish='Steak', restaurant='Grill', city='Riga', country='Latvia'),
        make_bill(30, date(2024, 2, 20), id='r3', dish='Pasta', restaurant='Trattoria', city='Rome', country='Italy'),
        make_bill(8, None, id='r4', dish='Coffee', restaurant='Kohvik', city='Tallinn', country='Estonia'),
    ]


class TestUpdateListing:
    """Tests for state transitions."""

    def test_query_change_resets_page(self):
        state = update_listing(ListingState(page=3), query='ramen')
        assert (state.query, state.page) == ('ramen', 1)

    def test_sort_change_resets_page(self):
        assert update_listing(ListingState(page=3), sort='spend').page == 1

    def test_page_change_keeps_query(self):
        state = update_listing(ListingState(query='tallinn'), page=2)
        assert (state.query, state.page) == ('tallinn', 2)

    def test_unchanged_query_keeps_page(self):
        assert update_listing(ListingState(query='x', page=4), query='x').page == 4

    def test_original_state_is_untouched(self):
        state = ListingState(page=2)
        update_listing(state, query='pasta')
        assert state == ListingState(page=2)


class TestApplyListing:
    """Tests for filtering, sorting and slicing."""

    def test_default_sort_is_newest_first_with_undated_last(self):
        result = apply_listing(catalogue(), ListingState())
        assert [item.id for item in result.items] == ['r2', 'r1', 'r3', 'r4']
        assert result.items[0].date == '2024-03-09'
        assert result.items[-1].date is None

    def test_sort_by_spend(self):
        result = apply_listing(catalogue(), ListingState(sort='spend'))
        assert [item.spend for item in result.items] == [45, 30, 12, 8]

    def test_search_is_case_insensitive_across_fields(self):
        assert {i.id for i in apply_listing(catalogue(), ListingState(query='TALLINN')).items} == {'r1', 'r4'}
        assert [i.id for i in apply_listing(catalogue(), ListingState(query='grill')).items] == ['r2']
        assert [i.id for i in apply_listing(catalogue(), ListingState(query=' italy ')).items] == ['r3']

    def test_no_match(self):
        result = apply_listing(catalogue(), ListingState(query='sushi'))
        assert (result.items, result.total, result.pages, result.page) == ([], 0, 1, 1)

    def test_pagination(self):
        bills = [make_bill(i, date(2024, 1, i), id=f"b{i}") for i in range(1, 26)]
        second = apply_listing(bills, ListingState(page=2, page_size=10))
        assert (second.total, second.pages, second.page) == (25, 3, 2)
        assert [item.id for item in second.items] == [f"b{i}" for i in range(15, 5, -1)]
        last = apply_listing(bills, ListingState(page=3, page_size=10))
        assert len(last.items) == 5

    def test_page_past_the_end_is_clamped(self):
        result = apply_listing(catalogue(), ListingState(page=9, page_size=3))
        assert result.page == 2
        assert [item.id for item in result.items] == ['r4']

    def test_missing_display_fields(self):
        item = apply_listing([make_bill(5)], ListingState()).items[0]
        assert (item.dish, item.restaurant, item.city, item.country) == ('N/A', 'N/A', 'N/A', 'N/A')

    def test_map_covers_every_match_not_only_the_page(self):
        latitudes = [59.3, 59.1, 59.5, 59.2, 59.4]
        bills = [make_bill(i, date(2024, 1, i), coordinates=(lat, 24.0)) for i, lat in enumerate(latitudes, 1)]
        result = apply_listing(bills, ListingState(page_size=2))
        assert len(result.items) == 2
        assert len(result.map.markers) == 5
        assert result.map.bounds.south_west == (59.1, 24.0)
        assert result.map.bounds.north_east == (59.5, 24.0)
