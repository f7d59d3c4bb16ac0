"""Tests for the dashboard view-model builders."""
from datetime import date

import pytest

from models.bill import SpendType
from services import dashboard_service

from helpers import D, days_from, make_bill

SATURDAY = date(2024, 3, 2)


def sample_bills():
    return [
        make_bill(20, D, city='Tallinn', country='Estonia', coordinates=(59.43, 24.75), dish='Soup', emoji='🍲'),
        make_bill(40, SATURDAY, city='Tallinn', country='Estonia', party=['a', 'b']),
        make_bill(90, date(2024, 2, 12), SpendType.TRAVEL, city='Riga', country='Latvia', coordinates=(56.95, 24.1)),
        make_bill(30, date(2024, 2, 13), SpendType.TRAVEL, city='Helsinki', country='Finland'),
    ]


class TestMarkers:
    """Tests for map markers."""

    @pytest.mark.parametrize("amount,color", [
        (80, dashboard_service.MARKER_HIGH),
        (75.01, dashboard_service.MARKER_HIGH),
        (75, dashboard_service.MARKER_MEDIUM),
        (36, dashboard_service.MARKER_MEDIUM),
        (35, dashboard_service.MARKER_LOW),
        (0, dashboard_service.MARKER_LOW),
    ])
    def test_marker_color(self, amount, color):
        assert dashboard_service.marker_color(amount) == color

    def test_markers_and_bounds(self):
        layer = dashboard_service.map_markers(sample_bills())
        assert len(layer.markers) == 2
        assert layer.markers[0].title == '🍲 Soup'
        assert layer.markers[0].restaurant == 'Unknown Restaurant'
        assert layer.markers[1].color == dashboard_service.MARKER_HIGH
        assert layer.bounds.south_west == (56.95, 24.1)
        assert layer.bounds.north_east == (59.43, 24.75)

    def test_no_coordinates_no_bounds(self):
        layer = dashboard_service.map_markers([make_bill()])
        assert layer.markers == []
        assert layer.bounds is None


class TestSpendingView:
    """Tests for the spending page view."""

    def test_cards_in_order(self):
        view = dashboard_service.build_spending_view(sample_bills(), today=date(2024, 3, 10))
        assert [card.title for card in view.insights] == [
            'Total Spent', 'Average Bill', 'Weekday Profile', 'Time-of-day Mix', 'Seasonality & Trend',
            'Spend Volatility', 'Spend Share (€)', 'Travel Premium', 'Avg. Cost per Person', 'Dining Streaks',
            'Weekend Effect', 'Photo Coverage', 'Top Travel City',
        ]
        assert len(view.achievements) == 10

    def test_card_values(self):
        cards = {
            card.title: card
            for card in dashboard_service.build_spending_view(sample_bills(), today=date(2024, 3, 10)).insights
        }
        assert cards['Total Spent'].value == "Local: 60.00€ (YTD)\nTravel: 120.00€ (YTD)"
        assert cards['Travel Premium'].value == '2.00x'
        assert cards['Avg. Cost per Person'].value == '2p: 20.00€'
        assert cards['Top Travel City'].value == 'Riga'
        assert cards['Seasonality & Trend'].wide
        assert cards['Seasonality & Trend'].data.labels == ['24-02', '24-03']
        assert cards['Spend Share (€)'].data.data == [60.0, 120.0]

    def test_empty_history(self):
        cards = {card.title: card for card in dashboard_service.build_spending_view([]).insights}
        assert cards['Travel Premium'].value == 'N/A'
        assert cards['Avg. Cost per Person'].value == 'N/A'
        assert cards['Top Travel City'].value == 'N/A'

    def test_top_travel_city_excludes_home(self):
        bills = [make_bill(500, city='Riga'), make_bill(10, city='Paris')]
        cards = {c.title: c for c in dashboard_service.build_spending_view(bills, home_city='Riga').insights}
        assert cards['Top Travel City'].value == 'Paris'
        assert 'excluding Riga' in cards['Top Travel City'].description


class TestOverview:
    """Tests for the landing page overview."""

    def test_summary_numbers(self):
        overview = dashboard_service.build_overview(sample_bills())
        assert overview.stats.total_spent == 180.0
        assert overview.stats.bills_tracked == 4
        assert overview.top_month == '24-02'
        assert overview.countries_visited == 3
        assert overview.top_city == 'Riga'
        assert overview.avg_weekend_bill == 40.0
        assert len(overview.map.markers) == 2

    def test_only_unlocked_achievements_from_subset(self):
        overview = dashboard_service.build_overview(sample_bills())
        assert [a.key for a in overview.achievements] == ['first_bite', 'globe_taster']

    def test_at_most_three_achievements(self):
        saturdays = days_from(SATURDAY, range(0, 42, 7))
        bills = [make_bill(60, day, country=country, party=['a', 'b', 'c', 'd'])
                 for day, country in zip(saturdays, ['EE', 'LV', 'FI', 'EE', 'LV', 'FI'])]
        overview = dashboard_service.build_overview(bills)
        assert [a.key for a in overview.achievements] == ['first_bite', 'globe_taster', 'weekend_warrior']
        assert all(a.unlocked for a in overview.achievements)

    def test_empty_history(self):
        overview = dashboard_service.build_overview([])
        assert overview.top_month == 'N/A'
        assert overview.top_city == 'N/A'
        assert overview.achievements == []
        assert overview.map.bounds is None
