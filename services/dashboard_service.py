"""Builds the JSON view models rendered by the dashboard pages."""
import logging
from datetime import date
from typing import List, Optional, Sequence

from models.bill import Bill
from models.insights import (
    ChartSeries,
    InsightCard,
    MapBounds,
    MapLayer,
    MapMarker,
    Overview,
    SpendingView,
)
from services import calculators
from services.achievements import evaluate_achievements

logger = logging.getLogger(__name__)

OVERVIEW_ACHIEVEMENTS = ('first_bite', 'globe_taster', 'weekend_warrior', 'family_feast')
OVERVIEW_ACHIEVEMENT_LIMIT = 3

MARKER_HIGH = '#ef4444'
MARKER_MEDIUM = '#f59e0b'
MARKER_LOW = '#10b981'


def _money(value: float) -> str:
    return f"{value:.2f}€"


def marker_color(amount: float) -> str:
    if amount > 75:
        return MARKER_HIGH
    if amount > 35:
        return MARKER_MEDIUM
    return MARKER_LOW


def map_markers(bills: Sequence[Bill]) -> MapLayer:
    """Markers for every bill with valid coordinates, plus the bounds that fit them all."""
    markers: List[MapMarker] = []
    for bill in bills:
        if bill.coordinates is None:
            continue
        latitude, longitude = bill.coordinates
        markers.append(MapMarker(
            latitude=latitude,
            longitude=longitude,
            color=marker_color(bill.amount),
            title=f"{bill.emoji or '🍽️'} {bill.dish or 'Dish'}",
            restaurant=bill.restaurant or 'Unknown Restaurant',
            amount=round(bill.amount, 2),
            date=bill.date.isoformat() if bill.date else None,
        ))

    bounds: Optional[MapBounds] = None
    if markers:
        bounds = MapBounds(
            south_west=(min(m.latitude for m in markers), min(m.longitude for m in markers)),
            north_east=(max(m.latitude for m in markers), max(m.longitude for m in markers)),
        )
    return MapLayer(markers=markers, bounds=bounds)


def build_spending_view(bills: Sequence[Bill], home_city: str = 'Tallinn', today: Optional[date] = None) -> SpendingView:
    """Insight cards and the full achievement list for the spending page."""
    totals = calculators.total_spent(bills, today=today)
    stats = calculators.average_and_median(bills)
    share = calculators.local_vs_travel_share(bills)
    volatility = calculators.spend_volatility(bills)
    family = calculators.family_involvement(bills)
    streaks = calculators.streaks(bills)
    weekend = calculators.weekend_effect(bills)
    coverage = calculators.attachment_coverage(bills)
    travel_cities = calculators.city_mix([bill for bill in bills if bill.city != home_city], home_city)
    top_travel_city = travel_cities.top5[0][0] if travel_cities.top5 else 'N/A'
    premium = f"{share.travel_premium:.2f}x" if share.travel_premium is not None else 'N/A'

    insights = [
        InsightCard(
            title='Total Spent', icon='paid',
            value=f"Local: {_money(totals.local.ytd)} (YTD)\nTravel: {_money(totals.travel.ytd)} (YTD)",
            description='Total amount spent year-to-date (YTD) for local and travel categories.',
        ),
        InsightCard(
            title='Average Bill', icon='monitoring',
            value=f"Local: {_money(stats.local.avg)}\nTravel: {_money(stats.travel.avg)}",
            description='The average cost of a single restaurant bill, separated by local and travel.',
        ),
        InsightCard(
            title='Weekday Profile', icon='calendar_month', chart='bar',
            data=calculators.weekday_profile(bills),
            description='Average spending for each day of the week.',
        ),
        InsightCard(
            title='Time-of-day Mix', icon='schedule', chart='pie',
            data=calculators.time_of_day_mix(bills),
            description='A breakdown of spending by time of day: Lunch (10-15), Dinner (18-22), '
                        'Late Night (22-03) and everything else.',
        ),
        InsightCard(
            title='Seasonality & Trend', icon='trending_up', chart='line', wide=True,
            data=calculators.seasonality(bills),
            description='Monthly total spend and a 3-month moving average to show trends over time.',
        ),
        InsightCard(
            title='Spend Volatility', icon='warning',
            value=f"Std Dev: {_money(volatility.std_dev)}\nOutlier Days: {volatility.outlier_days}",
            description='Measures how much your daily spending varies. A higher value means more unpredictable '
                        'spending. Outlier days are unusually high spending days.',
        ),
        InsightCard(
            title='Spend Share (€)', icon='public', chart='pie',
            data=ChartSeries(labels=share.labels, data=share.value_data),
            description='The share of total spending between local and travel categories.',
        ),
        InsightCard(
            title='Travel Premium', icon='flight_takeoff', value=premium,
            description='The ratio of your average travel bill to your average local bill. A value of 1.5x means '
                        'you spend 50% more on average when traveling.',
        ),
        InsightCard(
            title='Avg. Cost per Person', icon='groups',
            value='\n'.join(f"{size}p: {_money(avg)}" for size, avg in family.items()) or 'N/A',
            description='The average cost per person when dining with family members.',
        ),
        InsightCard(
            title='Dining Streaks', icon='local_fire_department',
            value=f"Streak: {streaks.longest_streak} days\nGap: {streaks.longest_gap} days",
            description='The longest streak of consecutive days with a restaurant bill, and the longest gap '
                        'without one.',
        ),
        InsightCard(
            title='Weekend Effect', icon='deck', value=f"Δ {weekend.delta_percent:.2f}%",
            description='The percentage difference in average spending between weekends (Sat-Sun) and weekdays '
                        '(Mon-Fri).',
        ),
        InsightCard(
            title='Photo Coverage', icon='attachment', value=f"{coverage.coverage_percent:.2f}%",
            description='The percentage of your bills that have a photo attached.',
        ),
        InsightCard(
            title='Top Travel City', icon='flight', value=top_travel_city,
            description=f'The city where you have spent the most money while traveling (excluding {home_city}).',
        ),
    ]

    achievements = evaluate_achievements(bills, home_city)
    logger.info(f"Built spending view: {len(insights)} insights, "
                f"{sum(a.unlocked for a in achievements)}/{len(achievements)} achievements unlocked.")
    return SpendingView(insights=insights, achievements=achievements)


def build_overview(bills: Sequence[Bill], home_city: str = 'Tallinn') -> Overview:
    """Summary numbers, headline insights, a few unlocked achievements and the map for the index page."""
    city_mix = calculators.city_mix(bills, home_city)
    unlocked = [
        result for result in evaluate_achievements(bills, home_city, keys=OVERVIEW_ACHIEVEMENTS)
        if result.unlocked
    ]
    return Overview(
        stats=calculators.summary_stats(bills),
        top_month=calculators.top_month(bills),
        countries_visited=calculators.countries_visited(bills),
        avg_weekend_bill=calculators.weekend_effect(bills).avg_weekend,
        top_city=city_mix.top5[0][0] if city_mix.top5 else 'N/A',
        achievements=unlocked[:OVERVIEW_ACHIEVEMENT_LIMIT],
        map=map_markers(bills),
    )
