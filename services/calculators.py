"""
Aggregate calculators over a collection of bills.

Every function here is pure and total: an empty collection yields the zeroed
defaults of its result model rather than an error. Monetary values are rounded
to two decimals on the way out.
"""
import math
from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from models.bill import Bill, MonthKey, SpendType, month_label
from models.insights import (
    AttachmentCoverage,
    AverageAndMedian,
    BillStats,
    ChartSeries,
    CityMix,
    LineChart,
    LineDataset,
    PeriodTotals,
    SpendShare,
    Streaks,
    SummaryStats,
    TotalSpent,
    Volatility,
    WeekendEffect,
)

WEEKDAY_LABELS = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
LUNCH = 'Lunch (10-15)'
DINNER = 'Dinner (18-22)'
LATE = 'Late (22-03)'
OTHER = 'Other'
UNKNOWN_CITY = 'Unknown'
OUTLIER_Z_SCORE = 2


# --- Helpers ---

def _round2(value: float) -> float:
    return round(value, 2)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def median(values: Iterable[float]) -> float:
    """Middle value, or the mean of the two middle values for an even count. 0 when empty."""
    ordered = sorted(values)
    if not ordered:
        return 0.0
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def day_of_week(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (day.weekday() + 1) % 7


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def by_spend_type(bills: Iterable[Bill], spend_type: SpendType) -> List[Bill]:
    return [bill for bill in bills if bill.spend_type == spend_type]


def dated(bills: Iterable[Bill]) -> List[Bill]:
    return [bill for bill in bills if bill.date is not None]


def monthly_totals(bills: Iterable[Bill]) -> Dict[MonthKey, float]:
    """Total spend per (year, month), in chronological order."""
    totals: Dict[MonthKey, float] = defaultdict(float)
    for bill in bills:
        if bill.month is None:
            continue
        totals[bill.month] += bill.amount
    return {month: totals[month] for month in sorted(totals)}


def daily_totals(bills: Iterable[Bill]) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for bill in dated(bills):
        totals[bill.date] += bill.amount
    return dict(totals)


# --- Calculators ---

def total_spent(bills: Iterable[Bill], today: Optional[date] = None) -> TotalSpent:
    """Rolling 30 days, month-to-date and year-to-date totals split by spend type."""
    today = today or date.today()
    thirty_days_ago = today - timedelta(days=30)
    start_of_month = today.replace(day=1)
    start_of_year = today.replace(month=1, day=1)

    totals = {SpendType.LOCAL: PeriodTotals(), SpendType.TRAVEL: PeriodTotals()}
    for bill in dated(bills):
        if bill.spend_type is None:
            continue
        bucket = totals[bill.spend_type]
        if bill.date >= thirty_days_ago:
            bucket.rolling30d += bill.amount
        if bill.date >= start_of_month:
            bucket.mtd += bill.amount
        if bill.date >= start_of_year:
            bucket.ytd += bill.amount

    for bucket in totals.values():
        bucket.mtd = _round2(bucket.mtd)
        bucket.ytd = _round2(bucket.ytd)
        bucket.rolling30d = _round2(bucket.rolling30d)
    return TotalSpent(local=totals[SpendType.LOCAL], travel=totals[SpendType.TRAVEL])


def bill_stats(bills: Sequence[Bill]) -> BillStats:
    costs = [bill.amount for bill in bills]
    if not costs:
        return BillStats()
    return BillStats(avg=_round2(_mean(costs)), median=_round2(median(costs)))


def average_and_median(bills: Sequence[Bill]) -> AverageAndMedian:
    return AverageAndMedian(
        local=bill_stats(by_spend_type(bills, SpendType.LOCAL)),
        travel=bill_stats(by_spend_type(bills, SpendType.TRAVEL)),
    )


def weekday_profile(bills: Iterable[Bill]) -> ChartSeries:
    """Average bill per day of week, Sunday first."""
    day_totals = [0.0] * 7
    day_counts = [0] * 7
    for bill in dated(bills):
        index = day_of_week(bill.date)
        day_totals[index] += bill.amount
        day_counts[index] += 1

    averages = [
        _round2(total / count) if count else 0.0
        for total, count in zip(day_totals, day_counts)
    ]
    return ChartSeries(labels=list(WEEKDAY_LABELS), data=averages)


def meal_slot(hour: int) -> str:
    if 10 <= hour < 15:
        return LUNCH
    if 18 <= hour < 22:
        return DINNER
    if hour >= 22 or hour < 3:
        return LATE
    return OTHER


def time_of_day_mix(bills: Iterable[Bill]) -> ChartSeries:
    """Spend per meal slot. Bills without a creation timestamp are left out."""
    mix = {LUNCH: 0.0, DINNER: 0.0, LATE: 0.0, OTHER: 0.0}
    for bill in bills:
        if bill.created_at is None:
            continue
        mix[meal_slot(bill.created_at.hour)] += bill.amount
    return ChartSeries(labels=list(mix), data=[_round2(value) for value in mix.values()])


def seasonality(bills: Iterable[Bill]) -> LineChart:
    """Monthly totals with a trailing 3-month moving average (first two points are None)."""
    totals = monthly_totals(bills)
    monthly = list(totals.values())

    moving_average: List[Optional[float]] = [None] * min(2, len(monthly))
    for i in range(2, len(monthly)):
        moving_average.append(_round2((monthly[i - 2] + monthly[i - 1] + monthly[i]) / 3))

    return LineChart(
        labels=[month_label(month) for month in totals],
        datasets=[
            LineDataset(label='Total Spend', data=[_round2(value) for value in monthly]),
            LineDataset(label='3-Month Avg', data=moving_average),
        ],
    )


def spend_volatility(bills: Iterable[Bill]) -> Volatility:
    """Population standard deviation of daily totals and the count of days with z-score > 2."""
    spends = list(daily_totals(bills).values())
    if len(spends) < 2:
        return Volatility()

    mean = _mean(spends)
    variance = sum((spend - mean) ** 2 for spend in spends) / len(spends)
    std_dev = math.sqrt(variance)
    if std_dev == 0:
        return Volatility()

    outliers = sum(1 for spend in spends if (spend - mean) / std_dev > OUTLIER_Z_SCORE)
    return Volatility(std_dev=_round2(std_dev), outlier_days=outliers)


def local_vs_travel_share(bills: Sequence[Bill]) -> SpendShare:
    local = by_spend_type(bills, SpendType.LOCAL)
    travel = by_spend_type(bills, SpendType.TRAVEL)
    local_value = sum(bill.amount for bill in local)
    travel_value = sum(bill.amount for bill in travel)

    avg_local = local_value / len(local) if local else 0.0
    avg_travel = travel_value / len(travel) if travel else 0.0
    premium = _round2(avg_travel / avg_local) if avg_local > 0 else None

    return SpendShare(
        count_data=[len(local), len(travel)],
        value_data=[_round2(local_value), _round2(travel_value)],
        travel_premium=premium,
    )


def family_involvement(bills: Iterable[Bill]) -> Dict[int, float]:
    """Average cost per person for each party size above one."""
    costs: Dict[int, float] = defaultdict(float)
    counts: Dict[int, int] = defaultdict(int)
    for bill in bills:
        size = bill.party_size
        if size <= 1:
            continue
        costs[size] += bill.amount / size
        counts[size] += 1
    return {size: _round2(costs[size] / counts[size]) for size in sorted(costs)}


def streaks(bills: Iterable[Bill]) -> Streaks:
    """
    Longest run of consecutive calendar days with a bill, and the longest
    number of days without one between two bill days.
    """
    days = sorted({bill.date for bill in dated(bills)})
    if len(days) < 2:
        return Streaks(longest_streak=len(days), longest_gap=0)

    longest_streak = current = 1
    longest_gap = 0
    for previous, day in zip(days, days[1:]):
        diff = (day - previous).days
        if diff == 1:
            current += 1
        else:
            longest_streak = max(longest_streak, current)
            current = 1
            longest_gap = max(longest_gap, diff - 1)
    longest_streak = max(longest_streak, current)
    return Streaks(longest_streak=longest_streak, longest_gap=longest_gap)


def weekend_effect(bills: Iterable[Bill]) -> WeekendEffect:
    weekend = []
    weekday = []
    for bill in dated(bills):
        (weekend if is_weekend(bill.date) else weekday).append(bill.amount)

    avg_weekend = _mean(weekend)
    avg_weekday = _mean(weekday)
    delta = (avg_weekend - avg_weekday) / avg_weekday * 100 if avg_weekday > 0 else 0.0
    return WeekendEffect(
        avg_weekend=_round2(avg_weekend),
        avg_weekday=_round2(avg_weekday),
        delta_percent=_round2(delta),
    )


def attachment_coverage(bills: Sequence[Bill]) -> AttachmentCoverage:
    with_attachment = [bill.amount for bill in bills if bill.has_attachment]
    without_attachment = [bill.amount for bill in bills if not bill.has_attachment]
    coverage = len(with_attachment) / len(bills) * 100 if bills else 0.0
    return AttachmentCoverage(
        coverage_percent=_round2(coverage),
        avg_with=_round2(_mean(with_attachment)),
        avg_without=_round2(_mean(without_attachment)),
    )


def city_mix(bills: Iterable[Bill], home_city: str = 'Tallinn') -> CityMix:
    """Top five cities by spend (ties keep first-seen order) and the home city's share."""
    city_totals: Dict[str, float] = {}
    total = 0.0
    for bill in bills:
        city = bill.city or UNKNOWN_CITY
        city_totals[city] = city_totals.get(city, 0.0) + bill.amount
        total += bill.amount

    ranked = sorted(city_totals.items(), key=lambda item: item[1], reverse=True)
    share = city_totals.get(home_city, 0.0) / total * 100 if total > 0 else 0.0
    return CityMix(
        top5=[(city, _round2(value)) for city, value in ranked[:5]],
        home_city=home_city,
        home_share=_round2(share),
    )


def summary_stats(bills: Sequence[Bill]) -> SummaryStats:
    total = sum(bill.amount for bill in bills)
    return SummaryStats(
        total_spent=_round2(total),
        bills_tracked=len(bills),
        average_bill=_round2(total / len(bills)) if bills else 0.0,
    )


def top_month(bills: Iterable[Bill]) -> str:
    """Label of the month with the highest total spend, 'N/A' when there is none."""
    best_label, best_spend = 'N/A', 0.0
    for month, spend in monthly_totals(bills).items():
        if spend > best_spend:
            best_label, best_spend = month_label(month), spend
    return best_label


def countries_visited(bills: Iterable[Bill]) -> int:
    return len({bill.country for bill in bills if bill.country})
