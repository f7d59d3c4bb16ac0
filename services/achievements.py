"""Achievement predicates over the full bill history."""
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Dict, List, Sequence, Tuple

from models.bill import Bill, MonthKey, SpendType
from models.insights import AchievementResult
from services.calculators import by_spend_type, dated, is_weekend, monthly_totals, streaks

logger = logging.getLogger(__name__)

LOYALIST_BILLS = 20
LOYALIST_WINDOW = timedelta(days=90)
GLOBE_TASTER_COUNTRIES = 3
WEEKEND_WARRIOR_WEEKS = 6
BUDGET_NINJA_MONTHS = 8
BUDGET_NINJA_RATIO = 0.85
CONSISTENCY_DAYS = 10
TRAVEL_PREMIUM_RATIO = 1.10
FAMILY_FEAST_PARTY = 4
FAMILY_FEAST_PER_PERSON = 15
BIG_MONTH_TOTAL = 500
PHOTO_MONTH_RATIO = 0.6


def check_first_bite(bills: Sequence[Bill]) -> bool:
    return len(bills) > 0


def check_home_loyalist(bills: Sequence[Bill], home_city: str = 'Tallinn') -> bool:
    """At least 20 local bills in the home city within some 90-day window."""
    local = sorted(
        (bill for bill in dated(bills) if bill.spend_type == SpendType.LOCAL and bill.city == home_city),
        key=lambda bill: bill.date,
    )
    for i in range(len(local) - LOYALIST_BILLS + 1):
        if local[i + LOYALIST_BILLS - 1].date - local[i].date <= LOYALIST_WINDOW:
            return True
    return False


def check_globe_taster(bills: Sequence[Bill]) -> bool:
    return len({bill.country for bill in bills if bill.country}) >= GLOBE_TASTER_COUNTRIES


def _weeks_are_consecutive(previous: Tuple[int, int], current: Tuple[int, int]) -> bool:
    prev_year, prev_week = previous
    year, week = current
    if year == prev_year and week == prev_week + 1:
        return True
    # Year change: last ISO week (52 or 53) followed by week 1
    return year == prev_year + 1 and week == 1 and prev_week >= 52


def check_weekend_warrior(bills: Sequence[Bill]) -> bool:
    """Weekend bills in 6 consecutive ISO weeks."""
    weeks = sorted({
        tuple(bill.date.isocalendar())[:2]
        for bill in dated(bills)
        if is_weekend(bill.date)
    })
    if len(weeks) < WEEKEND_WARRIOR_WEEKS:
        return False

    run = 1
    for previous, current in zip(weeks, weeks[1:]):
        run = run + 1 if _weeks_are_consecutive(previous, current) else 1
        if run >= WEEKEND_WARRIOR_WEEKS:
            return True
    return False


def check_budget_ninja(bills: Sequence[Bill]) -> bool:
    """
    Two adjacent months whose local average bill is at most 85% of the local
    average over the six months right before them.
    """
    totals: Dict[MonthKey, float] = defaultdict(float)
    counts: Dict[MonthKey, int] = defaultdict(int)
    for bill in by_spend_type(bills, SpendType.LOCAL):
        if bill.month is None:
            continue
        totals[bill.month] += bill.amount
        counts[bill.month] += 1

    months = sorted(totals)
    if len(months) < BUDGET_NINJA_MONTHS:
        return False

    for i in range(7, len(months)):
        window = months[i - 7:i - 1]
        window_count = sum(counts[month] for month in window)
        window_avg = sum(totals[month] for month in window) / window_count if window_count else 0.0
        target = window_avg * BUDGET_NINJA_RATIO

        first, second = months[i - 1], months[i]
        first_avg = totals[first] / counts[first]
        second_avg = totals[second] / counts[second]
        if first_avg <= target and second_avg <= target:
            return True
    return False


def check_consistency_streak(bills: Sequence[Bill]) -> bool:
    return streaks(bills).longest_streak >= CONSISTENCY_DAYS


def check_travel_premium_crusher(bills: Sequence[Bill]) -> bool:
    # Simplified: compares overall averages instead of grouping bills into trips.
    # Only bills explicitly labelled Travel count as travel.
    local = by_spend_type(bills, SpendType.LOCAL)
    travel = [bill for bill in by_spend_type(bills, SpendType.TRAVEL) if not bill.spend_type_inferred]
    if not local or not travel:
        return False

    avg_local = sum(bill.amount for bill in local) / len(local)
    avg_travel = sum(bill.amount for bill in travel) / len(travel)
    return avg_travel <= avg_local * TRAVEL_PREMIUM_RATIO


def check_family_feast(bills: Sequence[Bill]) -> bool:
    return any(
        bill.party_size >= FAMILY_FEAST_PARTY
        and bill.amount / bill.party_size <= FAMILY_FEAST_PER_PERSON
        for bill in bills
    )


def check_500_month(bills: Sequence[Bill]) -> bool:
    return any(total >= BIG_MONTH_TOTAL for total in monthly_totals(bills).values())


def check_photo_historian(bills: Sequence[Bill]) -> bool:
    totals: Dict[MonthKey, int] = defaultdict(int)
    with_photo: Dict[MonthKey, int] = defaultdict(int)
    for bill in bills:
        if bill.month is None:
            continue
        totals[bill.month] += 1
        if bill.has_attachment:
            with_photo[bill.month] += 1
    return any(with_photo[month] / count >= PHOTO_MONTH_RATIO for month, count in totals.items())


# --- Registry ---

@dataclass(frozen=True)
class AchievementDefinition:
    key: str
    name: str
    description: str
    icon: str
    check: Callable[[Sequence[Bill], str], bool]


def _ignores_home(check: Callable[[Sequence[Bill]], bool]) -> Callable[[Sequence[Bill], str], bool]:
    return lambda bills, home_city: check(bills)


ACHIEVEMENTS: List[AchievementDefinition] = [
    AchievementDefinition('first_bite', 'First Bite', 'First restaurant bill', 'restaurant',
                          _ignores_home(check_first_bite)),
    AchievementDefinition('home_loyalist', '{home} Loyalist', '≥20 local bills in 90 days', 'location_city',
                          check_home_loyalist),
    AchievementDefinition('globe_taster', 'Globe Taster', 'Bills in ≥3 countries', 'public',
                          _ignores_home(check_globe_taster)),
    AchievementDefinition('weekend_warrior', 'Weekend Warrior', 'Bills on 6 consecutive weekends', 'sports_esports',
                          _ignores_home(check_weekend_warrior)),
    AchievementDefinition('budget_ninja', 'Budget Ninja', '2 months avg. bill ≤ 6-mo avg -15%', 'savings',
                          _ignores_home(check_budget_ninja)),
    AchievementDefinition('consistency_streak', 'Consistency Streak', '10+ consecutive days with a bill',
                          'event_repeat', _ignores_home(check_consistency_streak)),
    AchievementDefinition('travel_premium_crusher', 'Travel Premium Crusher', 'A trip where avg travel bill was cheap',
                          'flight_takeoff', _ignores_home(check_travel_premium_crusher)),
    AchievementDefinition('family_feast', 'Family Feast', 'A bill for ≥4 people at ≤15€/person', 'groups',
                          _ignores_home(check_family_feast)),
    AchievementDefinition('month_500', '€500 Month', 'Spend ≥€500 in a single month', 'euro_symbol',
                          _ignores_home(check_500_month)),
    AchievementDefinition('photo_historian', 'Photo Historian', '≥60% of bills have photos in a month',
                          'photo_camera', _ignores_home(check_photo_historian)),
]


def evaluate_achievements(bills: Sequence[Bill], home_city: str = 'Tallinn', keys: Sequence[str] = ()) -> List[AchievementResult]:
    """Evaluates the registered achievements in order, optionally restricted to `keys`."""
    results = []
    for definition in ACHIEVEMENTS:
        if keys and definition.key not in keys:
            continue
        unlocked = definition.check(bills, home_city)
        results.append(AchievementResult(
            key=definition.key,
            name=definition.name.format(home=home_city),
            description=definition.description,
            icon=definition.icon,
            unlocked=unlocked,
        ))
    logger.debug(f"Evaluated {len(results)} achievements, {sum(r.unlocked for r in results)} unlocked.")
    return results
