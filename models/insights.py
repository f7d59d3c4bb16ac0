"""Pydantic models for calculator results and dashboard view models"""
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


# --- Calculator results ---

class PeriodTotals(BaseModel):
    mtd: float = 0.0
    ytd: float = 0.0
    rolling30d: float = 0.0


class TotalSpent(BaseModel):
    local: PeriodTotals = Field(default_factory=PeriodTotals)
    travel: PeriodTotals = Field(default_factory=PeriodTotals)


class BillStats(BaseModel):
    avg: float = 0.0
    median: float = 0.0


class AverageAndMedian(BaseModel):
    local: BillStats = Field(default_factory=BillStats)
    travel: BillStats = Field(default_factory=BillStats)


class ChartSeries(BaseModel):
    """Labels with one numeric value each (bar and pie charts)."""
    labels: List[str]
    data: List[float]


class LineDataset(BaseModel):
    label: str
    data: List[Optional[float]]


class LineChart(BaseModel):
    labels: List[str]
    datasets: List[LineDataset]


class Volatility(BaseModel):
    std_dev: float = 0.0
    outlier_days: int = 0


class SpendShare(BaseModel):
    labels: List[str] = ["Local", "Travel"]
    count_data: List[int]
    value_data: List[float]
    # None when the local average is zero
    travel_premium: Optional[float] = None


class Streaks(BaseModel):
    longest_streak: int = 0
    longest_gap: int = 0


class WeekendEffect(BaseModel):
    avg_weekend: float = 0.0
    avg_weekday: float = 0.0
    delta_percent: float = 0.0


class AttachmentCoverage(BaseModel):
    coverage_percent: float = 0.0
    avg_with: float = 0.0
    avg_without: float = 0.0


class CityMix(BaseModel):
    top5: List[Tuple[str, float]]
    home_city: str
    home_share: float = 0.0


class SummaryStats(BaseModel):
    total_spent: float = 0.0
    bills_tracked: int = 0
    average_bill: float = 0.0


# --- View models ---

class AchievementResult(BaseModel):
    key: str
    name: str
    description: str
    icon: str
    unlocked: bool


class InsightCard(BaseModel):
    title: str
    icon: str
    description: str = ""
    value: Optional[str] = None
    chart: Optional[Literal['bar', 'pie', 'line']] = None
    data: Optional[Union[ChartSeries, LineChart]] = None
    wide: bool = False


class SpendingView(BaseModel):
    insights: List[InsightCard]
    achievements: List[AchievementResult]


class MapMarker(BaseModel):
    latitude: float
    longitude: float
    color: str
    title: str
    restaurant: str
    amount: float
    date: Optional[str] = None


class MapBounds(BaseModel):
    south_west: Tuple[float, float]
    north_east: Tuple[float, float]


class MapLayer(BaseModel):
    markers: List[MapMarker]
    bounds: Optional[MapBounds] = None


class Overview(BaseModel):
    stats: SummaryStats
    top_month: str
    countries_visited: int
    avg_weekend_bill: float
    top_city: str
    achievements: List[AchievementResult]
    map: MapLayer


class ListingItem(BaseModel):
    id: Optional[str] = None
    dish: str
    restaurant: str
    city: str
    country: str
    spend: float
    date: Optional[str] = None
    emoji: Optional[str] = None
    photo_url: Optional[str] = None
    coordinates: Optional[Tuple[float, float]] = None


class ListingPage(BaseModel):
    items: List[ListingItem]
    # Markers for every matching item, not only the current page
    map: MapLayer = Field(default_factory=lambda: MapLayer(markers=[]))
    total: int
    page: int
    pages: int
    page_size: int
    query: str = ""
    sort: str = "date"
