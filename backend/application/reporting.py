"""Shape stored daily summaries into continuous, chart-ready series."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from domain.summary import Summary, SummaryRecord

CHART_DATE_FORMAT = "%b %d, %Y"
INCOMPLETE_THRESHOLD = 0.8  # a 20% day-over-day drop means the day is still collecting
TOP_VERSIONS_COUNT = 15
VERSION_SELECTION_DAYS = 60
OTHERS_LABEL = "Others"


def format_day(day: date) -> str:
    return day.strftime(CHART_DATE_FORMAT)


def exclude_incomplete_days(
    records: Sequence[SummaryRecord],
    threshold: float = INCOMPLETE_THRESHOLD,
) -> List[SummaryRecord]:
    """Drop trailing days whose instance count fell sharply versus the day before.

    Reports for the current day keep arriving until it ends, so a sudden
    drop at the tail means "not finished yet", not "fewer instances".
    """
    trimmed = list(records)
    while len(trimmed) > 1:
        last = trimmed[-1].summary.num_instances
        prev = trimmed[-2].summary.num_instances
        if prev <= 0 or last / prev >= threshold:
            break
        trimmed.pop()
    return trimmed


@dataclass(frozen=True)
class GapRange:
    start: date
    end: date

    def labels(self) -> List[str]:
        return [format_day(self.start), format_day(self.end)]


@dataclass
class TimeSeries:
    """A continuous day axis; days without a summary map to ``None``."""

    days: List[date] = field(default_factory=list)
    lookup: Dict[date, Optional[SummaryRecord]] = field(default_factory=dict)

    @property
    def start(self) -> Optional[date]:
        return self.days[0] if self.days else None

    @property
    def labels(self) -> List[str]:
        return [format_day(day) for day in self.days]

    def record_for(self, day: date) -> Optional[SummaryRecord]:
        return self.lookup.get(day)

    def find_gaps(self) -> List[GapRange]:
        gaps: List[GapRange] = []
        gap_start: Optional[date] = None
        for day in self.days:
            has_data = self.lookup.get(day) is not None
            if not has_data and gap_start is None:
                gap_start = day
            elif has_data and gap_start is not None:
                gaps.append(GapRange(gap_start, day - timedelta(days=1)))
                gap_start = None
        if gap_start is not None:
            gaps.append(GapRange(gap_start, self.days[-1]))
        return gaps

    def values(self, extract: Callable[[Summary], int]) -> List[Optional[int]]:
        """Per-day values with ``None`` wherever the day has no summary."""
        result: List[Optional[int]] = []
        for day in self.days:
            record = self.lookup.get(day)
            result.append(extract(record.summary) if record else None)
        return result


def build_time_series(records: Sequence[SummaryRecord]) -> TimeSeries:
    if not records:
        return TimeSeries()

    first, last = records[0].day, records[-1].day
    days = [first + timedelta(days=offset) for offset in range((last - first).days + 1)]
    lookup: Dict[date, Optional[SummaryRecord]] = {day: None for day in days}
    for record in records:
        lookup[record.day] = record
    return TimeSeries(days=days, lookup=lookup)


def top_keys(totals: Mapping[str, int], n: int) -> List[str]:
    """The ``n`` largest keys; equal totals fall back to label order."""
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [key for key, _ in ranked[:n]]


@dataclass
class CategorySeries:
    labels: List[str]
    gaps: List[GapRange]
    categories: List[str]  # selected top-N, ordered by the latest day's count
    all: List[Optional[int]]
    series: Dict[str, List[Optional[int]]]
    others: List[Optional[int]]


def select_top_categories(
    records: Sequence[SummaryRecord],
    counts: Callable[[Summary], Mapping[str, int]],
    top_n: int = TOP_VERSIONS_COUNT,
    window_days: int = VERSION_SELECTION_DAYS,
) -> List[str]:
    """Pick the top ``top_n`` categories over the trailing ``window_days`` days.

    Only days inside the window count towards the ranking, so a category
    that was big long ago does not crowd out what is popular now.
    """
    if not records:
        return []

    last = records[-1]
    # exactly window_days calendar days, the last day included
    cutoff = last.day - timedelta(days=window_days - 1)
    totals: Dict[str, int] = {}
    for record in records:
        if record.day < cutoff:
            continue
        for label, count in counts(record.summary).items():
            totals[label] = totals.get(label, 0) + count

    selected = top_keys(totals, top_n)
    latest = counts(last.summary)
    selected.sort(key=lambda label: (-latest.get(label, 0), label))
    return selected


def build_category_series(
    records: Sequence[SummaryRecord],
    counts: Callable[[Summary], Mapping[str, int]],
    top_n: int = TOP_VERSIONS_COUNT,
    window_days: int = VERSION_SELECTION_DAYS,
) -> CategorySeries:
    ts = build_time_series(records)
    categories = select_top_categories(records, counts, top_n, window_days)
    chosen = set(categories)

    def _others(summary: Summary) -> int:
        return sum(count for label, count in counts(summary).items() if label not in chosen)

    return CategorySeries(
        labels=ts.labels,
        gaps=ts.find_gaps(),
        categories=categories,
        all=ts.values(lambda summary: sum(counts(summary).values())),
        series={
            label: ts.values(lambda summary, label=label: counts(summary).get(label, 0))
            for label in categories
        },
        others=ts.values(_others),
    )
