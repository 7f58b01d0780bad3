"""
Dashboard statistics, SLA compliance and red-zone ranking.

Every function is read-only and recomputes from a snapshot of grievances. Pass
an iterable of grievances to work on an arbitrary set; otherwise the whole
table is read once per call. Empty input yields zeroed or empty results.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from typing import Dict, Iterable, List, Mapping, Optional

from django.conf import settings

from .models import Grievance

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)

RED_ZONE_MIN_COMPLAINTS = 3
RED_ZONE_MEDIUM_COMPLAINTS = 5
RED_ZONE_HIGH_COMPLAINTS = 10
RED_ZONE_LIMIT = 10


@dataclass(frozen=True)
class SlaPolicy:
    targets: Mapping[str, int] = field(default_factory=dict)
    default_days: int = 5

    def target_for(self, category: str) -> int:
        return self.targets.get(category, self.default_days)

    @classmethod
    def from_settings(cls) -> "SlaPolicy":
        return cls(
            targets=dict(getattr(settings, "GRIEVANCE_SLA_TARGETS", {})),
            default_days=getattr(settings, "GRIEVANCE_SLA_DEFAULT_DAYS", 5),
        )


class _Result:
    def as_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class CategoryShare(_Result):
    category: str
    count: int
    percentage: float


@dataclass(frozen=True)
class ZoneCount(_Result):
    zone: str
    count: int


@dataclass(frozen=True)
class SlaPerformance(_Result):
    category: str
    sla_target_days: int
    total_complaints: int
    resolved_complaints: int
    within_sla: int
    breached_sla: int
    compliance_rate: float
    average_resolution_days: float


@dataclass(frozen=True)
class RedZone(_Result):
    location: str
    complaint_count: int
    latitude: Optional[float]
    longitude: Optional[float]
    most_common_category: str
    risk_level: str


@dataclass(frozen=True)
class DashboardStats(_Result):
    total_complaints: int
    resolved_complaints: int
    pending_complaints: int
    in_progress_complaints: int
    resolution_rate: float
    average_resolution_time: float
    category_distribution: List[CategoryShare]
    zone_distribution: List[ZoneCount]
    sla_performance: List[SlaPerformance]
    red_zones: List[RedZone]


def _snapshot(grievances: Optional[Iterable[Grievance]]) -> List[Grievance]:
    if grievances is None:
        return list(Grievance.objects.all())
    return list(grievances)


def _creation_order(grievance: Grievance):
    return (
        grievance.created_at is None,
        grievance.created_at,
        grievance.pk is None,
        grievance.pk or 0,
    )


def resolution_days(grievance: Grievance) -> Optional[int]:
    """Whole days from creation to resolution, or None while unresolved."""
    if grievance.status != Grievance.Status.RESOLVED:
        return None
    if grievance.resolved_at is None or grievance.created_at is None:
        return None
    return int((grievance.resolved_at - grievance.created_at) / ONE_DAY)


def _mean(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def average_resolution_time(grievances: Optional[Iterable[Grievance]] = None) -> float:
    elapsed = [days for days in map(resolution_days, _snapshot(grievances)) if days is not None]
    return _mean(elapsed)


def risk_level(complaint_count: int) -> str:
    if complaint_count >= RED_ZONE_HIGH_COMPLAINTS:
        return "HIGH"
    if complaint_count >= RED_ZONE_MEDIUM_COMPLAINTS:
        return "MEDIUM"
    return "LOW"


def category_distribution(grievances: Optional[Iterable[Grievance]] = None) -> List[CategoryShare]:
    snapshot = _snapshot(grievances)
    total = len(snapshot)
    counts = Counter(grievance.category for grievance in snapshot)
    rows = [
        CategoryShare(
            category=category,
            count=count,
            percentage=(count * 100.0) / total if total else 0.0,
        )
        for category, count in counts.items()
    ]
    return sorted(rows, key=lambda row: (-row.count, row.category))


def zone_distribution(grievances: Optional[Iterable[Grievance]] = None) -> List[ZoneCount]:
    counts = Counter(grievance.location for grievance in _snapshot(grievances))
    rows = [ZoneCount(zone=zone, count=count) for zone, count in counts.items()]
    return sorted(rows, key=lambda row: (-row.count, row.zone))


def sla_performance(
    grievances: Optional[Iterable[Grievance]] = None,
    policy: Optional[SlaPolicy] = None,
) -> List[SlaPerformance]:
    policy = policy or SlaPolicy.from_settings()
    by_category = defaultdict(list)
    for grievance in _snapshot(grievances):
        by_category[grievance.category].append(grievance)

    rows = []
    for category, members in by_category.items():
        target = policy.target_for(category)
        elapsed = [days for days in map(resolution_days, members) if days is not None]
        within = sum(1 for days in elapsed if days <= target)
        resolved = len(elapsed)
        rows.append(
            SlaPerformance(
                category=category,
                sla_target_days=target,
                total_complaints=len(members),
                resolved_complaints=resolved,
                within_sla=within,
                breached_sla=resolved - within,
                compliance_rate=(within * 100.0) / resolved if resolved else 0.0,
                average_resolution_days=_mean(elapsed),
            )
        )
    return sorted(rows, key=lambda row: (-row.compliance_rate, row.category))


def _first_coordinates(members: List[Grievance]):
    for grievance in sorted(members, key=_creation_order):
        if grievance.latitude is not None and grievance.longitude is not None:
            return grievance.latitude, grievance.longitude
    return None, None


def _most_common_category(members: List[Grievance]) -> str:
    counts = Counter(grievance.category for grievance in members)
    # ties go to the alphabetically first category
    category, _ = min(counts.items(), key=lambda item: (-item[1], item[0]))
    return category


def red_zones(
    grievances: Optional[Iterable[Grievance]] = None,
    limit: int = RED_ZONE_LIMIT,
) -> List[RedZone]:
    by_location = defaultdict(list)
    for grievance in _snapshot(grievances):
        by_location[grievance.location].append(grievance)

    zones = []
    for location, members in by_location.items():
        count = len(members)
        if count < RED_ZONE_MIN_COMPLAINTS:
            continue
        latitude, longitude = _first_coordinates(members)
        zones.append(
            RedZone(
                location=location,
                complaint_count=count,
                latitude=latitude,
                longitude=longitude,
                most_common_category=_most_common_category(members),
                risk_level=risk_level(count),
            )
        )
    zones.sort(key=lambda zone: (-zone.complaint_count, zone.location))
    return zones[:limit]


def dashboard_stats(
    grievances: Optional[Iterable[Grievance]] = None,
    policy: Optional[SlaPolicy] = None,
) -> DashboardStats:
    snapshot = _snapshot(grievances)
    statuses = Counter(str(grievance.status) for grievance in snapshot)
    total = len(snapshot)
    resolved = statuses[Grievance.Status.RESOLVED.value]
    logger.debug("Computing dashboard over %s grievances", total)

    return DashboardStats(
        total_complaints=total,
        resolved_complaints=resolved,
        pending_complaints=statuses[Grievance.Status.PENDING.value],
        in_progress_complaints=statuses[Grievance.Status.IN_PROGRESS.value],
        resolution_rate=(resolved * 100.0) / total if total else 0.0,
        average_resolution_time=average_resolution_time(snapshot),
        category_distribution=category_distribution(snapshot),
        zone_distribution=zone_distribution(snapshot),
        sla_performance=sla_performance(snapshot, policy),
        red_zones=red_zones(snapshot),
    )
