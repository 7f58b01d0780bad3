from datetime import datetime, timedelta, timezone as dt_timezone
from itertools import count

from django.test import SimpleTestCase, override_settings

from grievances import analytics
from grievances.analytics import SlaPolicy
from grievances.models import Grievance

from .base import GrievanceTestCase

BASE_TIME = datetime(2026, 2, 1, 8, 0, tzinfo=dt_timezone.utc)
_ids = count(1)


def make_grievance(
    category="Water",
    location="Main St",
    status=Grievance.Status.PENDING,
    created_at=None,
    resolved_after=None,
    latitude=None,
    longitude=None,
):
    created_at = created_at or BASE_TIME
    resolved_at = created_at + resolved_after if resolved_after is not None else None
    return Grievance(
        pk=next(_ids),
        title=f"{category} at {location}",
        category=category,
        location=location,
        status=status,
        created_at=created_at,
        resolved_at=resolved_at,
        latitude=latitude,
        longitude=longitude,
    )


def resolved(category="Water", days=0, hours=0, **kwargs):
    return make_grievance(
        category=category,
        status=Grievance.Status.RESOLVED,
        resolved_after=timedelta(days=days, hours=hours),
        **kwargs,
    )


class EmptyInputTests(SimpleTestCase):
    def test_every_view_tolerates_empty_input(self):
        self.assertEqual(analytics.category_distribution([]), [])
        self.assertEqual(analytics.zone_distribution([]), [])
        self.assertEqual(analytics.sla_performance([], SlaPolicy()), [])
        self.assertEqual(analytics.red_zones([]), [])
        self.assertEqual(analytics.average_resolution_time([]), 0.0)

        stats = analytics.dashboard_stats([], SlaPolicy())
        self.assertEqual(stats.total_complaints, 0)
        self.assertEqual(stats.resolution_rate, 0.0)
        self.assertEqual(stats.average_resolution_time, 0.0)
        self.assertEqual(stats.category_distribution, [])
        self.assertEqual(stats.red_zones, [])


class DistributionTests(SimpleTestCase):
    def test_category_distribution_sorted_with_percentages(self):
        grievances = (
            [make_grievance(category="Road") for _ in range(3)]
            + [make_grievance(category="Water") for _ in range(2)]
            + [make_grievance(category="Electricity") for _ in range(2)]
        )
        rows = analytics.category_distribution(grievances)

        self.assertEqual([(row.category, row.count) for row in rows], [("Road", 3), ("Electricity", 2), ("Water", 2)])
        self.assertAlmostEqual(rows[0].percentage, 300 / 7)
        self.assertAlmostEqual(sum(row.percentage for row in rows), 100.0)

    def test_zone_distribution(self):
        grievances = [make_grievance(location="Main St") for _ in range(2)] + [make_grievance(location="Park Rd")]
        rows = analytics.zone_distribution(grievances)
        self.assertEqual([row.as_dict() for row in rows], [{"zone": "Main St", "count": 2}, {"zone": "Park Rd", "count": 1}])


class SlaPerformanceTests(SimpleTestCase):
    policy = SlaPolicy(targets={"Water": 2, "Road": 3}, default_days=5)

    def test_boundary_days(self):
        rows = analytics.sla_performance(
            [resolved("Water", days=2), resolved("Water", days=3)],
            self.policy,
        )
        water = rows[0]
        self.assertEqual(water.sla_target_days, 2)
        self.assertEqual(water.within_sla, 1)
        self.assertEqual(water.breached_sla, 1)
        self.assertEqual(water.compliance_rate, 50.0)
        self.assertEqual(water.average_resolution_days, 2.5)

    def test_elapsed_days_are_truncated(self):
        rows = analytics.sla_performance([resolved("Water", days=2, hours=23)], self.policy)
        self.assertEqual(rows[0].within_sla, 1)
        self.assertEqual(rows[0].average_resolution_days, 2.0)

    def test_category_without_resolutions(self):
        grievances = [
            make_grievance(category="Road"),
            make_grievance(category="Road", status=Grievance.Status.IN_PROGRESS),
            make_grievance(category="Road", status=Grievance.Status.RESOLVED),
        ]
        road = analytics.sla_performance(grievances, self.policy)[0]
        self.assertEqual(road.total_complaints, 3)
        self.assertEqual(road.resolved_complaints, 0)
        self.assertEqual(road.compliance_rate, 0.0)
        self.assertEqual(road.average_resolution_days, 0.0)
        self.assertEqual(road.breached_sla, 0)

    def test_unlisted_category_uses_default_and_rows_sort_by_compliance(self):
        grievances = [
            resolved("Water", days=4),
            resolved("Parks", days=5),
            resolved("Road", days=1),
            resolved("Road", days=7),
        ]
        rows = analytics.sla_performance(grievances, self.policy)
        self.assertEqual(
            [(row.category, row.sla_target_days, row.compliance_rate) for row in rows],
            [("Parks", 5, 100.0), ("Road", 3, 50.0), ("Water", 2, 0.0)],
        )

    @override_settings(GRIEVANCE_SLA_TARGETS={"Water": 1}, GRIEVANCE_SLA_DEFAULT_DAYS=9)
    def test_policy_from_settings(self):
        policy = SlaPolicy.from_settings()
        self.assertEqual(policy.target_for("Water"), 1)
        self.assertEqual(policy.target_for("Anything"), 9)
        rows = analytics.sla_performance([resolved("Water", days=2)])
        self.assertEqual(rows[0].breached_sla, 1)


class RedZoneTests(SimpleTestCase):
    def test_threshold_and_risk_levels(self):
        for size, expected in ((2, None), (3, "LOW"), (4, "LOW"), (5, "MEDIUM"), (9, "MEDIUM"), (10, "HIGH")):
            with self.subTest(size=size):
                zones = analytics.red_zones([make_grievance(location="Main St") for _ in range(size)])
                if expected is None:
                    self.assertEqual(zones, [])
                else:
                    self.assertEqual(len(zones), 1)
                    self.assertEqual(zones[0].complaint_count, size)
                    self.assertEqual(zones[0].risk_level, expected)

    def test_fourth_complaint_keeps_zone_low(self):
        grievances = [make_grievance(location="Main St") for _ in range(3)]
        grievances.append(make_grievance(location="Main St"))
        zone = analytics.red_zones(grievances)[0]
        self.assertEqual(zone.location, "Main St")
        self.assertEqual(zone.complaint_count, 4)
        self.assertEqual(zone.risk_level, "LOW")

    def test_most_common_category_tie_breaks_alphabetically(self):
        grievances = [
            make_grievance(category="Water"),
            make_grievance(category="Road"),
            make_grievance(category="Water"),
            make_grievance(category="Road"),
            make_grievance(category="Sanitation"),
        ]
        self.assertEqual(analytics.red_zones(grievances)[0].most_common_category, "Road")

        grievances.append(make_grievance(category="Water"))
        self.assertEqual(analytics.red_zones(grievances)[0].most_common_category, "Water")

    def test_coordinates_come_from_earliest_located_member(self):
        grievances = [
            make_grievance(created_at=BASE_TIME + timedelta(days=2), latitude=3.0, longitude=3.0),
            make_grievance(created_at=BASE_TIME, latitude=None, longitude=None),
            make_grievance(created_at=BASE_TIME + timedelta(days=1), latitude=1.0, longitude=1.5),
        ]
        zone = analytics.red_zones(grievances)[0]
        self.assertEqual((zone.latitude, zone.longitude), (1.0, 1.5))

    def test_zone_without_coordinates(self):
        zone = analytics.red_zones([make_grievance() for _ in range(3)])[0]
        self.assertIsNone(zone.latitude)
        self.assertIsNone(zone.longitude)

    def test_top_ten_sorted_by_count(self):
        grievances = []
        for index in range(12):
            grievances.extend(make_grievance(location=f"Ward {index:02d}") for _ in range(3))
        grievances.extend(make_grievance(location="Ward 11") for _ in range(2))

        zones = analytics.red_zones(grievances)
        self.assertEqual(len(zones), 10)
        self.assertEqual(zones[0].location, "Ward 11")
        self.assertEqual(zones[0].complaint_count, 5)
        self.assertEqual([zone.location for zone in zones[1:]], [f"Ward {index:02d}" for index in range(9)])


class DashboardTests(SimpleTestCase):
    def test_summary_counts(self):
        grievances = [
            make_grievance(),
            make_grievance(status=Grievance.Status.IN_PROGRESS),
            make_grievance(status=Grievance.Status.REJECTED),
            resolved("Water", days=1),
            resolved("Road", days=4, location="Park Rd"),
        ]
        stats = analytics.dashboard_stats(grievances, SlaPolicy(targets={"Water": 2, "Road": 3}))

        self.assertEqual(stats.total_complaints, 5)
        self.assertEqual(stats.resolved_complaints, 2)
        self.assertEqual(stats.pending_complaints, 1)
        self.assertEqual(stats.in_progress_complaints, 1)
        self.assertEqual(stats.resolution_rate, 40.0)
        self.assertEqual(stats.average_resolution_time, 2.5)
        self.assertEqual(stats.zone_distribution[0].as_dict(), {"zone": "Main St", "count": 4})
        self.assertEqual(stats.red_zones[0].location, "Main St")

        payload = stats.as_dict()
        self.assertEqual(payload["category_distribution"][0]["category"], "Water")
        self.assertEqual(payload["sla_performance"][0]["category"], "Water")
        self.assertEqual(payload["red_zones"][0]["risk_level"], "LOW")


class StoreBackedAnalyticsTests(GrievanceTestCase):
    def test_reads_current_table(self):
        self.assertEqual(analytics.dashboard_stats().total_complaints, 0)

        on_time = self.resolved_grievance(title="on time")
        late = self.resolved_grievance(title="late")
        self.resolve_after(on_time, BASE_TIME, days=2)
        self.resolve_after(late, BASE_TIME, days=3)
        self.create_grievance(title="open")

        water = analytics.sla_performance()[0]
        self.assertEqual(water.category, "Water")
        self.assertEqual(water.sla_target_days, 2)
        self.assertEqual(water.total_complaints, 3)
        self.assertEqual((water.within_sla, water.breached_sla), (1, 1))

        stats = analytics.dashboard_stats()
        self.assertEqual(stats.total_complaints, 3)
        self.assertEqual(stats.resolved_complaints, 2)
        self.assertEqual(stats.red_zones[0].complaint_count, 3)
