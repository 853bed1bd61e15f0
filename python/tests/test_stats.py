"""Tests for dashboard stats and visit recording."""

from datetime import UTC, datetime, timedelta

from luvv.db.models import SiteVisit, UsageStatus
from luvv.services.stats import DAILY_CAPACITY, get_dashboard_stats, record_visit
from tests.helpers import seed_templates, seed_usage

# Wednesday; the month started 9 days earlier
NOW = datetime(2026, 2, 11, 12, 0, tzinfo=UTC)
TODAY = datetime(2026, 2, 11, tzinfo=UTC)


def visits_at(db, *instants: datetime) -> None:
    for instant in instants:
        record_visit(db, now=instant)


class TestVisitWindows:
    def test_windows(self, db_session):
        visits_at(
            db_session,
            TODAY + timedelta(hours=1),  # today
            TODAY + timedelta(hours=2),  # today
            TODAY - timedelta(hours=1),  # yesterday
            TODAY - timedelta(days=6),  # this week, this month
            TODAY - timedelta(days=7),  # last week, this month
            TODAY - timedelta(days=13),  # last week, previous month
            TODAY - timedelta(days=14),  # outside both weeks
        )

        visits = get_dashboard_stats(db_session, now=NOW).visits

        assert visits.today == 2
        assert visits.yesterday == 1
        assert visits.week == 4
        assert visits.last_week == 2
        assert visits.month == 5

    def test_empty(self, db_session):
        stats = get_dashboard_stats(db_session, now=NOW)

        assert stats.visits.today == 0
        assert stats.total_generated == 0
        assert stats.relationships == {}
        assert stats.health.ai_status == "idle"
        assert stats.health.load_percent == 0
        assert len(stats.daily_messages) == 7

    def test_record_visit_defaults_to_now(self, db_session):
        record_visit(db_session)
        assert db_session.query(SiteVisit).count() == 1


class TestGenerationCounts:
    def test_counts_and_breakdown(self, db_session):
        seed_templates(db_session, "Spouse", "Romantic", ["a", "b"], created_at=TODAY + timedelta(hours=3))
        seed_templates(db_session, "Mother", "Polite", ["c"], created_at=TODAY - timedelta(hours=5))
        seed_templates(db_session, "Spouse", "Funny", ["d"], created_at=TODAY - timedelta(days=3))

        stats = get_dashboard_stats(db_session, now=NOW)

        assert stats.total_generated == 4
        assert stats.generated_today == 2
        assert stats.generated_yesterday == 1
        assert stats.relationships == {"Spouse": 3, "Mother": 1}
        assert list(stats.relationships) == ["Spouse", "Mother"]

    def test_daily_series(self, db_session):
        seed_templates(db_session, "Crush", "Funny", ["x"], created_at=TODAY - timedelta(days=2))

        daily = get_dashboard_stats(db_session, now=NOW).daily_messages

        assert [d.date for d in daily][0] == "2026-02-05"
        assert daily[-1].date == "2026-02-11"
        assert {d.date: d.count for d in daily}["2026-02-09"] == 1
        assert sum(d.count for d in daily) == 1

    def test_load_percent_capped(self, db_session):
        seed_templates(
            db_session,
            "Crush",
            "Funny",
            [f"m{i}" for i in range(DAILY_CAPACITY + 10)],
            created_at=TODAY + timedelta(hours=1),
        )

        assert get_dashboard_stats(db_session, now=NOW).health.load_percent == 100

    def test_load_percent_rounded(self, db_session):
        seed_templates(
            db_session, "Crush", "Funny", [f"m{i}" for i in range(25)], created_at=TODAY
        )

        assert get_dashboard_stats(db_session, now=NOW).health.load_percent == 10


class TestProviderHealth:
    def test_operational_when_any_success_today(self, db_session):
        seed_usage(db_session, "gemini-2.5-flash", UsageStatus.success, 2, created_at=TODAY)
        seed_usage(db_session, "gemini-2.5-flash", UsageStatus.error, 1, created_at=TODAY)
        seed_usage(db_session, "safety-net", UsageStatus.fallback, 1, created_at=TODAY)

        health = get_dashboard_stats(db_session, now=NOW).health

        assert health.ai_status == "operational"
        by_model = {p.model_name: p for p in health.providers}
        assert (by_model["gemini-2.5-flash"].success, by_model["gemini-2.5-flash"].error) == (2, 1)
        assert by_model["safety-net"].fallback == 1

    def test_degraded_when_only_failures(self, db_session):
        seed_usage(db_session, "groq-llama-3.1-8b-instant", UsageStatus.error, 3, created_at=TODAY)

        assert get_dashboard_stats(db_session, now=NOW).health.ai_status == "degraded"

    def test_yesterday_ignored(self, db_session):
        seed_usage(
            db_session, "gemini-2.5-flash", UsageStatus.success, 5, created_at=TODAY - timedelta(minutes=1)
        )

        health = get_dashboard_stats(db_session, now=NOW).health

        assert health.providers == []
        assert health.ai_status == "idle"


class TestStatsRoutes:
    def test_get_stats(self, client):
        response = client.get("/api/stats")

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {
            "visits",
            "relationships",
            "total_generated",
            "generated_today",
            "generated_yesterday",
            "daily_messages",
            "health",
        }

    def test_record_visit(self, client):
        response = client.post("/api/visits")
        assert response.status_code == 201

        assert client.get("/api/stats").json()["data"]["visits"]["today"] == 1
