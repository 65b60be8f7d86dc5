"""Tests for missed collection detection."""
from datetime import date, datetime

from models.route_models import CollectorAccount, Route, TelemetryRecord
from services.missed_collections import MISSED_COLUMNS, find_missed_collections


class TestFindMissedCollections:
    def setup_method(self):
        self.routes = [
            Route(id="r1", collector_id="c1", days=["Mon", "Wed"],
                  street_labels=["Main St", "Side St"], barangay_labels=["Holy Spirit", "Fairview"]),
            Route(id="r2", collector_id="ghost", days=["Mon"]),
        ]
        self.collectors = [CollectorAccount(id="c1", name="Juan", truck_label="T1")]
        # Mon 2026-10-12 .. Sun 2026-10-18
        self.start = date(2026, 10, 12)
        self.end = date(2026, 10, 18)

    def test_no_activity_misses_every_scheduled_street(self):
        """Without telemetry every scheduled street is missed."""
        missed = find_missed_collections(self.routes, self.collectors, [], self.start, self.end)
        assert list(missed.columns) == MISSED_COLUMNS
        # Monday and Wednesday, two streets each; r2 has no known collector
        assert len(missed) == 4
        assert set(missed["scheduled_day"]) == {"Mon", "Wed"}
        assert set(missed["route_id"]) == {"r1"}
        assert (missed["status"] == "missed").all()
        assert missed.iloc[0]["scheduled_date"] == "2026-10-14"

    def test_collecting_telemetry_covers_the_day(self):
        """Collecting telemetry on a day clears it."""
        history = [
            TelemetryRecord(id="T1", is_collecting=True, updated_at=datetime(2026, 10, 12, 7, 0)),
            TelemetryRecord(id="T1", is_collecting=False, updated_at=datetime(2026, 10, 14, 7, 0)),
        ]
        missed = find_missed_collections(self.routes, self.collectors, history, self.start, self.end)
        assert set(missed["scheduled_date"]) == {"2026-10-14"}
        assert list(missed["street"]) == ["Main St", "Side St"]
        assert list(missed["barangay"]) == ["Holy Spirit", "Fairview"]

    def test_activity_matched_by_account(self):
        """Telemetry from the collector's account counts."""
        history = [
            TelemetryRecord(id="other", updated_by="c1", is_collecting=True, updated_at=datetime(2026, 10, 14, 9, 0)),
        ]
        missed = find_missed_collections(self.routes, self.collectors, history, self.start, self.end)
        assert set(missed["scheduled_date"]) == {"2026-10-12"}

    def test_other_trucks_do_not_count(self):
        """Other trucks' activity does not clear a day."""
        history = [
            TelemetryRecord(id="T7", updated_by="c7", is_collecting=True, updated_at=datetime(2026, 10, 12, 9, 0)),
        ]
        missed = find_missed_collections(self.routes, self.collectors, history, self.start, self.end)
        assert len(missed) == 4

    def test_empty_result(self):
        """No routes gives an empty frame with the columns."""
        missed = find_missed_collections([], [], [], self.start, self.end)
        assert missed.empty
        assert list(missed.columns) == MISSED_COLUMNS
