"""Unit tests for truck-to-route telemetry binding."""
from models.route_models import CollectorAccount, Route, TelemetryRecord
from services.telemetry_binder import bind_telemetry, match_telemetry, resolve_truck_label


def truck(truck_id, updated_by=None, collecting=True, lat=14.65, lng=121.05):
    return TelemetryRecord(id=truck_id, updated_by=updated_by, is_collecting=collecting,
                           latitude=lat, longitude=lng)


class TestMatchTelemetry:
    def setup_method(self):
        self.route = Route(id="r1", collector_id="c1", truck_label="BCG 12*5")
        self.collectors = [CollectorAccount(id="c1", name="Juan", truck_label="BCG 13*6")]

    def test_collector_truck_label_wins(self):
        """The collector's assigned truck is tried first."""
        telemetry = [truck("BCG 12*5"), truck("BCG 13*6"), truck("other", updated_by="c1")]
        assert match_telemetry(self.route, telemetry, self.collectors).id == "BCG 13*6"

    def test_route_truck_label_before_account(self):
        """The route's truck label beats the updated_by match."""
        telemetry = [truck("by-account", updated_by="c1"), truck("BCG 12*5")]
        assert match_telemetry(self.route, telemetry).id == "BCG 12*5"

    def test_account_fallback(self):
        """updated_by is the last resort."""
        route = Route(id="r2", collector_id="c9")
        telemetry = [truck("t1", updated_by="c1"), truck("t2", updated_by="c9")]
        assert match_telemetry(route, telemetry).id == "t2"

    def test_no_match(self):
        """No identity match gives None."""
        route = Route(id="r3", collector_id="c9", truck_label="nope")
        assert match_telemetry(route, [truck("t1", updated_by="c1")]) is None

    def test_empty_telemetry(self):
        """No telemetry gives None."""
        assert match_telemetry(self.route, [], self.collectors) is None


class TestBindTelemetry:
    def setup_method(self):
        self.route = Route(id="r1", collector_id="c1", truck_label="T1")

    def test_truck_label_match_takes_precedence_over_account(self):
        """A truck label match wins over the account match."""
        telemetry = [truck("T9", updated_by="c1"), truck("T1", updated_by="someone")]
        assert bind_telemetry(self.route, telemetry).id == "T1"

    def test_not_collecting_is_inactive(self):
        """A truck that is not collecting is inactive."""
        assert bind_telemetry(self.route, [truck("T1", collecting=False)]) is None

    def test_missing_position_is_inactive(self):
        """A truck without a usable position is inactive."""
        assert bind_telemetry(self.route, [truck("T1", lat=None)]) is None
        assert bind_telemetry(self.route, [truck("T1", lng=float("nan"))]) is None

    def test_inactive_match_does_not_fall_through(self):
        """An inactive first match is not replaced by a later one."""
        # The truck-label record wins even though it is not collecting
        telemetry = [truck("T1", collecting=False), truck("T9", updated_by="c1")]
        assert bind_telemetry(self.route, telemetry) is None

    def test_active_record(self):
        """An active truck is returned with its position."""
        record = bind_telemetry(self.route, [truck("T1")])
        assert record.position == (14.65, 121.05)


def test_resolve_truck_label():
    """The route label falls back to the collector's."""
    collectors = [CollectorAccount(id="c1", truck_label="BCG 13*6")]
    assert resolve_truck_label(Route(id="r", collector_id="c1", truck_label="X"), collectors) == "X"
    assert resolve_truck_label(Route(id="r", collector_id="c1"), collectors) == "BCG 13*6"
    assert resolve_truck_label(Route(id="r", collector_id="c2"), collectors) is None
