"""Tests for the morning/afternoon/night trend aggregation."""

from datetime import timedelta

import pytest

from healthtrack.core.trends import (
    BUCKET_COLORS,
    BUCKET_LABELS,
    Bucket,
    bucket_for_hour,
    build_blood_pressure_charts,
    latest_per_bucket,
    project_series,
)
from healthtrack.schemas.records import BloodPressureDTO
from healthtrack.utils.timeutils import to_iso_string
from tests.conftest import FIXED_NOW, HK, hk_iso


def _bp(rid, local, sbp, dbp=80, pulse=70):
    return BloodPressureDTO(id=rid, datetime=hk_iso(local), sbp=sbp, dbp=dbp, pulse=pulse)


def _series(charts, key, bucket):
    [ds] = [d for d in charts.chart(key).datasets if d.bucket == bucket.value]
    return [(p.x, p.y) for p in ds.data]


class TestBuckets:
    @pytest.mark.parametrize("hour", range(24))
    def test_every_hour_has_exactly_one_bucket(self, hour):
        expected = {
            Bucket.MORNING: range(6, 12),
            Bucket.AFTERNOON: range(12, 18),
            Bucket.NIGHT: list(range(18, 24)) + list(range(0, 6)),
        }
        matches = [b for b, hours in expected.items() if hour in hours]
        assert len(matches) == 1
        assert bucket_for_hour(hour) is matches[0]

    def test_boundaries(self):
        assert bucket_for_hour(5) is Bucket.NIGHT
        assert bucket_for_hour(6) is Bucket.MORNING
        assert bucket_for_hour(11) is Bucket.MORNING
        assert bucket_for_hour(12) is Bucket.AFTERNOON
        assert bucket_for_hour(17) is Bucket.AFTERNOON
        assert bucket_for_hour(18) is Bucket.NIGHT

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_out_of_range(self, hour):
        with pytest.raises(ValueError):
            bucket_for_hour(hour)


class TestLatestPerBucket:
    def test_later_reading_wins_regardless_of_order(self):
        early = _bp("a", "2024-01-01T07:00", 120)
        late = _bp("b", "2024-01-01T08:30", 125)
        for readings in ([early, late], [late, early]):
            kept = latest_per_bucket(readings, HK)
            assert [r.id for r in kept[Bucket.MORNING]] == ["b"]

    def test_exact_tie_keeps_first_seen(self):
        first = _bp("first", "2024-01-01T13:00", 120)
        second = _bp("second", "2024-01-01T13:00", 140)
        assert [r.id for r in latest_per_bucket([first, second], HK)[Bucket.AFTERNOON]] == ["first"]
        assert [r.id for r in latest_per_bucket([second, first], HK)[Bucket.AFTERNOON]] == ["second"]

    def test_one_reading_per_day_per_bucket(self):
        readings = [
            _bp("d1-m", "2024-01-01T09:00", 120),
            _bp("d2-m", "2024-01-02T09:00", 121),
            _bp("d1-a", "2024-01-01T15:00", 122),
            _bp("d1-n", "2024-01-01T22:00", 123),
        ]
        kept = latest_per_bucket(readings, HK)
        assert sorted(r.id for r in kept[Bucket.MORNING]) == ["d1-m", "d2-m"]
        assert [r.id for r in kept[Bucket.AFTERNOON]] == ["d1-a"]
        assert [r.id for r in kept[Bucket.NIGHT]] == ["d1-n"]

    def test_small_hours_belong_to_their_own_date(self):
        evening = _bp("evening", "2024-01-01T20:00", 110)
        small_hours = _bp("small-hours", "2024-01-02T03:00", 115)
        kept = latest_per_bucket([evening, small_hours], HK)
        assert sorted(r.id for r in kept[Bucket.NIGHT]) == ["evening", "small-hours"]

    def test_grouping_uses_display_timezone(self):
        # 23:30Z and 01:00Z are 07:30 and 09:00 on the same Hong Kong morning
        a = BloodPressureDTO(id="a", datetime="2024-01-01T23:30:00.000Z", sbp=120)
        b = BloodPressureDTO(id="b", datetime="2024-01-02T01:00:00.000Z", sbp=121)
        kept = latest_per_bucket([a, b], HK)
        assert [r.id for r in kept[Bucket.MORNING]] == ["b"]
        assert kept[Bucket.NIGHT] == []

    def test_unparseable_timestamps_skipped(self):
        good = _bp("good", "2024-01-01T09:00", 120)
        bad = BloodPressureDTO(id="bad", datetime="31/12/2023 9am", sbp=999)
        missing = BloodPressureDTO(id="missing", sbp=999)
        kept = latest_per_bucket([bad, good, missing], HK)
        assert [r.id for r in kept[Bucket.MORNING]] == ["good"]

    def test_offsetless_timestamps_are_display_tz_civil_time(self):
        readings = [
            BloodPressureDTO(id="1", datetime="2024-01-01T07:00", sbp=120),
            BloodPressureDTO(id="2", datetime="2024-01-01T08:30", sbp=125),
            BloodPressureDTO(id="3", datetime="2024-01-01T20:00", sbp=110),
        ]
        kept = latest_per_bucket(readings, HK)
        assert [r.id for r in kept[Bucket.MORNING]] == ["2"]
        assert kept[Bucket.AFTERNOON] == []
        assert [r.id for r in kept[Bucket.NIGHT]] == ["3"]

    def test_custom_timestamp_accessor(self):
        rows = [{"at": "2024-01-01T01:00:00Z", "v": 1}, {"at": "2024-01-01T02:00:00Z", "v": 2}]
        kept = latest_per_bucket(rows, HK, timestamp_of=lambda r: r["at"])
        assert kept[Bucket.MORNING] == [rows[1]]


class TestProjectSeries:
    def test_sorted_and_skips_missing_values(self):
        readings = [
            _bp("b", "2024-01-03T09:00", 130),
            _bp("a", "2024-01-01T09:00", 120),
            BloodPressureDTO(id="c", datetime=hk_iso("2024-01-02T09:00"), sbp=None),
        ]
        points = project_series(readings, "sbp")
        assert [(p.x, p.y) for p in points] == [
            (hk_iso("2024-01-01T09:00"), 120),
            (hk_iso("2024-01-03T09:00"), 130),
        ]


    def test_offsetless_timestamps_plotted_as_utc_instants(self):
        readings = [BloodPressureDTO(id="a", datetime="2024-01-01T08:30", sbp=120)]
        points = project_series(readings, "sbp", HK)
        assert [(p.x, p.y) for p in points] == [("2024-01-01T00:30:00.000Z", 120)]


class TestBloodPressureCharts:
    def test_scenario(self):
        readings = [
            _bp("1", "2024-01-01T07:00", 120),
            _bp("2", "2024-01-01T08:30", 125),
            _bp("3", "2024-01-01T20:00", 110),
        ]
        charts = build_blood_pressure_charts(readings, tz=HK, now=FIXED_NOW)

        assert _series(charts, "sbp", Bucket.MORNING) == [(hk_iso("2024-01-01T08:30"), 125)]
        assert _series(charts, "sbp", Bucket.NIGHT) == [(hk_iso("2024-01-01T20:00"), 110)]
        assert _series(charts, "sbp", Bucket.AFTERNOON) == []

    def test_scenario_with_offsetless_timestamps(self):
        readings = [
            BloodPressureDTO(id="1", datetime="2024-01-01T07:00", sbp=120, dbp=80, pulse=70),
            BloodPressureDTO(id="2", datetime="2024-01-01T08:30", sbp=125, dbp=80, pulse=70),
            BloodPressureDTO(id="3", datetime="2024-01-01T20:00", sbp=110, dbp=80, pulse=70),
        ]
        charts = build_blood_pressure_charts(readings, tz=HK, now=FIXED_NOW)

        assert _series(charts, "sbp", Bucket.MORNING) == [(hk_iso("2024-01-01T08:30"), 125)]
        assert _series(charts, "sbp", Bucket.AFTERNOON) == []
        assert _series(charts, "sbp", Bucket.NIGHT) == [(hk_iso("2024-01-01T20:00"), 110)]
        assert charts.chart("sbp").labels == ["2023-12-31T16:00:00.000Z", "2024-01-31T15:59:59.999Z"]

    def test_three_charts_three_datasets(self):
        charts = build_blood_pressure_charts([_bp("1", "2024-01-10T09:00", 120, 75, 66)], tz=HK, now=FIXED_NOW)
        assert [c.key for c in charts.charts] == ["sbp", "dbp", "pulse"]
        for chart in charts.charts:
            assert [d.bucket for d in chart.datasets] == ["morning", "afternoon", "night"]
            assert (chart.y_min, chart.y_max) == (0, 200)
        assert _series(charts, "dbp", Bucket.MORNING)[0][1] == 75
        assert _series(charts, "pulse", Bucket.MORNING)[0][1] == 66

        morning = charts.chart("sbp").datasets[0]
        assert morning.label == BUCKET_LABELS[Bucket.MORNING]
        assert morning.border_color == BUCKET_COLORS[Bucket.MORNING]
        assert morning.show_line is False

    def test_empty_input(self):
        charts = build_blood_pressure_charts([], tz=HK, now=FIXED_NOW)
        assert len(charts.charts) == 3
        for chart in charts.charts:
            assert chart.labels == []
            assert len(chart.datasets) == 3
            assert all(ds.data == [] for ds in chart.datasets)

    def test_window_is_trailing_thirty_days(self):
        old = _bp("old", "2023-10-01T09:00", 140)
        charts = build_blood_pressure_charts([old], tz=HK, now=FIXED_NOW)
        window = charts.chart("sbp").window
        assert window.max == to_iso_string(FIXED_NOW)
        assert window.min == to_iso_string(FIXED_NOW - timedelta(days=30))
        # out-of-window data is still in the series
        assert _series(charts, "sbp", Bucket.MORNING) == [(hk_iso("2023-10-01T09:00"), 140)]

    def test_custom_window(self):
        charts = build_blood_pressure_charts([], tz=HK, now=FIXED_NOW, window_days=7)
        assert charts.chart("sbp").window.min == to_iso_string(FIXED_NOW - timedelta(days=7))

    def test_labels_span_whole_months(self):
        readings = [_bp("late", "2024-03-10T09:00", 120), _bp("early", "2024-01-05T21:00", 120)]
        charts = build_blood_pressure_charts(readings, tz=HK, now=FIXED_NOW)
        assert charts.chart("sbp").labels == [
            "2023-12-31T16:00:00.000Z",
            "2024-03-31T15:59:59.999Z",
        ]

    def test_unparseable_reading_does_not_break_render(self):
        readings = [_bp("ok", "2024-01-01T09:00", 120), BloodPressureDTO(id="bad", datetime="??", sbp=150)]
        charts = build_blood_pressure_charts(readings, tz=HK, now=FIXED_NOW)
        assert _series(charts, "sbp", Bucket.MORNING) == [(hk_iso("2024-01-01T09:00"), 120)]
        assert len(charts.chart("sbp").labels) == 2

    def test_chartjs_config(self):
        charts = build_blood_pressure_charts([_bp("1", "2024-01-10T09:00", 120)], tz=HK, now=FIXED_NOW)
        config = charts.chart("sbp").to_chartjs()
        assert config["type"] == "line"
        assert config["options"]["scales"]["x"]["max"] == to_iso_string(FIXED_NOW)
        assert config["options"]["scales"]["y"]["max"] == 200
        assert config["options"]["plugins"]["title"]["text"] == "Systolic (mmHg)"
        first = config["data"]["datasets"][0]
        assert first["data"] == [{"x": hk_iso("2024-01-10T09:00"), "y": 120}]
        assert first["borderColor"] == BUCKET_COLORS[Bucket.MORNING]
