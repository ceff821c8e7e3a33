"""Unit tests for the history view: filters, sort toggling, stable ordering."""

import pytest
from conftest import vehicle_fields, pedestrian_fields
from gatelog.exceptions import ValidationError
from gatelog.schemas.history import HistoryFilters, HistoryRow
from gatelog.services.history_service import (
    ASC, DESC, SortState, apply_filters, build_history_view, sort_rows,
)
from gatelog.services.record_store import PEDESTRIAN_KIND, VEHICLE_KIND


def row(id, kind=VEHICLE_KIND, **fields):
    return HistoryRow(id=id, kind=kind, **fields)


class TestSortState:
    def test_default_is_date_descending(self):
        state = SortState()
        assert state.effective_key == "date"
        assert state.direction == DESC

    def test_repeated_clicks_toggle(self):
        state = SortState()
        assert state.toggle("date").direction == DESC
        assert state.toggle("date").direction == ASC
        assert state.toggle("date").direction == DESC

    def test_new_column_starts_ascending(self):
        state = SortState().toggle("date").toggle("date")
        assert state.direction == ASC
        state.toggle("name")
        assert state.key == "name"
        assert state.direction == ASC
        assert state.toggle("name").direction == DESC

    def test_returning_to_date_starts_newest_first(self):
        state = SortState().toggle("plate")
        assert state.direction == ASC
        state.toggle("date")
        assert (state.key, state.direction) == ("date", DESC)

    def test_unknown_column(self):
        with pytest.raises(ValidationError):
            SortState().toggle("secret")


class TestFilters:
    def test_movement_filter_excludes_pedestrians(self, record_store):
        record_store.insert_vehicle(vehicle_fields(movement="entrada"))
        record_store.insert_vehicle(vehicle_fields(plate="OUT001", movement="salida"))
        record_store.insert_pedestrian(pedestrian_fields())
        rows = build_history_view(record_store, HistoryFilters(movement="entrada"))
        assert [(r.kind, r.plate) for r in rows] == [(VEHICLE_KIND, "ABC1234")]

    def test_kind_filter(self, record_store):
        record_store.insert_vehicle(vehicle_fields())
        record_store.insert_pedestrian(pedestrian_fields())
        rows = build_history_view(record_store, HistoryFilters(kind=PEDESTRIAN_KIND))
        assert [r.name for r in rows] == ["Ana López"]

    def test_substring_filters_are_case_insensitive(self):
        rows = [
            row(1, name="Juan Pérez", plate="ABC1234", destination="Casa 12"),
            row(2, name="María Gómez", plate="XYZ999", destination="Casa 7"),
        ]
        assert [r.id for r in apply_filters(rows, HistoryFilters(name="juan"))] == [1]
        assert [r.id for r in apply_filters(rows, HistoryFilters(plate="z99"))] == [2]
        assert [r.id for r in apply_filters(rows, HistoryFilters(destination="casa"))] == [1, 2]

    def test_filters_combine(self):
        rows = [
            row(1, name="Juan", destination="Casa 12", movement="entrada"),
            row(2, name="Juan", destination="Casa 12", movement="salida"),
            row(3, name="Juan", destination="Casa 7", movement="entrada"),
        ]
        result = apply_filters(rows, HistoryFilters(name="juan", destination="12", movement="entrada"))
        assert [r.id for r in result] == [1]

    def test_date_range_is_inclusive(self):
        rows = [row(i, date=d) for i, d in enumerate(["2026-02-28", "2026-03-01", "2026-03-05", "2026-03-06"])]
        result = apply_filters(rows, HistoryFilters(date_from="2026-03-01", date_to="2026-03-05"))
        assert [r.date for r in result] == ["2026-03-01", "2026-03-05"]

    def test_no_filters_returns_everything(self):
        rows = [row(1), row(2, kind=PEDESTRIAN_KIND)]
        assert apply_filters(rows, HistoryFilters()) == rows


class TestSorting:
    def test_default_view_is_newest_date_first(self, record_store):
        record_store.insert_vehicle(vehicle_fields(date="2026-03-01"))
        record_store.insert_pedestrian(pedestrian_fields(date="2026-03-03"))
        record_store.insert_vehicle(vehicle_fields(plate="NEW1", date="2026-03-02"))
        rows = build_history_view(record_store)
        assert [r.date for r in rows] == ["2026-03-03", "2026-03-02", "2026-03-01"]

    def test_sort_is_stable(self):
        rows = [row(1, date="2026-03-01"), row(2, date="2026-03-01"), row(3, date="2026-03-02")]
        ascending = sort_rows(rows, SortState(key="date", direction=ASC))
        assert [r.id for r in ascending] == [1, 2, 3]
        descending = sort_rows(rows, SortState(key="date", direction=DESC))
        assert [r.id for r in descending] == [3, 1, 2]

    def test_missing_values_sort_as_empty(self):
        rows = [row(1, plate="B"), row(2, kind=PEDESTRIAN_KIND), row(3, plate="A")]
        result = sort_rows(rows, SortState(key="plate", direction=ASC))
        assert [r.id for r in result] == [2, 3, 1]

    def test_unknown_sort_key(self):
        with pytest.raises(ValidationError):
            sort_rows([row(1)], SortState(key="nope"))
