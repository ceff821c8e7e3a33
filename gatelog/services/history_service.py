"""
History view pipeline: unified vehicle + pedestrian rows → filters → sort.

Filters compose conjunctively:
  kind         exact (Vehículo | Peatón)
  name, plate, destination   case-insensitive substring
  movement     exact; pedestrians carry "" and never match entrada/salida
  date_from / date_to        inclusive bounds on the ISO date string

Sorting compares the stored strings; dates and times order correctly because
they are zero-padded ISO values. Missing values compare as "".
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from gatelog.exceptions import ValidationError
from gatelog.schemas.history import HistoryFilters, HistoryRow

ASC = "asc"
DESC = "desc"
DEFAULT_SORT_KEY = "date"
SORTABLE_COLUMNS = frozenset(HistoryRow.model_fields)


@dataclass
class SortState:
    """
    Column sort toggled by repeated clicks. Choosing the same column again
    flips the direction. A newly chosen column starts ascending, except the
    date column, which starts newest first. With no explicit column the
    view is date-descending.
    """
    key: Optional[str] = None
    direction: str = DESC

    @property
    def effective_key(self) -> str:
        return self.key or DEFAULT_SORT_KEY

    def toggle(self, key: str) -> "SortState":
        if key not in SORTABLE_COLUMNS:
            raise ValidationError(f"Cannot sort by {key!r}")
        if key == self.key:
            self.direction = ASC if self.direction == DESC else DESC
        else:
            self.key = key
            self.direction = DESC if key == DEFAULT_SORT_KEY else ASC
        return self


def _contains(value: str, needle: str) -> bool:
    return needle.lower() in (value or "").lower()


def apply_filters(rows: Iterable[HistoryRow], filters: HistoryFilters) -> list[HistoryRow]:
    data = list(rows)
    if filters.kind:
        data = [r for r in data if r.kind == filters.kind]
    if filters.name:
        data = [r for r in data if _contains(r.name, filters.name)]
    if filters.plate:
        data = [r for r in data if _contains(r.plate, filters.plate)]
    if filters.destination:
        data = [r for r in data if _contains(r.destination, filters.destination)]
    if filters.movement:
        data = [r for r in data if (r.movement or "") == filters.movement]
    if filters.date_from:
        data = [r for r in data if (r.date or "") >= filters.date_from]
    if filters.date_to:
        data = [r for r in data if (r.date or "") <= filters.date_to]
    return data


def sort_rows(rows: Iterable[HistoryRow], sort: SortState) -> list[HistoryRow]:
    """Stable sort; rows with equal keys keep their relative order."""
    key = sort.effective_key
    if key not in SORTABLE_COLUMNS:
        raise ValidationError(f"Cannot sort by {key!r}")
    return sorted(
        rows,
        key=lambda r: str(getattr(r, key) if getattr(r, key) is not None else ""),
        reverse=sort.direction == DESC,
    )


def build_history_view(store, filters: Optional[HistoryFilters] = None,
                       sort: Optional[SortState] = None) -> list[HistoryRow]:
    rows = store.query_history()
    rows = apply_filters(rows, filters or HistoryFilters())
    return sort_rows(rows, sort or SortState())
