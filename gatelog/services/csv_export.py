"""
CSV exports for the history view (historial.csv) and the shift log (bitacora.csv).
Fixed Spanish headers, every value quoted, one row per line.
"""

import csv
import io
from typing import Iterable

HISTORY_FILENAME = "historial.csv"
NOTES_FILENAME = "bitacora.csv"

HISTORY_HEADERS = ["Fecha", "Hora", "Tipo", "Nombre", "Placa", "Destino", "Motivo", "Modelo", "Color", "Movimiento"]
HISTORY_FIELDS = ["date", "time", "kind", "name", "plate", "destination", "reason", "model", "color", "movement"]

NOTES_HEADERS = ["Fecha", "Hora", "Turno", "Nota"]
NOTES_FIELDS = ["date", "time", "shift", "note"]


def _to_csv(headers: list[str], fields: list[str], rows: Iterable) -> str:
    buf = io.StringIO()
    buf.write(",".join(headers) + "\n")     # headers unquoted
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows([getattr(row, f, None) or "" for f in fields] for row in rows)
    return buf.getvalue().rstrip("\n")


def history_to_csv(rows: Iterable) -> str:
    """Export the rows exactly as filtered and sorted by the caller."""
    return _to_csv(HISTORY_HEADERS, HISTORY_FIELDS, rows)


def notes_to_csv(notes: Iterable) -> str:
    return _to_csv(NOTES_HEADERS, NOTES_FIELDS, notes)
