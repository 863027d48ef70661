import re

from .equivalents import EQUIVALENT_COLUMNS


def normalize(col):
    """Normalize column names: lowercase, underscores, remove punctuation."""
    text = str(col).strip().lower()
    if text.startswith("unnamed") or text in ("", "nan"):
        return ""
    text = re.sub(r"\s+", "_", text)
    text = re.sub(r"[^a-z0-9_]", "", text)
    return re.sub(r"_+", "_", text).strip("_")


def _lookup_table():
    table = {}
    for canonical, equivalents in EQUIVALENT_COLUMNS.items():
        table[normalize(canonical)] = canonical
        for alias in equivalents:
            table[normalize(alias)] = canonical
    return table


def map_equivalent_columns(columns):
    """Map spreadsheet headers to canonical field names, keeping unknown headers normalized."""
    table = _lookup_table()
    mapping = {}
    for col in columns:
        norm = normalize(col)
        mapping[str(col)] = table.get(norm, norm)
    return mapping
