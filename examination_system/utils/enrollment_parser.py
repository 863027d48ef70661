# examination_system/utils/enrollment_parser.py

import zipfile

import pandas as pd

from .column_mapper import map_equivalent_columns
from .equivalents import IDENTIFIER_COLUMNS

CSV_EXTENSIONS = (".csv", ".txt")


def _read_frame(file, filename):
    if filename.lower().endswith(CSV_EXTENSIONS):
        return pd.read_csv(file, dtype=str)
    return pd.read_excel(file, dtype=str)


def _sanitize_dataframe(df):
    """Drop blank columns and rows, strip cells and replace NaN with None."""
    df = df.loc[:, [col for col in df.columns if str(col).strip() != ""]]
    df = df.dropna(how="all")
    df = df.apply(lambda column: column.map(lambda v: v.strip() if isinstance(v, str) else v))
    return df.astype(object).where(pd.notna(df), None)


def parse_enrollment_file(file):
    """
    Read a CSV or Excel sheet listing students to enroll.

    Returns ``{"status": "ok", "rows": [...]}`` with canonical column names
    (``email``, ``username``, ``name``...) or an error payload describing why
    the sheet cannot be used.
    """
    filename = getattr(file, "name", "uploaded_file") or "uploaded_file"

    try:
        df = _read_frame(file, filename)
    except (ValueError, UnicodeDecodeError, zipfile.BadZipFile, pd.errors.ParserError) as exc:
        return {
            "status": "error",
            "file": filename,
            "message": "Failed to read uploaded file.",
            "details": str(exc),
        }

    mapping = map_equivalent_columns(df.columns)
    df = df.rename(columns=lambda col: mapping.get(str(col), str(col)))
    df = _sanitize_dataframe(df)

    if not any(col in df.columns for col in IDENTIFIER_COLUMNS):
        return {
            "status": "error",
            "file": filename,
            "message": f"Missing identifier column: expected one of {', '.join(IDENTIFIER_COLUMNS)}.",
        }

    return {
        "status": "ok",
        "file": filename,
        "columns": list(df.columns),
        "rows": df.to_dict(orient="records"),
    }
