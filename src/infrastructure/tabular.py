"""Tabular adapters (pandas) between uploaded sheets and the order engine."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from src.domain.orders.value_objects import ColumnDef

# Nested lists are shown in the expanded row, not as table columns
NESTED_FIELDS = ("subRows", "parcelas", "embalagens", "costs", "customData")


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        # list-like cells
        return value
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalar -> Python scalar
        return value.item()
    return value


def raw_rows_from_frame(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert an uploaded sheet into raw rows.

    Column labels are kept as written; NaN/NaT cells become None.
    """
    rows: List[Dict[str, Any]] = []
    columns = [str(c) for c in frame.columns]
    for values in frame.itertuples(index=False, name=None):
        rows.append({label: _clean_cell(value) for label, value in zip(columns, values)})
    return rows


def read_sheet(path: str, sheet_name: Union[int, str] = 0) -> List[Dict[str, Any]]:
    """Read a CSV or Excel file into raw rows."""
    if path.lower().endswith(".csv"):
        frame = pd.read_csv(path, dtype=object, keep_default_na=True)
    else:
        frame = pd.read_excel(path, sheet_name=sheet_name, dtype=object)
    return raw_rows_from_frame(frame)


def orders_to_frame(
    orders: Iterable[Mapping[str, Any]],
    columns: Optional[Sequence[ColumnDef]] = None,
    use_labels: bool = False,
) -> pd.DataFrame:
    """
    Build a display DataFrame from flattened order documents.

    Columns follow the metadata order; keys absent from the metadata are
    appended after it. Nested lists are left out.
    """
    records = [{k: v for k, v in order.items() if k not in NESTED_FIELDS} for order in orders]
    frame = pd.DataFrame.from_records(records)

    if columns:
        ordered = [c.id for c in columns if c.id in frame.columns]
        ordered += [c for c in frame.columns if c not in ordered]
        frame = frame.reindex(columns=ordered)
        if use_labels:
            labels = {c.id: c.label for c in columns}
            frame = frame.rename(columns=labels)

    return frame
