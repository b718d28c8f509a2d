"""Conversion of decoded sheets to pandas DataFrames."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pandas as pd

from xlsx_decoder.models import Cell, Sheet


def column_sort_key(column: str) -> tuple[int, str]:
    """Order column keys the way a spreadsheet does: A..Z, AA..AZ, BA.."""
    return len(column), column.upper()


def raw_value(cell: Cell) -> str:
    return cell.value


def sheet_to_frame(
    sheet: Sheet, value_of: Callable[[Cell], Any] = raw_value
) -> pd.DataFrame:
    """Lay a sheet out as a DataFrame indexed by row number.

    There is one column per column key present in any row, in spreadsheet
    order. Positions without a cell hold None.

    Args:
        sheet: Decoded sheet.
        value_of: Maps each cell to the value placed in the frame; the raw
            stored text by default.
    """
    keys = {key for row in sheet.values() for key in row}
    columns = sorted(keys, key=column_sort_key)
    row_numbers = sorted(sheet)
    data = [
        [
            value_of(sheet[number][column]) if column in sheet[number] else None
            for column in columns
        ]
        for number in row_numbers
    ]
    return pd.DataFrame(
        data,
        index=pd.Index(row_numbers, name="row", dtype="int64"),
        columns=pd.Index(columns, dtype="object"),
        dtype="object",
    )
