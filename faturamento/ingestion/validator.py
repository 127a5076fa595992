# ==============================================================================
# faturamento/ingestion/validator.py
# ------------------------------------------------------------------------------
# Opens the uploaded workbook and checks it has something to ingest.
# ==============================================================================

import io
import logging

import pandas as pd

from .errors import EmptySheet, InvalidFile, NoData


def read_spreadsheet(file_bytes):
    """
    Reads the first sheet of an .xls/.xlsx payload.

    Args:
        file_bytes (bytes): The raw uploaded file.

    Returns:
        pandas.DataFrame: One row per data line, labelled by the header row.

    Raises:
        InvalidFile: the payload is not a readable spreadsheet.
        EmptySheet: the workbook has no sheet, or its first sheet has no header.
        NoData: the first sheet has a header but no data rows.
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(file_bytes))
        sheet_names = xls.sheet_names
    except Exception as e:
        logging.warning(f"Uploaded file could not be opened as a spreadsheet: {e}")
        raise InvalidFile() from e

    if not sheet_names:
        raise EmptySheet()

    try:
        df = pd.read_excel(xls, sheet_name=sheet_names[0])
    except Exception as e:
        logging.warning(f"Sheet '{sheet_names[0]}' could not be read: {e}")
        raise InvalidFile() from e

    if len(df.columns) == 0:
        raise EmptySheet()

    df = df.dropna(how='all')
    if df.empty:
        raise NoData()

    logging.info(f"Read sheet '{sheet_names[0]}': {len(df)} data rows, columns={list(df.columns)}")
    return df
