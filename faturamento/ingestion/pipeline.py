# ==============================================================================
# faturamento/ingestion/pipeline.py
# ------------------------------------------------------------------------------
# Upload orchestration: spreadsheet -> normalized sales -> daily buckets.
# The whole set of touched days is committed in one transaction.
# ==============================================================================

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from faturamento import db
from faturamento.models import DailyBucket
from .aggregator import bucket_key, group_by_day
from .errors import InvalidUnit, NoValidRows, PersistenceError
from .normalizer import normalize_row
from .validator import read_spreadsheet


def resolve_unit(unit_id, valid_units=None):
    """Normalizes a unit identifier and checks it against the known units."""
    if valid_units is None:
        valid_units = current_app.config['VALID_UNITS']
    unit = (unit_id or '').strip().lower()
    if not unit:
        raise InvalidUnit('Unidade não especificada.')
    if unit not in valid_units:
        raise InvalidUnit(f"Unidade inválida. Valores aceitos: {', '.join(valid_units)}")
    return unit


def normalize_rows(df, unit, auto_convert_admin=True):
    """
    Runs every row through the normalizer. A row that fails, for whatever
    reason, is counted and never stops the batch.

    Returns:
        tuple: (list of SaleRecord, number of rows with errors)
    """
    records = []
    rows_with_errors = 0
    for index, row in df.iterrows():
        excel_row_num = index + 2
        try:
            record, reason = normalize_row(row, unit, auto_convert_admin=auto_convert_admin)
        except Exception as e:
            logging.warning(f"Row {excel_row_num} raised while normalizing and was counted as an error: {e}", exc_info=True)
            rows_with_errors += 1
            continue

        if record is None:
            logging.debug(f"SKIPPING Row {excel_row_num}: {reason}.")
            rows_with_errors += 1
            continue
        records.append(record)
    return records, rows_with_errors


def write_daily_buckets(unit, grouped):
    """
    Replaces the stored bucket of every day in `grouped`. Either every day is
    written or none is.
    """
    processed_at = datetime.utcnow()
    try:
        for iso_date, records in grouped.items():
            _, year, month, day = bucket_key(unit, iso_date)
            bucket = DailyBucket.query.filter_by(unit=unit, year=year, month=month, day=day).first()
            if bucket is None:
                bucket = DailyBucket(unit=unit, year=year, month=month, day=day, date=iso_date)
                db.session.add(bucket)
            else:
                logging.info(f"Overwriting {bucket.path} ({len(bucket.sales)} stored sales -> {len(records)}).")
            bucket.sales = [r.to_document() for r in records]
            bucket.created_at = db.func.now()
            bucket.processed_at = processed_at
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logging.error(f"Commit of {len(grouped)} daily buckets for '{unit}' failed: {e}", exc_info=True)
        raise PersistenceError() from e


def ingest(file_bytes, unit_id, auto_convert_admin=True, valid_units=None):
    """
    Ingests one sales spreadsheet for a unit.

    Args:
        file_bytes (bytes): the uploaded .xls/.xlsx content.
        unit_id (str): target unit; case and surrounding spaces are ignored.
        auto_convert_admin (bool): credit admin-registered receipts to the seller.
        valid_units (Iterable[str]): overrides the configured VALID_UNITS.

    Returns:
        dict: total_rows, rows_processed, rows_with_errors, days_written, has_warnings.

    Raises:
        IngestionError: any subclass; nothing is written in that case.
    """
    unit = resolve_unit(unit_id, valid_units)
    df = read_spreadsheet(file_bytes)

    records, rows_with_errors = normalize_rows(df, unit, auto_convert_admin=auto_convert_admin)
    grouped = group_by_day(records)
    if not grouped:
        logging.warning(f"Upload for '{unit}' had {len(df)} rows and none of them was valid.")
        raise NoValidRows()

    write_daily_buckets(unit, grouped)

    result = {
        'total_rows': len(df),
        'rows_processed': len(records),
        'rows_with_errors': rows_with_errors,
        'days_written': len(grouped),
        'has_warnings': rows_with_errors > 0,
    }
    logging.info(f"Ingestion for '{unit}' finished: {result}")
    return result
