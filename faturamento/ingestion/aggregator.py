# ==============================================================================
# faturamento/ingestion/aggregator.py
# ------------------------------------------------------------------------------
# Groups normalized sales into the daily buckets they are stored under.
# ==============================================================================


def group_by_day(records):
    """Partitions SaleRecords by ISO sale date, keeping upload order."""
    grouped = {}
    for record in records:
        grouped.setdefault(record.iso_date, []).append(record)
    return grouped


def bucket_key(unit, iso_date):
    """'2025-03-07' -> (unit, '2025', '03', '07')"""
    year, month, day = iso_date.split('-')
    return unit, year, month, day
