# tests/test_pipeline.py

import pandas as pd
import pytest
from sqlalchemy.exc import SQLAlchemyError

from faturamento import db
from faturamento.ingestion import (EmptySheet, InvalidFile, InvalidUnit, NoData, NoValidRows,
                                   PersistenceError, ingest)
from faturamento.ingestion import pipeline
from faturamento.models import DailyBucket


def _bucket(unit, iso_date):
    year, month, day = iso_date.split('-')
    return DailyBucket.query.filter_by(unit=unit, year=year, month=month, day=day).one()


def test_three_row_file_with_one_bad_date(app_with_db, make_workbook, sale_row):
    payload = make_workbook([
        sale_row(**{'Nome': 'Cliente 1'}),
        sale_row(**{'Nome': 'Cliente 2', 'Data Lançamento': '99/99/2025'}),
        sale_row(**{'Nome': 'Cliente 3', 'Valor': 'R$ 200,00'}),
    ])

    result = ingest(payload, 'alphaville')

    assert result == {
        'total_rows': 3,
        'rows_processed': 2,
        'rows_with_errors': 1,
        'days_written': 1,
        'has_warnings': True,
    }
    assert DailyBucket.query.count() == 1
    bucket = _bucket('alphaville', '2025-03-15')
    assert [s['nome'] for s in bucket.sales] == ['Cliente 1', 'Cliente 3']
    assert bucket.path == 'faturamento/alphaville/2025/03/dias/15'


def test_bucket_document_shape(app_with_db, make_workbook, sale_row):
    ingest(make_workbook([sale_row()]), 'alphaville')

    doc = _bucket('alphaville', '2025-03-15').to_document()

    assert set(doc) == {'date', 'sales', 'createdAt', 'processedAt'}
    assert doc['date'] == '2025-03-15'
    assert doc['createdAt'] is not None
    assert doc['processedAt'] is not None
    assert doc['sales'][0]['valor'] == pytest.approx(1234.56)


def test_one_bucket_per_day(app_with_db, make_workbook, sale_row):
    payload = make_workbook([
        sale_row(**{'Data Lançamento': '01/03/2025'}),
        sale_row(**{'Data Lançamento': '02/03/2025'}),
        sale_row(**{'Data Lançamento': '02/03/2025'}),
        sale_row(**{'Data Lançamento': '01/04/2025'}),
    ])

    result = ingest(payload, 'marista')

    assert result['days_written'] == 3
    assert result['has_warnings'] is False
    assert len(_bucket('marista', '2025-03-02').sales) == 2
    assert len(_bucket('marista', '2025-04-01').sales) == 1


def test_ingesting_same_file_twice_is_idempotent(app_with_db, make_workbook, sale_row):
    payload = make_workbook([sale_row(**{'Nome': 'A'}), sale_row(**{'Nome': 'B'})])

    ingest(payload, 'alphaville')
    first = _bucket('alphaville', '2025-03-15').sales
    ingest(payload, 'alphaville')

    assert DailyBucket.query.count() == 1
    assert _bucket('alphaville', '2025-03-15').sales == first
    assert len(first) == 2


def test_second_upload_replaces_the_day(app_with_db, make_workbook, sale_row):
    ingest(make_workbook([sale_row(**{'Nome': 'A'}), sale_row(**{'Nome': 'B'})]), 'alphaville')
    ingest(make_workbook([sale_row(**{'Nome': 'C'})]), 'alphaville')

    assert [s['nome'] for s in _bucket('alphaville', '2025-03-15').sales] == ['C']


def test_days_not_in_upload_are_untouched(app_with_db, make_workbook, sale_row):
    ingest(make_workbook([sale_row(**{'Data Lançamento': '14/03/2025', 'Nome': 'A'})]), 'alphaville')
    ingest(make_workbook([sale_row(**{'Data Lançamento': '15/03/2025', 'Nome': 'B'})]), 'alphaville')

    assert [s['nome'] for s in _bucket('alphaville', '2025-03-14').sales] == ['A']
    assert DailyBucket.query.count() == 2


def test_units_are_isolated(app_with_db, make_workbook, sale_row):
    payload = make_workbook([sale_row()])
    ingest(payload, 'alphaville')
    ingest(payload, 'palmas')

    assert DailyBucket.query.count() == 2
    assert _bucket('palmas', '2025-03-15').path == 'faturamento/palmas/2025/03/dias/15'


def test_unit_is_normalized(app_with_db, make_workbook, sale_row):
    ingest(make_workbook([sale_row()]), '  Alphaville ')
    assert DailyBucket.query.one().unit == 'alphaville'


@pytest.mark.parametrize('unit', ['nowhere', '', None])
def test_invalid_unit_writes_nothing(app_with_db, make_workbook, sale_row, unit):
    with pytest.raises(InvalidUnit):
        ingest(make_workbook([sale_row()]), unit)
    assert DailyBucket.query.count() == 0


def test_valid_units_can_be_overridden(app_with_db, make_workbook, sale_row):
    with pytest.raises(InvalidUnit):
        ingest(make_workbook([sale_row()]), 'alphaville', valid_units=('centro',))
    ingest(make_workbook([sale_row()]), 'centro', valid_units=('centro',))
    assert DailyBucket.query.one().unit == 'centro'


def test_unreadable_file(app_with_db):
    with pytest.raises(InvalidFile):
        ingest(b'this is not a spreadsheet', 'alphaville')


def test_sheet_without_header(app_with_db, make_workbook):
    with pytest.raises(EmptySheet):
        ingest(make_workbook([]), 'alphaville')


def test_sheet_with_header_only(app_with_db, make_workbook):
    with pytest.raises(NoData):
        ingest(make_workbook([], columns=['Data Lançamento', 'Valor']), 'alphaville')


def test_no_valid_rows_fails_before_writing(app_with_db, make_workbook, sale_row):
    payload = make_workbook([sale_row(**{'Data Lançamento': 'x'}), sale_row(**{'Data Lançamento': None})])

    with pytest.raises(NoValidRows) as excinfo:
        ingest(payload, 'alphaville')

    assert isinstance(excinfo.value, NoData)
    assert DailyBucket.query.count() == 0


def test_row_exception_is_counted_not_raised(app_with_db, make_workbook, sale_row, monkeypatch):
    original = pipeline.normalize_row

    def flaky(row, unit, auto_convert_admin=True):
        if row.get('Nome') == 'Boom':
            raise RuntimeError('corrupt cell')
        return original(row, unit, auto_convert_admin=auto_convert_admin)

    monkeypatch.setattr(pipeline, 'normalize_row', flaky)
    payload = make_workbook([sale_row(**{'Nome': 'Boom'}), sale_row(**{'Nome': 'Ok'})])

    result = ingest(payload, 'alphaville')

    assert result['rows_processed'] == 1
    assert result['rows_with_errors'] == 1
    assert [s['nome'] for s in _bucket('alphaville', '2025-03-15').sales] == ['Ok']


def test_commit_failure_writes_no_day(app_with_db, make_workbook, sale_row, monkeypatch):
    payload = make_workbook([
        sale_row(**{'Data Lançamento': '01/03/2025'}),
        sale_row(**{'Data Lançamento': '02/03/2025'}),
    ])

    def failing_commit():
        raise SQLAlchemyError('disk full')

    monkeypatch.setattr(db.session(), 'commit', failing_commit)
    with pytest.raises(PersistenceError):
        ingest(payload, 'alphaville')
    monkeypatch.undo()

    assert DailyBucket.query.count() == 0


def test_native_excel_dates_and_numbers(app_with_db, make_workbook):
    payload = make_workbook([
        {'Data Lançamento': pd.Timestamp(2025, 3, 20), 'Valor': 350.0, 'Resp. Recebimento': 'Ana'},
    ])

    ingest(payload, 'buenavista')

    sale = _bucket('buenavista', '2025-03-20').sales[0]
    assert sale['valor'] == pytest.approx(350.0)
    assert sale['dataFormatada'] == '2025-03-20'
