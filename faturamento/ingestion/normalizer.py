# ==============================================================================
# faturamento/ingestion/normalizer.py
# ------------------------------------------------------------------------------
# Turns one raw spreadsheet row into a SaleRecord, or rejects it with a reason.
# Only the sale date can reject a row; every other field falls back to a
# sentinel text or zero.
# ==============================================================================

import re
import numbers
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

import pandas as pd

from .schema import (ADMIN_RESPONSIBLE, AMOUNT_COLUMN, COLUMN_ALIASES, DATE_FORMAT,
                     INVALID_DATE_REASON, ISO_DATE_FORMAT, MISSING_TEXT, SALE_DATE_COLUMN)

_NON_NUMERIC = re.compile(r'[^\d,.\-]')
_LEADING_INT = re.compile(r'\s*(\d+)')


@dataclass(frozen=True)
class SaleRecord:
    unit: str
    sale_date: date
    product: str = MISSING_TEXT
    customer_name: str = MISSING_TEXT
    responsible: str = MISSING_TEXT
    sale_responsible: str = MISSING_TEXT
    enrollment: str = MISSING_TEXT
    registered_at: Optional[date] = None
    plan: str = MISSING_TEXT
    payment_method: str = MISSING_TEXT
    payment_terms: str = MISSING_TEXT
    contract_status: str = MISSING_TEXT
    duration_months: int = 0
    contract_number: str = MISSING_TEXT
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    modalities: str = MISSING_TEXT
    company: str = MISSING_TEXT
    amount: float = 0.0
    raw_sale_date: str = ''
    raw_start_date: str = ''
    raw_end_date: str = ''
    raw_duration: str = ''

    @property
    def iso_date(self):
        return self.sale_date.strftime(ISO_DATE_FORMAT)

    def to_document(self):
        """Stored shape of a sale inside its daily bucket."""
        return {
            'produto': self.product,
            'nome': self.customer_name,
            'responsavel': self.responsible,
            'respVenda': self.sale_responsible,
            'matricula': self.enrollment,
            'dataCadastro': _iso_or_blank(self.registered_at),
            'numeroContrato': self.contract_number,
            'dataInicio': _iso_or_blank(self.start_date),
            'dataTermino': _iso_or_blank(self.end_date),
            'dataFim': _iso_or_blank(self.end_date),
            'dataInicioOriginal': self.raw_start_date,
            'dataTerminoOriginal': self.raw_end_date,
            'plano': self.plan,
            'formaPagamento': self.payment_method,
            'condicaoPagamento': self.payment_terms,
            'situacaoContrato': self.contract_status,
            'duracaoMeses': self.duration_months,
            'duracao': self.raw_duration,
            'modalidades': self.modalities,
            'empresa': self.company,
            'valor': self.amount,
            'dataLancamento': self.raw_sale_date,
            'dataFormatada': self.iso_date,
            'unidade': self.unit,
        }


# --- Cell Helpers ---

def _is_blank(value):
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _cell(row, labels):
    """Returns the first non-blank value among the given column labels."""
    for label in labels:
        value = row.get(label)
        if not _is_blank(value):
            return value
    return None


def _text(value):
    if _is_blank(value):
        return MISSING_TEXT
    if isinstance(value, float) and value.is_integer():
        # Numeric ids come back from Excel as floats (123 -> 123.0)
        return str(int(value))
    return str(value).strip()


def parse_sale_date(value):
    """
    Parses a DD/MM/YYYY cell. Cells Excel already typed as dates are used
    as they are. Returns None when the value is missing or malformed.
    """
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def parse_amount(value):
    """
    Parses a Brazilian formatted amount ("R$ 1.234,56" -> 1234.56).
    Anything unparseable becomes 0.
    """
    if _is_blank(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, numbers.Number):
        amount = float(value)
    else:
        cleaned = _NON_NUMERIC.sub('', str(value))
        cleaned = cleaned.replace('.', '').replace(',', '.')
        try:
            amount = float(cleaned)
        except ValueError:
            return 0.0
    # Amounts are never negative
    return amount if amount > 0 else 0.0


def parse_duration(value):
    if _is_blank(value):
        return 0
    if isinstance(value, numbers.Number) and not isinstance(value, bool):
        return int(value) if value > 0 else 0
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def _iso_or_blank(value):
    return value.strftime(ISO_DATE_FORMAT) if value else ''


def _raw_date_text(value):
    if _is_blank(value):
        return ''
    if isinstance(value, (datetime, date)):
        return value.strftime(DATE_FORMAT)
    return str(value).strip()


# --- Row Normalization ---

def normalize_row(row, unit, auto_convert_admin=True):
    """
    Normalizes one spreadsheet row.

    Args:
        row (Mapping): column label -> raw cell value (a pandas Series or dict).
        unit (str): the unit the upload belongs to.
        auto_convert_admin (bool): credit admin-registered receipts to the seller.

    Returns:
        tuple: (SaleRecord, None) for a valid row, (None, reason) otherwise.
    """
    raw_date = _cell(row, [SALE_DATE_COLUMN])
    sale_date = parse_sale_date(raw_date)
    if sale_date is None:
        return None, INVALID_DATE_REASON

    responsible = _text(_cell(row, COLUMN_ALIASES['responsible']))
    raw_seller = _cell(row, COLUMN_ALIASES['sale_responsible'])
    sale_responsible = _text(raw_seller)
    if auto_convert_admin and responsible == ADMIN_RESPONSIBLE and raw_seller is not None:
        responsible = sale_responsible

    raw_duration = _cell(row, COLUMN_ALIASES['duration'])
    raw_start = _cell(row, COLUMN_ALIASES['start_date'])
    raw_end = _cell(row, COLUMN_ALIASES['end_date'])

    record = SaleRecord(
        unit=unit,
        sale_date=sale_date,
        product=_text(_cell(row, COLUMN_ALIASES['product'])),
        customer_name=_text(_cell(row, COLUMN_ALIASES['customer_name'])),
        responsible=responsible,
        sale_responsible=sale_responsible,
        enrollment=_text(_cell(row, COLUMN_ALIASES['enrollment'])),
        registered_at=parse_sale_date(_cell(row, COLUMN_ALIASES['registered_at'])),
        plan=_text(_cell(row, COLUMN_ALIASES['plan'])),
        payment_method=_text(_cell(row, COLUMN_ALIASES['payment_method'])),
        payment_terms=_text(_cell(row, COLUMN_ALIASES['payment_terms'])),
        contract_status=_text(_cell(row, COLUMN_ALIASES['contract_status'])),
        duration_months=parse_duration(raw_duration),
        contract_number=_text(_cell(row, COLUMN_ALIASES['contract_number'])),
        start_date=parse_sale_date(raw_start),
        end_date=parse_sale_date(raw_end),
        modalities=_text(_cell(row, COLUMN_ALIASES['modalities'])),
        company=_text(_cell(row, COLUMN_ALIASES['company'])),
        amount=parse_amount(_cell(row, [AMOUNT_COLUMN])),
        raw_sale_date=_raw_date_text(raw_date),
        raw_start_date=_raw_date_text(raw_start),
        raw_end_date=_raw_date_text(raw_end),
        raw_duration='' if _is_blank(raw_duration) else _text(raw_duration),
    )
    return record, None
