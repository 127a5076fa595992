# tests/conftest.py

import io

import pandas as pd
import pytest


@pytest.fixture
def app_with_db():
    """
    Creates a new app instance backed by an in-memory database and yields it
    within an application context.
    """
    from config import TestConfig
    from faturamento import create_app, db
    from faturamento.rewards.engine import CalculationConfig

    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        CalculationConfig._instance = None
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()
    CalculationConfig._instance = None


@pytest.fixture
def client(app_with_db):
    return app_with_db.test_client()


@pytest.fixture
def make_workbook():
    """Builds an .xlsx payload in memory from a list of row dicts."""
    def _make(rows, columns=None):
        buffer = io.BytesIO()
        pd.DataFrame(rows, columns=columns).to_excel(buffer, index=False)
        return buffer.getvalue()
    return _make


@pytest.fixture
def sale_row():
    """One row as exported by the front desk system, with overridable cells."""
    def _row(**overrides):
        row = {
            'Produto': 'Plano Mensal',
            'Matrícula': '1001',
            'Nome': 'Maria Souza',
            'Resp. Recebimento': 'Ana Silva',
            'Resp. Venda': 'Ana Silva',
            'Data de Cadastro': '01/02/2025',
            'Plano': 'Mensal',
            'Forma Pagamento': 'Cartão de Crédito',
            'Data Lançamento': '15/03/2025',
            'Valor': 'R$ 1.234,56',
        }
        row.update(overrides)
        return row
    return _row
