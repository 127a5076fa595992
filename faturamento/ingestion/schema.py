# ==============================================================================
# faturamento/ingestion/schema.py
# ------------------------------------------------------------------------------
# Column labels of the sales-activity export, as produced by the gym
# management system. Every label lookup in the normalizer goes through here.
# ==============================================================================

SALE_DATE_COLUMN = 'Data Lançamento'
AMOUNT_COLUMN = 'Valor'

# Some exports spell the same column differently; the first present wins.
COLUMN_ALIASES = {
    'product': ['Produto'],
    'customer_name': ['Nome'],
    'responsible': ['Resp. Recebimento', 'Resp Recebimento', 'Responsável'],
    'sale_responsible': ['Resp. Venda', 'Resp Venda'],
    'enrollment': ['Matrícula', 'Matricula'],
    'registered_at': ['Data de Cadastro'],
    'plan': ['Plano'],
    'payment_method': ['Forma Pagamento'],
    'payment_terms': ['Condicao Pagamento', 'Condição Pagamento'],
    'contract_status': ['Situação de Contrato'],
    'duration': ['Duração', 'Duracao'],
    'contract_number': ['N° Contrato', 'Nº Contrato', 'N. Contrato'],
    'start_date': ['Data Início', 'Data Inicio'],
    'end_date': ['Data Término', 'Data Termino'],
    'modalities': ['Modalidades'],
    'company': ['Empresa'],
}

DATE_FORMAT = '%d/%m/%Y'
ISO_DATE_FORMAT = '%Y-%m-%d'

MISSING_TEXT = 'Não especificado'

# Receipts registered by the front desk account are credited to the seller.
ADMIN_RESPONSIBLE = 'Administrador'

INVALID_DATE_REASON = 'invalid or missing date'
