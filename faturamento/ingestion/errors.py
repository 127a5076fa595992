# ==============================================================================
# faturamento/ingestion/errors.py
# ------------------------------------------------------------------------------
# Failures that abort an ingestion call. Each carries the user-facing
# message and the HTTP status the upload endpoint answers with.
# Per-row problems are not raised; they are counted by the pipeline.
# ==============================================================================


class IngestionError(Exception):
    status_code = 400
    default_message = 'Erro ao processar a planilha.'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'success': False, 'error': self.message}


class InvalidInput(IngestionError):
    default_message = 'Requisição inválida.'


class InvalidUnit(IngestionError):
    default_message = 'Unidade inválida.'


class InvalidFile(IngestionError):
    default_message = 'Formato de arquivo inválido.'


class EmptySheet(IngestionError):
    default_message = 'A planilha não possui nenhuma aba com dados.'


class NoData(IngestionError):
    default_message = 'Nenhuma linha encontrada na planilha.'


class NoValidRows(NoData):
    default_message = 'Nenhuma venda válida encontrada na planilha. Verifique a coluna "Data Lançamento".'


class PersistenceError(IngestionError):
    status_code = 500
    default_message = 'Erro ao salvar os dados. Nenhuma alteração foi gravada.'
