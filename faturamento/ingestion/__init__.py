from .errors import (IngestionError, InvalidInput, InvalidUnit, InvalidFile, EmptySheet,
                     NoData, NoValidRows, PersistenceError)
from .pipeline import ingest
