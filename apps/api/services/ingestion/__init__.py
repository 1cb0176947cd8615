"""Public video ingestion utilities."""

from services.ingestion.errors import (
    FileTooLarge,
    IngestionError,
    InvalidField,
    InvalidFileType,
    Misconfigured,
    MissingFile,
    PersistenceRejected,
    PersistenceUnreachable,
    ProviderFailure,
    ProviderTimeout,
    Unauthenticated,
)
from services.ingestion.pipeline import IngestionOutcome, ingest_video
from services.ingestion.validation import IncomingFile, measure_stream

__all__ = [
    "FileTooLarge",
    "IncomingFile",
    "IngestionError",
    "IngestionOutcome",
    "InvalidField",
    "InvalidFileType",
    "Misconfigured",
    "MissingFile",
    "PersistenceRejected",
    "PersistenceUnreachable",
    "ProviderFailure",
    "ProviderTimeout",
    "Unauthenticated",
    "ingest_video",
    "measure_stream",
]
