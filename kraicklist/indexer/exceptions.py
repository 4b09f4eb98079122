"""
Custom exceptions for the indexer and search services.
"""


from typing import Optional


class IndexerException(Exception):
    """Base exception for all indexer-related errors."""

    pass


class RetryableException(IndexerException):
    """Exception that indicates an operation may succeed if retried."""

    pass


class NonRetryableException(IndexerException):
    """Exception that indicates an operation should not be retried."""

    pass


class EngineException(RetryableException):
    """Search engine request failed (network error or non-2xx response)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


class DocumentSourceError(NonRetryableException):
    """The bulk source could not be opened or read."""

    def __init__(self, path: str, original_error: Exception):
        super().__init__(f"unable to read source file {path}: {original_error}")
        self.path = path
        self.original_error = original_error


class DocumentParseError(NonRetryableException):
    """A source line is not a JSON object."""

    def __init__(self, line_number: int, reason: str):
        super().__init__(f"line {line_number}: not a JSON object ({reason})")
        self.line_number = line_number


class MissingIdentifierError(NonRetryableException):
    """A parsable record has no identifier field."""

    def __init__(self, line_number: int, id_field: str = "id"):
        super().__init__(f"missing '{id_field}' field in document on line {line_number}")
        self.line_number = line_number
        self.id_field = id_field


class SchemaError(NonRetryableException):
    """Collection creation failed."""

    def __init__(self, collection: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"collection creation failed for '{collection}': {message}")
        self.collection = collection
        self.status_code = status_code


class DocumentImportError(NonRetryableException):
    """Import of a batch failed after exhausting every attempt."""

    def __init__(self, attempts: int, batch_index: int, last_exception: Optional[Exception] = None):
        super().__init__(f"failed to import batch {batch_index} after {attempts} attempts: {last_exception}")
        self.attempts = attempts
        self.batch_index = batch_index
        self.last_exception = last_exception


class VerificationError(NonRetryableException):
    """Post-import document count could not be read."""

    pass


class SynonymError(NonRetryableException):
    """Synonym rule upsert or listing failed."""

    def __init__(self, message: str, synonym_id: Optional[str] = None):
        if synonym_id:
            message = f"synonym '{synonym_id}': {message}"
        super().__init__(message)
        self.synonym_id = synonym_id


class QueryError(NonRetryableException):
    """Malformed or rejected search request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationException(NonRetryableException):
    """Configuration-related errors."""

    pass
