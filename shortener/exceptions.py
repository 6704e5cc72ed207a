from typing import Optional


class InvalidURL(Exception):
    def __init__(self, url: object, reason: str):
        self.url = url
        self.reason = reason
        self.message = f"'{url}' is not a valid URL: {reason}"
        super().__init__(self.message)


class DuplicateMapping(Exception):
    def __init__(self, long_url: str, short_code: str, field: Optional[str] = None):
        self.long_url = long_url
        self.short_code = short_code
        self.field = field
        if field == "long_url":
            self.message = f"{long_url} has already been shortened."
        elif field == "short_code":
            self.message = f"Short code {short_code} is already in use."
        else:
            self.message = (
                f"A mapping for {long_url} or short code {short_code} already exists."
            )
        super().__init__(self.message)


class StorageFailed(Exception):
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        self.message = f"Storage operation '{operation}' failed: {details}"
        super().__init__(self.message)


class RecordNotFound(Exception):
    def __init__(self, record_type: str, identifier: str):
        self.record_type = record_type
        self.identifier = identifier
        self.message = f"{record_type} not found for identifier: {identifier}"
        super().__init__(self.message)


class EntropyFailure(Exception):
    """The secure random source failed. Not retryable."""

    def __init__(self, details: str):
        self.details = details
        self.message = f"Secure random source failed: {details}"
        super().__init__(self.message)
