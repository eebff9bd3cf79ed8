"""AdsIntel — Error Hierarchy.

    AdsIntelError
    ├── StorageError          batch-level persistence failure
    ├── MissingIdentityError  no user id supplied
    ├── SecretStoreError      secret store unusable (e.g. no key)
    └── DateParseError        unparseable date in strict mode
"""


class AdsIntelError(Exception):
    """Base exception for all AdsIntel errors."""

    def __init__(self, message: str, code: str = "UNKNOWN"):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class StorageError(AdsIntelError):
    """A storage write failed; the whole batch was rolled back."""

    def __init__(self, operation: str, reason: str = ""):
        self.operation = operation
        msg = f"Storage failure during {operation}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, code="STORAGE_FAILED")


class MissingIdentityError(AdsIntelError):
    """Raised when an operation is invoked without a user id."""

    def __init__(self, operation: str = ""):
        msg = "A user id is required"
        if operation:
            msg += f" for {operation}"
        super().__init__(msg, code="IDENTITY_REQUIRED")


class SecretStoreError(AdsIntelError):
    def __init__(self, message: str):
        super().__init__(message, code="SECRET_STORE")


class DateParseError(AdsIntelError):
    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unrecognized date: {value!r}", code="DATE_PARSE")


def require_user_id(user_id: str | None, operation: str = "") -> str:
    """Return the stripped user id or fail closed."""
    if user_id is None or not str(user_id).strip():
        raise MissingIdentityError(operation)
    return str(user_id).strip()
