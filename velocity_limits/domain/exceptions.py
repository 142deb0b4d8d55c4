"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Load request is malformed or violates an input invariant"""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class ParseError(ValidationError):
    """Amount or timestamp could not be parsed from its wire format"""

    pass


class PersistenceError(DomainException):
    """Ledger store read or write failed"""

    pass


class StoreUnavailableError(PersistenceError):
    """Ledger store unreachable or timed out"""

    pass


class DuplicateKeyError(PersistenceError):
    """An attempt with the same (load_id, customer_id) is already stored"""

    def __init__(self, load_id: str, customer_id: str):
        super().__init__(f"Load {load_id} already recorded for customer {customer_id}")
        self.load_id = load_id
        self.customer_id = customer_id
