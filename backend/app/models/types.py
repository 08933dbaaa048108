"""Column types shared by the ledger models."""

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from app.ledger.principal import Principal


class PrincipalType(TypeDecorator):
    """Stores a Principal as its identity string; NULL means "no identity"."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Principal):
            raise TypeError(f"Expected Principal, got {type(value).__name__}")
        return value.value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Principal(value)
