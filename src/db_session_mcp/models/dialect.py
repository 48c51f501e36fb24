"""Information-schema dialect families."""

from enum import Enum


class Dialect(str, Enum):
    """The two supported SQL information-schema conventions."""

    POSTGRES = "postgres"
    MYSQL = "mysql"

    @property
    def other(self) -> "Dialect":
        """The fallback family for this one."""
        return Dialect.MYSQL if self is Dialect.POSTGRES else Dialect.POSTGRES
