"""Column, index and command definitions collected by a Blueprint."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

from ..errors import InvalidDefinition


class ColumnType(str, Enum):
    """Abstract column types understood by every grammar.

    The value doubles as the type identifier looked up in the custom
    type registry, so registering ``tinyinteger`` overrides TINY_INTEGER.
    """
    CHAR = "char"
    STRING = "string"
    TINY_TEXT = "tinytext"
    TEXT = "text"
    MEDIUM_TEXT = "mediumtext"
    LONG_TEXT = "longtext"
    INTEGER = "integer"
    TINY_INTEGER = "tinyinteger"
    SMALL_INTEGER = "smallinteger"
    MEDIUM_INTEGER = "mediuminteger"
    BIG_INTEGER = "biginteger"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    ENUM = "enum"
    JSON = "json"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BINARY = "binary"
    UUID = "uuid"
    CUSTOM = "custom"


TEXT_TYPES = frozenset({
    ColumnType.TINY_TEXT, ColumnType.TEXT, ColumnType.MEDIUM_TEXT, ColumnType.LONG_TEXT,
})

INTEGER_TYPES = frozenset({
    ColumnType.INTEGER, ColumnType.TINY_INTEGER, ColumnType.SMALL_INTEGER,
    ColumnType.MEDIUM_INTEGER, ColumnType.BIG_INTEGER,
})

NUMERIC_TYPES = INTEGER_TYPES | {ColumnType.FLOAT, ColumnType.DOUBLE, ColumnType.DECIMAL}

# Types accepting a length: the string, text and binary families
SIZED_TYPES = TEXT_TYPES | {ColumnType.CHAR, ColumnType.STRING, ColumnType.BINARY}

PRECISION_TYPES = frozenset({
    ColumnType.FLOAT, ColumnType.DOUBLE, ColumnType.DECIMAL,
    ColumnType.DATETIME, ColumnType.TIME, ColumnType.TIMESTAMP,
})


class IndexKind(str, Enum):
    """Index kinds; the value is the suffix used for generated names."""
    PRIMARY = "primary"
    UNIQUE = "unique"
    INDEX = "index"
    FULLTEXT = "fulltext"
    SPATIAL = "spatialindex"


class CommandType(str, Enum):
    """Operations a blueprint can carry."""
    CREATE = "create"
    ADD = "add"
    CHANGE = "change"
    DROP = "drop"
    DROP_IF_EXISTS = "drop_if_exists"
    RENAME = "rename"
    DROP_COLUMN = "drop_column"
    RENAME_COLUMN = "rename_column"
    INDEX = "index"
    DROP_INDEX = "drop_index"
    RENAME_INDEX = "rename_index"
    FOREIGN = "foreign"
    DROP_FOREIGN = "drop_foreign"
    TABLE_COMMENT = "table_comment"


@dataclass(frozen=True)
class Expression:
    """Raw SQL emitted verbatim, e.g. ``Expression("CURRENT_TIMESTAMP")``."""
    value: str

    def __str__(self) -> str:
        return self.value


class ColumnDefinition:
    """A single column declared on a blueprint.

    Modifiers return the definition so they can be chained::

        table.string("email", 100).nullable().unique()

    Every modifier the caller applies is recorded in ``explicit``; a changed
    column only overrides the live column's attributes listed there.
    """

    def __init__(
        self,
        name: str,
        type: ColumnType,
        length: Optional[int] = None,
        precision: Optional[int] = None,
        scale: Optional[int] = None,
        allowed: Optional[List[str]] = None,
        custom_type: Optional[str] = None,
    ):
        if not name:
            raise InvalidDefinition("Column name must not be empty")
        self.name = name
        self.type = ColumnType(type)
        self.length = length
        self.precision = precision
        self.scale = scale
        self.allowed = list(allowed) if allowed is not None else None
        self.custom_type = custom_type.lower() if custom_type else None

        self.is_nullable = False
        self.default_value: Any = None
        self.has_default = False
        self.is_unsigned = False
        self.is_auto_increment = False
        self.comment_text: Optional[str] = None
        self.is_change = False
        self.fluent_indexes: Dict[IndexKind, Union[bool, str]] = {}
        self.explicit: Set[str] = set()

        self._validate()

    def _validate(self) -> None:
        if self.length is not None and self.type not in SIZED_TYPES:
            raise InvalidDefinition(
                f"Column '{self.name}': length is only valid for string, text and binary types",
                details={"column": self.name, "type": self.type.value},
            )
        if self.length is not None and self.length <= 0:
            raise InvalidDefinition(
                f"Column '{self.name}': length must be positive",
                details={"column": self.name, "length": self.length},
            )
        if (self.precision is not None or self.scale is not None) and self.type not in PRECISION_TYPES:
            raise InvalidDefinition(
                f"Column '{self.name}': precision is not valid for type {self.type.value}",
                details={"column": self.name, "type": self.type.value},
            )
        if self.type == ColumnType.ENUM and not self.allowed:
            raise InvalidDefinition(
                f"Column '{self.name}': enum columns require a list of allowed values",
                details={"column": self.name},
            )
        # Registration is checked by the grammar, against its own registry
        if self.type == ColumnType.CUSTOM and not self.custom_type:
            raise InvalidDefinition(
                f"Column '{self.name}': custom columns require a type identifier",
                details={"column": self.name},
            )

    @property
    def type_identifier(self) -> str:
        """Identifier used for custom type lookups."""
        if self.type == ColumnType.CUSTOM:
            return self.custom_type
        return self.type.value

    def nullable(self, value: bool = True) -> "ColumnDefinition":
        self.is_nullable = value
        self.explicit.add("nullable")
        return self

    def default(self, value: Any) -> "ColumnDefinition":
        self.default_value = value
        self.has_default = True
        self.explicit.add("default")
        return self

    def unsigned(self) -> "ColumnDefinition":
        if self.type not in NUMERIC_TYPES:
            raise InvalidDefinition(
                f"Column '{self.name}': unsigned is only valid for numeric types",
                details={"column": self.name, "type": self.type.value},
            )
        self.is_unsigned = True
        self.explicit.add("unsigned")
        return self

    def auto_increment(self) -> "ColumnDefinition":
        if self.type not in INTEGER_TYPES:
            raise InvalidDefinition(
                f"Column '{self.name}': auto increment requires an integer type",
                details={"column": self.name, "type": self.type.value},
            )
        self.is_auto_increment = True
        self.explicit.add("auto_increment")
        return self

    def comment(self, text: str) -> "ColumnDefinition":
        self.comment_text = text
        self.explicit.add("comment")
        return self

    def change(self) -> "ColumnDefinition":
        """Alter the existing column instead of adding a new one."""
        self.is_change = True
        return self

    def primary(self, name: Union[bool, str] = True) -> "ColumnDefinition":
        self.fluent_indexes[IndexKind.PRIMARY] = name
        return self

    def unique(self, name: Union[bool, str] = True) -> "ColumnDefinition":
        self.fluent_indexes[IndexKind.UNIQUE] = name
        return self

    def index(self, name: Union[bool, str] = True) -> "ColumnDefinition":
        self.fluent_indexes[IndexKind.INDEX] = name
        return self

    def fulltext(self, name: Union[bool, str] = True) -> "ColumnDefinition":
        self.fluent_indexes[IndexKind.FULLTEXT] = name
        return self

    def spatial_index(self, name: Union[bool, str] = True) -> "ColumnDefinition":
        self.fluent_indexes[IndexKind.SPATIAL] = name
        return self

    def __repr__(self) -> str:
        return f"ColumnDefinition(name={self.name!r}, type={self.type_identifier!r})"


@dataclass
class IndexDefinition:
    """An index over one or more columns, in declaration order."""
    kind: IndexKind
    columns: List[str]
    name: Optional[str] = None
    algorithm: Optional[str] = None
    language: Optional[str] = None  # fulltext only

    def __post_init__(self):
        if not self.columns:
            raise InvalidDefinition(
                "An index needs at least one column",
                details={"kind": self.kind.value, "name": self.name},
            )


@dataclass
class ForeignKeyDefinition:
    """A foreign key constraint, completed fluently::

        table.foreign("user_id").references("id").on("users").on_delete("cascade")
    """
    columns: List[str]
    name: Optional[str] = None
    referenced_columns: List[str] = field(default_factory=list)
    referenced_table: Optional[str] = None
    on_delete_action: Optional[str] = None
    on_update_action: Optional[str] = None

    def __post_init__(self):
        if not self.columns:
            raise InvalidDefinition("A foreign key needs at least one column")

    def references(self, *columns: str) -> "ForeignKeyDefinition":
        self.referenced_columns = list(columns)
        return self

    def on(self, table: str) -> "ForeignKeyDefinition":
        self.referenced_table = table
        return self

    def on_delete(self, action: str) -> "ForeignKeyDefinition":
        self.on_delete_action = action.upper()
        return self

    def on_update(self, action: str) -> "ForeignKeyDefinition":
        self.on_update_action = action.upper()
        return self

    def validate(self) -> None:
        if not self.referenced_table or not self.referenced_columns:
            raise InvalidDefinition(
                f"Foreign key on ({', '.join(self.columns)}) is missing its referenced table or columns",
                details={"columns": self.columns, "name": self.name},
            )
        if len(self.referenced_columns) != len(self.columns):
            raise InvalidDefinition(
                "Foreign key column count does not match the referenced column count",
                details={"columns": self.columns, "references": self.referenced_columns},
            )


@dataclass
class Command:
    """One blueprint operation; which fields are set depends on ``type``."""
    type: CommandType
    columns: List[ColumnDefinition] = field(default_factory=list)
    names: List[str] = field(default_factory=list)
    index: Optional[IndexDefinition] = None
    foreign: Optional[ForeignKeyDefinition] = None
    kind: Optional[IndexKind] = None
    source: Optional[str] = None
    target: Optional[str] = None
    comment: Optional[str] = None
