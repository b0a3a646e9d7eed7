"""Mapping from reflected store types to SQLAlchemy types and Python annotations."""

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TypeMapping:
    """SQLAlchemy type expression plus the Python type it maps to."""
    sa_type: str
    python_type: str


# Order matters: the first pattern that matches wins.
_TYPE_PATTERNS = [
    (r'^interval', "Interval", "datetime.timedelta"),
    (r'^(big\s*int|bigint|int8|bigserial)', "BigInteger", "int"),
    (r'^(small\s*int|smallint|int2|tinyint|smallserial)', "SmallInteger", "int"),
    (r'^(int|integer|int4|mediumint|serial)', "Integer", "int"),
    (r'^(bool|boolean|bit)$', "Boolean", "bool"),
    (r'^(numeric|decimal|money|smallmoney|number)', "Numeric", "decimal.Decimal"),
    (r'^(float|double|real|double precision)', "Float", "float"),
    (r'^(uuid|uniqueidentifier)', "Uuid", "uuid.UUID"),
    (r'^(jsonb?)$', "JSON", "dict"),
    (r'^(timestamp|datetime|datetime2|smalldatetime|datetimeoffset)', "DateTime", "datetime.datetime"),
    (r'^date$', "Date", "datetime.date"),
    (r'^time', "Time", "datetime.time"),
    (r'^(n?varchar|character varying|varchar2|nvarchar2|n?char|character)', "String", "str"),
    (r'^(text|ntext|tinytext|mediumtext|longtext|clob|nclob|citext|xml)', "Text", "str"),
    (r'^(blob|bytea|binary|varbinary|image|longblob|mediumblob|tinyblob|raw)', "LargeBinary", "bytes"),
]

_LENGTH = re.compile(r'\(\s*(\d+)\s*\)')
_PRECISION = re.compile(r'\(\s*(\d+)\s*,\s*(\d+)\s*\)')


def map_store_type(store_type: str) -> Optional[TypeMapping]:
    """Map a reflected type string such as ``VARCHAR(50)``; None when unknown."""
    normalized = (store_type or "").strip().lower()
    if not normalized:
        return None

    for pattern, sa_type, python_type in _TYPE_PATTERNS:
        if re.match(pattern, normalized):
            if sa_type == "String":
                length = _LENGTH.search(normalized)
                if length:
                    return TypeMapping(f"String({length.group(1)})", python_type)
            elif sa_type == "Numeric":
                precision = _PRECISION.search(normalized)
                if precision:
                    return TypeMapping(f"Numeric({precision.group(1)}, {precision.group(2)})", python_type)
            elif sa_type == "DateTime" and "time zone" in normalized and "without" not in normalized:
                return TypeMapping("DateTime(timezone=True)", python_type)
            return TypeMapping(sa_type, python_type)

    return None
