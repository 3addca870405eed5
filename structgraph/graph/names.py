"""Name helpers shared by identity resolution and the node registry."""
import re
from typing import Optional

from ..config import settings


BUILT_IN_TYPES = frozenset({
    "string", "String",
    "int", "Int32",
    "bool", "Boolean",
    "float", "Single",
    "double", "Double",
    "byte", "Byte",
    "char", "Char",
    "long", "Int64",
    "short", "Int16",
    "uint", "UInt32",
    "ulong", "UInt64",
    "ushort", "UInt16",
    "decimal", "Decimal",
    "object", "Object",
    "void", "Void",
})

_INSTANCE_ID = re.compile(r"^[+-]?\d+$")


def normalize_full_name(name: str, prefix: Optional[str] = None) -> str:
    """Strip the global-scope prefix."""
    prefix = settings.global_prefix if prefix is None else prefix
    if name and prefix and name.startswith(prefix):
        return name[len(prefix):]
    return name


def simplify_member_name(full_name: str) -> str:
    """Drop the trailing ``.member`` segment, keeping the owning type."""
    if not full_name:
        return full_name
    last_dot = full_name.rfind(".")
    return full_name[:last_dot] if last_dot > 0 else full_name


def extract_library_name(full_name: str) -> str:
    """First dot-delimited segment of a qualified name."""
    if not full_name:
        return full_name
    first_dot = full_name.find(".")
    return full_name[:first_dot] if first_dot > 0 else full_name


def is_instance_id(raw_id: str) -> bool:
    return bool(raw_id) and _INSTANCE_ID.match(raw_id) is not None


def is_built_in_type(name: str) -> bool:
    """True for scalar type names, compared on the last dotted segment."""
    if not name:
        return False
    return name.rsplit(".", 1)[-1] in BUILT_IN_TYPES
