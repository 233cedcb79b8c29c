"""Narrowing untyped YAML values.

``yaml.safe_load`` hands back plain dicts, lists and scalars. Config parsing
reads them through these getters, which return None for anything of the
wrong shape so the caller decides whether that is an error or a default.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    if isinstance(obj, dict):
        return all(isinstance(key, str) for key in cast(dict[object, object], obj))
    return False


def as_str_dict(obj: object) -> StrDict | None:
    return obj if is_str_dict(obj) else None


def as_obj_list(obj: object) -> ObjList | None:
    return cast(ObjList, obj) if isinstance(obj, list) else None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Stripped string at ``key``; blank strings count as missing."""
    match table.get(key):
        case str(text) if text.strip():
            return text.strip()
        case _:
            return None


def get_bool(table: Mapping[str, object], key: str) -> bool | None:
    match table.get(key):
        case bool(flag):
            return flag
        case _:
            return None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    # YAML booleans are ints to isinstance; "max_parallel: yes" is not a number
    match table.get(key):
        case bool():
            return None
        case int(number):
            return number
        case _:
            return None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_list(table: Mapping[str, object], key: str) -> ObjList | None:
    return as_obj_list(table.get(key))
