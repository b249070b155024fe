"""
Permission catalog - the fixed set of capabilities a role can hold on a page.

The integer code is the identity stored in ``page_permissions.permission_id``.
Labels are for display and configuration only and may be re-labelled; never
persist a label.
"""
from __future__ import annotations

import re
from enum import IntEnum
from typing import Final


class Permission(IntEnum):
    VIEW = 1
    CREATE = 2
    EDIT = 3
    DELETE = 4

    @property
    def label(self) -> str:
        return PERMISSION_LABELS[self]

    def __str__(self) -> str:
        return self.label


PERMISSION_LABELS: Final[dict[Permission, str]] = {
    Permission.VIEW: "View",
    Permission.CREATE: "Create",
    Permission.EDIT: "Edit",
    Permission.DELETE: "Delete",
}

_PERMISSIONS_BY_LABEL: Final[dict[str, Permission]] = {
    label.lower(): permission for permission, label in PERMISSION_LABELS.items()
}

_CODE_PATTERN: Final = re.compile(r"[+-]?[0-9]+")


def parse_permission_code(value: str | int | None) -> int | None:
    """Integer code for a configured permission value.

    Accepts a label (case-insensitive, e.g. ``"View"``) or any integer
    (``2``, ``"2"`` or ``"99"``). Codes outside the catalog are still codes:
    they are checked against the store like any other and simply never match
    a grant. Returns ``None`` only when ``value`` does not parse.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value

    text = value.strip()
    permission = _PERMISSIONS_BY_LABEL.get(text.lower())
    if permission is not None:
        return int(permission)
    if _CODE_PATTERN.fullmatch(text):
        return int(text)
    return None


def parse_permission(value: str | int | None) -> Permission | None:
    """Resolve a configured permission value to a catalog entry, or ``None``."""
    code = parse_permission_code(value)
    if code is None or code not in Permission._value2member_map_:
        return None
    return Permission(code)


def catalog() -> list[dict[str, int | str]]:
    return [{"code": int(permission), "label": permission.label} for permission in Permission]
