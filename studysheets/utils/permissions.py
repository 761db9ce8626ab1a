"""
Sheet permission helpers.

Rules:
  - Only the owner may edit: rename, change description, delete the sheet,
    add/edit/delete questions.
  - Anyone presenting the sheet's access code may view it, including
    anonymous visitors. The owner can always view.
  - Toggling completion and reacting need an authenticated viewer, but not
    ownership.

Callers pass the actor explicitly; anonymous callers are passed as None.
"""
from __future__ import annotations
from typing import TYPE_CHECKING

from studysheets.utils import access_codes
from studysheets.utils.errors import Forbidden

if TYPE_CHECKING:
    from studysheets.models.user import User
    from studysheets.models.sheet import Sheet


def can_edit(actor: "User | None", sheet: "Sheet") -> bool:
    """True only for the sheet's owner."""
    return actor is not None and actor.id == sheet.user_id


def can_view(sheet: "Sheet", actor: "User | None" = None, code: str | None = None) -> bool:
    """True for the owner, or for anyone presenting the sheet's code."""
    if can_edit(actor, sheet):
        return True
    return code is not None and access_codes.normalize(code) == sheet.access_code


def can_interact(sheet: "Sheet", actor: "User | None", code: str | None = None) -> bool:
    """True for an authenticated user who can view the sheet."""
    return actor is not None and can_view(sheet, actor, code)


def require_edit(actor: "User | None", sheet: "Sheet") -> None:
    if not can_edit(actor, sheet):
        raise Forbidden("Only the sheet owner can do that.")


def require_view(sheet: "Sheet", actor: "User | None" = None, code: str | None = None) -> None:
    if not can_view(sheet, actor, code):
        raise Forbidden("A valid access code is required to view this sheet.")


def require_interact(sheet: "Sheet", actor: "User | None", code: str | None = None) -> None:
    if actor is None:
        raise Forbidden("Please sign in to track progress or react.")
    require_view(sheet, actor, code)
