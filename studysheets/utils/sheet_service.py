"""
Sheet registry: creation, lookup and deletion of sheets.

This module owns the two storage-level guarantees sheets depend on:

  - Quota: users.sheet_count is claimed with a single conditional UPDATE
    (``sheet_count < limit``) in the same transaction as the insert, so two
    concurrent creates by one owner cannot both pass a stale check.
  - Code uniqueness: the insert relies on the unique constraint on
    sheets.access_code. A violation rolls back the whole unit, counter
    claim included, and surfaces as CodeCollision. issue_sheet() is the
    caller-side retry loop that regenerates and tries again.

Every public function commits or rolls back before returning.
"""
import logging

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from studysheets.extensions import db
from studysheets.models.reaction import ItemType
from studysheets.models.sheet import Sheet
from studysheets.models.user import User
from studysheets.utils import access_codes
from studysheets.utils.drafts import SheetDraft
from studysheets.utils.errors import (
    CodeCollision, NotFound, QuotaExceeded, ValidationError, store_guard,
)
from studysheets.utils.helpers import log_audit
from studysheets.utils.permissions import require_edit
from studysheets.utils.reactions import clear_reactions

log = logging.getLogger(__name__)


def max_sheets() -> int:
    return current_app.config.get("MAX_SHEETS_PER_USER", 3)


# ── Creation ──────────────────────────────────────────────────────────────────

@store_guard
def create_sheet(owner: User, draft: SheetDraft, code: str, limit: int = None) -> Sheet:
    """Insert a sheet with exactly *code*, or fail.

    Raises QuotaExceeded if the owner is at the limit and CodeCollision if
    the code is already taken. Nothing is left behind on failure.
    """
    draft = draft.validated()
    code = access_codes.normalize(code)
    if not access_codes.is_well_formed(code):
        raise ValidationError(
            "Access code must be 6 letters or digits.",
            fields={"code": ["Must be 6 characters, A-Z or 0-9."]},
        )
    limit = limit if limit is not None else max_sheets()

    claimed = db.session.execute(
        update(User)
        .where(User.id == owner.id, User.sheet_count < limit)
        .values(sheet_count=User.sheet_count + 1)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount == 0:
        db.session.rollback()
        raise QuotaExceeded(limit)

    sheet = Sheet(
        user_id=owner.id,
        title=draft.title,
        description=draft.description,
        access_code=code,
    )
    db.session.add(sheet)
    try:
        db.session.flush()
    except IntegrityError as exc:
        db.session.rollback()
        if Sheet.query.filter_by(access_code=code).first() is not None:
            raise CodeCollision(code) from exc
        raise

    log_audit("sheet_created", "sheet", sheet.id,
              f"Created sheet '{sheet.title}' ({code})", user_id=owner.id)
    db.session.commit()
    log.info("Sheet %s created by user=%s with code %s", sheet.id, owner.id, code)
    return sheet


def issue_sheet(owner: User, draft: SheetDraft, code: str = None,
                attempts: int = None, rng=None) -> Sheet:
    """Create a sheet, regenerating the code on collision.

    *code* (e.g. the one previewed to the user) is tried first; a fresh
    code is generated for each later attempt. After *attempts* collisions
    the last CodeCollision propagates.
    """
    if attempts is None:
        attempts = current_app.config.get("SHEET_CODE_ATTEMPTS", 5)
    attempts = max(1, attempts)
    candidate = code or access_codes.generate(rng)
    for attempt in range(1, attempts + 1):
        try:
            return create_sheet(owner, draft, candidate)
        except CodeCollision:
            log.info("Access code collision for user=%s (attempt %d/%d)",
                     owner.id, attempt, attempts)
            if attempt == attempts:
                raise
            candidate = access_codes.generate(rng)


# ── Lookup ────────────────────────────────────────────────────────────────────

@store_guard
def get_sheet(sheet_id: int) -> Sheet:
    sheet = db.session.get(Sheet, sheet_id)
    if sheet is None:
        raise NotFound("Sheet not found.")
    return sheet


def get_owned_sheet(actor: User, sheet_id: int) -> Sheet:
    """Return the sheet if *actor* owns it; NotFound / Forbidden otherwise."""
    sheet = get_sheet(sheet_id)
    require_edit(actor, sheet)
    return sheet


@store_guard
def resolve_by_code(code: str) -> Sheet:
    """Return the sheet carrying *code*. No authentication: the code is the capability."""
    code = access_codes.normalize(code)
    sheet = None
    if access_codes.is_well_formed(code):
        sheet = Sheet.query.filter_by(access_code=code).first()
    if sheet is None:
        raise NotFound("No sheet found with this access code.")
    return sheet


def public_view(sheet: Sheet) -> dict:
    owner = sheet.owner
    return {
        "id":             sheet.id,
        "title":          sheet.title,
        "description":    sheet.description,
        "code":           sheet.access_code,
        "owner_id":       sheet.user_id,
        "owner_name":     owner.name if owner else None,
        "question_count": sheet.question_count,
        "created_at":     sheet.created_at.isoformat() if sheet.created_at else None,
    }


@store_guard
def list_owned(user: User) -> list:
    """All sheets owned by *user*, newest first."""
    return (
        Sheet.query
        .filter_by(user_id=user.id)
        .order_by(Sheet.created_at.desc(), Sheet.id.desc())
        .all()
    )


@store_guard
def owner_sheet_count(user: User) -> int:
    return Sheet.query.filter_by(user_id=user.id).count()


# ── Mutation ──────────────────────────────────────────────────────────────────

@store_guard
def update_sheet(actor: User, sheet_id: int, draft: SheetDraft) -> Sheet:
    sheet = get_owned_sheet(actor, sheet_id)
    draft = draft.validated()
    sheet.title = draft.title
    sheet.description = draft.description
    log_audit("sheet_updated", "sheet", sheet.id,
              f"Updated sheet '{sheet.title}'", user_id=actor.id)
    db.session.commit()
    return sheet


@store_guard
def delete_sheet(actor: User, sheet_id: int) -> None:
    """Delete a sheet with its questions and reactions. Irreversible."""
    sheet = get_owned_sheet(actor, sheet_id)
    title, code, owner_id = sheet.title, sheet.access_code, sheet.user_id

    clear_reactions(sheet.id, ItemType.SHEET)
    db.session.delete(sheet)  # questions go with it (delete-orphan cascade)
    db.session.execute(
        update(User)
        .where(User.id == owner_id, User.sheet_count > 0)
        .values(sheet_count=User.sheet_count - 1)
        .execution_options(synchronize_session=False)
    )
    log_audit("sheet_deleted", "sheet", sheet_id,
              f"Deleted sheet '{title}' ({code})", user_id=actor.id)
    db.session.commit()
    log.info("Sheet %s (%s) deleted by user=%s", sheet_id, code, actor.id)
