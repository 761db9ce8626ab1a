"""
Sheets blueprint: JSON API over the sheet core.

Owner routes address a sheet by id; viewer routes address it by access
code, which is the capability that grants viewing.

URLs:
  GET    /api/sheets                              – my sheets (newest first) + quota
  POST   /api/sheets                              – create sheet (code issued/retried)
  GET    /api/sheets/new-code                     – preview a fresh access code
  GET    /api/sheets/<id>                         – owner detail with questions + stats
  PATCH  /api/sheets/<id>                         – edit title/description (owner)
  DELETE /api/sheets/<id>                         – delete sheet (owner)
  POST   /api/sheets/<id>/questions               – add question (owner)
  PATCH  /api/sheets/<id>/questions/<qid>         – edit question (owner)
  DELETE /api/sheets/<id>/questions/<qid>         – delete question (owner)

  GET    /api/s/<code>                            – public sheet view
  GET    /api/s/<code>/questions                  – filtered questions + stats + tags
  GET    /api/s/<code>/stats                      – completion stats
  POST   /api/s/<code>/questions/<qid>/toggle     – toggle completion (signed in)
  POST   /api/s/<code>/questions/<qid>/visit      – count a practice-link visit
  GET    /api/s/<code>/reactions                  – like/dislike counts + mine
  POST   /api/s/<code>/reactions                  – like/dislike (signed in)
"""
import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user

from studysheets.extensions import limiter
from studysheets.forms.sheets import SheetForm, QuestionForm, ReactionForm
from studysheets.models.reaction import ItemType
from studysheets.utils import access_codes, progress, reactions
from studysheets.utils.drafts import QuestionFilters
from studysheets.utils.helpers import validate_form
from studysheets.utils.permissions import require_view
from studysheets.utils.question_service import (
    add_question, delete_question, get_question, list_questions,
    record_visit, toggle_completion, update_question,
)
from studysheets.utils.sheet_service import (
    delete_sheet, get_owned_sheet, issue_sheet, list_owned, max_sheets,
    public_view, resolve_by_code, update_sheet,
)

log = logging.getLogger(__name__)
sheets_bp = Blueprint("sheets", __name__, url_prefix="/api")

_NO_CSRF = {"csrf": False}

_code_lookup_limit = limiter.limit(
    lambda: current_app.config.get("CODE_LOOKUP_RATE_LIMIT", "60 per minute")
)


# ── helpers ───────────────────────────────────────────────────────────────────

def _actor():
    """The signed-in user, or None for anonymous visitors."""
    if current_user.is_authenticated:
        return current_user._get_current_object()
    return None


def _serialize_sheet(sheet) -> dict:
    return {
        "id":             sheet.id,
        "title":          sheet.title,
        "description":    sheet.description,
        "code":           sheet.access_code,
        "owner_id":       sheet.user_id,
        "question_count": sheet.question_count,
        "created_at":     sheet.created_at.isoformat() if sheet.created_at else None,
        "updated_at":     sheet.updated_at.isoformat() if sheet.updated_at else None,
    }


def _serialize_question(q) -> dict:
    return {
        "id":           q.id,
        "sheet_id":     q.sheet_id,
        "title":        q.title,
        "description":  q.description,
        "difficulty":   q.difficulty.value,
        "tags":         q.tag_list,
        "practice_url": q.practice_url,
        "video_url":    q.video_url,
        "completed":    q.completed,
        "visit_count":  q.visit_count,
        "created_at":   q.created_at.isoformat() if q.created_at else None,
    }


def _filters_from_args() -> QuestionFilters:
    return QuestionFilters(
        difficulty=request.args.get("difficulty"),
        status=request.args.get("status"),
        tag=request.args.get("tag"),
        search=request.args.get("search") or request.args.get("q"),
    )


# ── Owner: sheets ─────────────────────────────────────────────────────────────

@sheets_bp.route("/sheets")
@login_required
def my_sheets():
    sheets = list_owned(current_user)
    return jsonify({
        "sheets": [_serialize_sheet(s) for s in sheets],
        "count":  len(sheets),
        "limit":  max_sheets(),
    })


@sheets_bp.route("/sheets", methods=["POST"])
@login_required
def create():
    form = SheetForm(meta=_NO_CSRF)
    validate_form(form)
    sheet = issue_sheet(_actor(), form.draft(), code=form.code.data or None)
    return jsonify(success=True, sheet=_serialize_sheet(sheet)), 201


@sheets_bp.route("/sheets/new-code")
@login_required
def new_code():
    return jsonify(code=access_codes.generate())


@sheets_bp.route("/sheets/<int:sheet_id>")
@login_required
def detail(sheet_id):
    sheet = get_owned_sheet(_actor(), sheet_id)
    questions = list(sheet.questions)
    return jsonify({
        "sheet":     _serialize_sheet(sheet),
        "questions": [_serialize_question(q) for q in questions],
        "stats":     progress.sheet_stats(questions),
        "reactions": reactions.counts(sheet.id, ItemType.SHEET),
    })


@sheets_bp.route("/sheets/<int:sheet_id>", methods=["PATCH"])
@login_required
def edit(sheet_id):
    actor = _actor()
    sheet = get_owned_sheet(actor, sheet_id)
    form = SheetForm(obj=sheet, meta=_NO_CSRF)
    validate_form(form)
    sheet = update_sheet(actor, sheet_id, form.draft())
    return jsonify(success=True, sheet=_serialize_sheet(sheet))


@sheets_bp.route("/sheets/<int:sheet_id>", methods=["DELETE"])
@login_required
def delete(sheet_id):
    delete_sheet(_actor(), sheet_id)
    return jsonify(success=True)


# ── Owner: questions ──────────────────────────────────────────────────────────

@sheets_bp.route("/sheets/<int:sheet_id>/questions", methods=["POST"])
@login_required
def create_question(sheet_id):
    actor = _actor()
    get_owned_sheet(actor, sheet_id)
    form = QuestionForm(meta=_NO_CSRF)
    validate_form(form)
    question = add_question(actor, sheet_id, form.draft())
    return jsonify(success=True, question=_serialize_question(question)), 201


@sheets_bp.route("/sheets/<int:sheet_id>/questions/<int:question_id>", methods=["PATCH"])
@login_required
def edit_question(sheet_id, question_id):
    actor = _actor()
    sheet = get_owned_sheet(actor, sheet_id)
    form = QuestionForm(obj=get_question(sheet, question_id), meta=_NO_CSRF)
    validate_form(form)
    question = update_question(actor, sheet_id, question_id, form.draft())
    return jsonify(success=True, question=_serialize_question(question))


@sheets_bp.route("/sheets/<int:sheet_id>/questions/<int:question_id>", methods=["DELETE"])
@login_required
def remove_question(sheet_id, question_id):
    delete_question(_actor(), sheet_id, question_id)
    return jsonify(success=True)


# ── Viewer: by access code ────────────────────────────────────────────────────

def _sheet_for_code(code):
    sheet = resolve_by_code(code)
    require_view(sheet, _actor(), code)
    return sheet


@sheets_bp.route("/s/<code>")
@_code_lookup_limit
def view(code):
    sheet = _sheet_for_code(code)
    data = public_view(sheet)
    data["is_owner"] = _actor() is not None and _actor().id == sheet.user_id
    return jsonify(sheet=data)


@sheets_bp.route("/s/<code>/questions")
@_code_lookup_limit
def view_questions(code):
    sheet = _sheet_for_code(code)
    all_questions = list(sheet.questions)
    shown = list_questions(sheet, _filters_from_args())
    return jsonify({
        "questions": [_serialize_question(q) for q in shown],
        "stats":     progress.sheet_stats(all_questions),
        "tags":      [{"tag": t, "count": n} for t, n in progress.tag_counts(all_questions)],
    })


@sheets_bp.route("/s/<code>/stats")
@_code_lookup_limit
def view_stats(code):
    sheet = _sheet_for_code(code)
    return jsonify(stats=progress.sheet_stats(sheet.questions))


@sheets_bp.route("/s/<code>/questions/<int:question_id>/toggle", methods=["POST"])
@_code_lookup_limit
@login_required
def toggle(code, question_id):
    sheet = _sheet_for_code(code)
    question = toggle_completion(_actor(), sheet, question_id, code=code)
    return jsonify(
        success=True,
        question=_serialize_question(question),
        stats=progress.sheet_stats(sheet.questions),
    )


@sheets_bp.route("/s/<code>/questions/<int:question_id>/visit", methods=["POST"])
@_code_lookup_limit
def visit(code, question_id):
    sheet = _sheet_for_code(code)
    total = record_visit(sheet, question_id, actor=_actor(), code=code)
    return jsonify(success=True, visit_count=total)


@sheets_bp.route("/s/<code>/reactions")
@_code_lookup_limit
def sheet_reactions(code):
    sheet = _sheet_for_code(code)
    return jsonify(
        counts=reactions.counts(sheet.id, ItemType.SHEET),
        mine=reactions.user_reaction(_actor(), sheet.id, ItemType.SHEET),
    )


@sheets_bp.route("/s/<code>/reactions", methods=["POST"])
@_code_lookup_limit
@login_required
def react(code):
    sheet = _sheet_for_code(code)
    form = ReactionForm(meta=_NO_CSRF)
    validate_form(form)
    state = reactions.set_reaction(_actor(), sheet.id, ItemType.SHEET, form.polarity.data)
    return jsonify(
        success=True,
        mine=state,
        counts=reactions.counts_after_write(sheet.id, ItemType.SHEET),
    )
