"""
Question operations.

Structure (add / edit / delete) is owner-only. Completion toggles need an
authenticated viewer; visits need nothing beyond the code. Both counters
are changed with single UPDATE statements so concurrent viewers never
lose each other's writes.
"""
import logging

from sqlalchemy import not_, update

from studysheets.extensions import db
from studysheets.models.question import Question
from studysheets.utils.drafts import QuestionDraft, QuestionFilters
from studysheets.utils.errors import NotFound, store_guard
from studysheets.utils.helpers import contains_pattern, log_audit
from studysheets.utils.permissions import require_interact, require_view
from studysheets.utils.sheet_service import get_owned_sheet

log = logging.getLogger(__name__)


@store_guard
def get_question(sheet, question_id: int) -> Question:
    question = Question.query.filter_by(id=question_id, sheet_id=sheet.id).first()
    if question is None:
        raise NotFound("Question not found on this sheet.")
    return question


def _apply(question: Question, draft: QuestionDraft) -> None:
    question.title        = draft.title
    question.difficulty   = draft.difficulty
    question.description  = draft.description
    question.tags         = draft.tags
    question.practice_url = draft.practice_url
    question.video_url    = draft.video_url


# ── Owner-only ────────────────────────────────────────────────────────────────

@store_guard
def add_question(actor, sheet_id: int, draft: QuestionDraft) -> Question:
    sheet = get_owned_sheet(actor, sheet_id)
    draft = draft.validated()
    question = Question(sheet_id=sheet.id, completed=False, visit_count=0)
    _apply(question, draft)
    db.session.add(question)
    db.session.flush()
    log_audit("question_added", "sheet", sheet.id,
              f"Added '{question.title}' ({question.difficulty.value})", user_id=actor.id)
    db.session.commit()
    return question


@store_guard
def update_question(actor, sheet_id: int, question_id: int, draft: QuestionDraft) -> Question:
    sheet = get_owned_sheet(actor, sheet_id)
    question = get_question(sheet, question_id)
    _apply(question, draft.validated())
    log_audit("question_updated", "sheet", sheet.id,
              f"Updated question {question.id}", user_id=actor.id)
    db.session.commit()
    return question


@store_guard
def delete_question(actor, sheet_id: int, question_id: int) -> None:
    sheet = get_owned_sheet(actor, sheet_id)
    question = get_question(sheet, question_id)
    title = question.title
    db.session.delete(question)
    log_audit("question_deleted", "sheet", sheet.id,
              f"Deleted question '{title}'", user_id=actor.id)
    db.session.commit()


# ── Any viewer ────────────────────────────────────────────────────────────────

@store_guard
def toggle_completion(actor, sheet, question_id: int, code: str = None) -> Question:
    """Flip the question's shared completion flag and return the refreshed row."""
    require_interact(sheet, actor, code)
    question = get_question(sheet, question_id)
    db.session.execute(
        update(Question)
        .where(Question.id == question.id)
        .values(completed=not_(Question.completed))
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.refresh(question)
    log.info("Question %s on sheet %s marked %s by user=%s", question.id, sheet.id,
             "complete" if question.completed else "incomplete", actor.id)
    return question


@store_guard
def record_visit(sheet, question_id: int, actor=None, code: str = None) -> int:
    """Count one visit to the question's practice link and return the new total."""
    require_view(sheet, actor, code)
    question = get_question(sheet, question_id)
    db.session.execute(
        update(Question)
        .where(Question.id == question.id)
        .values(visit_count=Question.visit_count + 1)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.refresh(question)
    return question.visit_count


@store_guard
def list_questions(sheet, filters: QuestionFilters = None) -> list:
    """Questions on the sheet in creation order, narrowed by *filters*."""
    filters = (filters or QuestionFilters()).validated()
    query = Question.query.filter(Question.sheet_id == sheet.id)
    if filters.difficulty is not None:
        query = query.filter(Question.difficulty == filters.difficulty)
    if filters.status is not None:
        query = query.filter(Question.completed == (filters.status == "completed"))
    if filters.search:
        query = query.filter(Question.title.ilike(contains_pattern(filters.search), escape="\\"))
    questions = query.order_by(Question.created_at.asc(), Question.id.asc()).all()

    if filters.tag:
        wanted = filters.tag.lower()
        questions = [q for q in questions if wanted in (t.lower() for t in q.tag_list)]
    return questions
