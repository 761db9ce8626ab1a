"""
Exam Corner: shared previous-year question papers.

Only the paper's metadata and an opaque URL into the object store live
here; the upload itself is handled outside the application.
"""
import logging

from sqlalchemy import or_

from studysheets.extensions import db
from studysheets.models.exam_paper import ExamPaper
from studysheets.utils.drafts import ExamPaperDraft
from studysheets.utils.errors import NotFound, store_guard
from studysheets.utils.helpers import contains_pattern, log_audit

log = logging.getLogger(__name__)

SEARCH_LIMIT = 100


@store_guard
def add_exam_paper(uploader, draft: ExamPaperDraft) -> ExamPaper:
    draft = draft.validated()
    paper = ExamPaper(
        uploader_id=uploader.id,
        subject=draft.subject,
        exam_type=draft.exam_type,
        slot=draft.slot,
        paper_url=draft.paper_url,
    )
    db.session.add(paper)
    db.session.flush()
    log_audit("exam_paper_added", "exam_paper", paper.id,
              f"{paper.subject} / {paper.exam_type} / {paper.slot}", user_id=uploader.id)
    db.session.commit()
    log.info("Exam paper %s added by user=%s", paper.id, uploader.id)
    return paper


@store_guard
def get_exam_paper(paper_id: int) -> ExamPaper:
    paper = db.session.get(ExamPaper, paper_id)
    if paper is None:
        raise NotFound("Exam paper not found.")
    return paper


@store_guard
def search_exam_papers(query: str) -> list:
    """Papers whose subject or exam type contains *query*, newest first.

    A blank query matches nothing: the corner only lists papers once the
    user has typed something.
    """
    query = (query or "").strip()
    if not query:
        return []
    pattern = contains_pattern(query)
    return (
        ExamPaper.query
        .filter(or_(
            ExamPaper.subject.ilike(pattern, escape="\\"),
            ExamPaper.exam_type.ilike(pattern, escape="\\"),
        ))
        .order_by(ExamPaper.created_at.desc(), ExamPaper.id.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )
