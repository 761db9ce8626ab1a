"""
Exam Corner blueprint.

GET  /api/exam-papers?q=<text>           – search by subject or exam type
POST /api/exam-papers                    – share a paper (signed in)
GET  /api/exam-papers/<id>               – one paper
GET  /api/exam-papers/<id>/reactions     – like/dislike counts + mine
POST /api/exam-papers/<id>/reactions     – like/dislike (signed in)
"""
from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from studysheets.forms.exams import ExamPaperForm
from studysheets.forms.sheets import ReactionForm
from studysheets.models.reaction import ItemType
from studysheets.utils import reactions
from studysheets.utils.exam_service import add_exam_paper, get_exam_paper, search_exam_papers
from studysheets.utils.helpers import validate_form

exams_bp = Blueprint("exams", __name__, url_prefix="/api/exam-papers")

_NO_CSRF = {"csrf": False}


def _serialize_paper(paper) -> dict:
    uploader = paper.uploader
    return {
        "id":         paper.id,
        "subject":    paper.subject,
        "exam_type":  paper.exam_type,
        "slot":       paper.slot,
        "paper_url":  paper.paper_url,
        "uploader":   uploader.name if uploader else None,
        "created_at": paper.created_at.isoformat(),
    }


@exams_bp.route("")
def search():
    query = request.args.get("q", "")
    papers = search_exam_papers(query)
    return jsonify(query=query.strip(), papers=[_serialize_paper(p) for p in papers])


@exams_bp.route("", methods=["POST"])
@login_required
def create():
    form = ExamPaperForm(meta=_NO_CSRF)
    validate_form(form)
    paper = add_exam_paper(current_user._get_current_object(), form.draft())
    return jsonify(success=True, paper=_serialize_paper(paper)), 201


@exams_bp.route("/<int:paper_id>")
def detail(paper_id):
    return jsonify(paper=_serialize_paper(get_exam_paper(paper_id)))


@exams_bp.route("/<int:paper_id>/reactions")
def paper_reactions(paper_id):
    paper = get_exam_paper(paper_id)
    actor = current_user._get_current_object() if current_user.is_authenticated else None
    return jsonify(
        counts=reactions.counts(paper.id, ItemType.EXAM_PAPER),
        mine=reactions.user_reaction(actor, paper.id, ItemType.EXAM_PAPER),
    )


@exams_bp.route("/<int:paper_id>/reactions", methods=["POST"])
@login_required
def react(paper_id):
    paper = get_exam_paper(paper_id)
    form = ReactionForm(meta=_NO_CSRF)
    validate_form(form)
    state = reactions.set_reaction(
        current_user._get_current_object(), paper.id, ItemType.EXAM_PAPER, form.polarity.data
    )
    return jsonify(
        success=True,
        mine=state,
        counts=reactions.counts_after_write(paper.id, ItemType.EXAM_PAPER),
    )
