"""
Validated input records for the core operations.

Blueprints build these from WTForms forms; services call validated()
before touching the database, so the rules hold no matter which caller
constructs the record.
"""
from dataclasses import dataclass, replace
from urllib.parse import urlparse

from studysheets.models.question import Difficulty
from studysheets.utils.errors import ValidationError

SHEET_TITLE_MAX = 100
DESCRIPTION_MAX = 1000
QUESTION_TITLE_MAX = 200
TAGS_MAX = 300
URL_MAX = 500
EXAM_FIELD_MAX = 120

STATUS_CHOICES = ("completed", "pending")


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _check_required(errors: dict, name: str, value, max_len: int) -> None:
    if not value:
        errors.setdefault(name, []).append("This field is required.")
    elif len(value) > max_len:
        errors.setdefault(name, []).append(f"Must be at most {max_len} characters.")


def _check_optional(errors: dict, name: str, value, max_len: int) -> None:
    if value and len(value) > max_len:
        errors.setdefault(name, []).append(f"Must be at most {max_len} characters.")


def _check_url(errors: dict, name: str, value) -> None:
    if not value:
        return
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.setdefault(name, []).append("Must be an http:// or https:// URL.")
    elif len(value) > URL_MAX:
        errors.setdefault(name, []).append(f"Must be at most {URL_MAX} characters.")


def _coerce_difficulty(value, errors: dict) -> Difficulty | None:
    if isinstance(value, Difficulty):
        return value
    try:
        return Difficulty(str(value).strip().lower())
    except ValueError:
        errors.setdefault("difficulty", []).append("Choose easy, medium or hard.")
        return None


def _raise_if(errors: dict) -> None:
    if errors:
        raise ValidationError("Please correct the highlighted fields.", fields=errors)


@dataclass(frozen=True)
class SheetDraft:
    title: str
    description: str | None = None

    def validated(self) -> "SheetDraft":
        title, description = _clean(self.title), _clean(self.description)
        errors: dict = {}
        _check_required(errors, "title", title, SHEET_TITLE_MAX)
        _check_optional(errors, "description", description, DESCRIPTION_MAX)
        _raise_if(errors)
        return replace(self, title=title, description=description)


@dataclass(frozen=True)
class QuestionDraft:
    title: str
    difficulty: Difficulty | str
    description: str | None = None
    tags: str | None = None
    practice_url: str | None = None
    video_url: str | None = None

    def validated(self) -> "QuestionDraft":
        errors: dict = {}
        title = _clean(self.title)
        _check_required(errors, "title", title, QUESTION_TITLE_MAX)
        difficulty = _coerce_difficulty(self.difficulty, errors)
        description = _clean(self.description)
        _check_optional(errors, "description", description, DESCRIPTION_MAX)

        # Normalise "dp,  graphs ,," to "dp, graphs"
        tags = ", ".join(t.strip() for t in (self.tags or "").split(",") if t.strip()) or None
        _check_optional(errors, "tags", tags, TAGS_MAX)

        practice_url, video_url = _clean(self.practice_url), _clean(self.video_url)
        _check_url(errors, "practice_url", practice_url)
        _check_url(errors, "video_url", video_url)
        _raise_if(errors)
        return replace(
            self, title=title, difficulty=difficulty, description=description,
            tags=tags, practice_url=practice_url, video_url=video_url,
        )


@dataclass(frozen=True)
class QuestionFilters:
    """Conjunctive filters for listing a sheet's questions."""
    difficulty: Difficulty | str | None = None
    status: str | None = None
    tag: str | None = None
    search: str | None = None

    def validated(self) -> "QuestionFilters":
        errors: dict = {}
        difficulty = _clean(self.difficulty) if not isinstance(self.difficulty, Difficulty) else self.difficulty
        if difficulty in (None, "all"):
            difficulty = None
        else:
            difficulty = _coerce_difficulty(difficulty, errors)

        status = _clean(self.status)
        status = None if status in (None, "all") else status.lower()
        if status is not None and status not in STATUS_CHOICES:
            errors.setdefault("status", []).append("Choose completed or pending.")

        tag = _clean(self.tag)
        tag = None if tag == "all" else tag
        _raise_if(errors)
        return replace(self, difficulty=difficulty, status=status, tag=tag, search=_clean(self.search))


@dataclass(frozen=True)
class ExamPaperDraft:
    subject: str
    exam_type: str
    slot: str
    paper_url: str

    def validated(self) -> "ExamPaperDraft":
        errors: dict = {}
        subject, exam_type, slot = _clean(self.subject), _clean(self.exam_type), _clean(self.slot)
        paper_url = _clean(self.paper_url)
        _check_required(errors, "subject", subject, EXAM_FIELD_MAX)
        _check_required(errors, "exam_type", exam_type, EXAM_FIELD_MAX)
        _check_required(errors, "slot", slot, EXAM_FIELD_MAX)
        if not paper_url:
            errors.setdefault("paper_url", []).append("This field is required.")
        _check_url(errors, "paper_url", paper_url)
        _raise_if(errors)
        return replace(self, subject=subject, exam_type=exam_type, slot=slot, paper_url=paper_url)
