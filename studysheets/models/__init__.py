# Import all models so SQLAlchemy can discover them for db.create_all()
# Order matters: FK targets must be imported before dependents.
from studysheets.models.user import User
from studysheets.models.audit import AuditLog
from studysheets.models.sheet import Sheet
from studysheets.models.question import Question, Difficulty
from studysheets.models.exam_paper import ExamPaper
from studysheets.models.reaction import Reaction, ItemType, Polarity

__all__ = [
    "User", "AuditLog",
    "Sheet",
    "Question", "Difficulty",
    "ExamPaper",
    "Reaction", "ItemType", "Polarity",
]
