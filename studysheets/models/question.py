import enum
from datetime import datetime, timezone
from studysheets.extensions import db


class Difficulty(enum.Enum):
    EASY   = "easy"
    MEDIUM = "medium"
    HARD   = "hard"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Question(db.Model):
    """One problem on a sheet.

    completed is a single shared flag: any viewer who toggles it changes it
    for every other viewer of the sheet, the owner included.
    """
    __tablename__ = "questions"

    id           = db.Column(db.Integer, primary_key=True)
    sheet_id     = db.Column(
        db.Integer, db.ForeignKey("sheets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title        = db.Column(db.String(200), nullable=False)
    description  = db.Column(db.Text)
    difficulty   = db.Column(db.Enum(Difficulty), nullable=False, index=True)
    tags         = db.Column(db.String(300))          # comma separated, e.g. "arrays, dp"
    practice_url = db.Column(db.String(500))
    video_url    = db.Column(db.String(500))
    completed    = db.Column(db.Boolean, default=False, nullable=False)
    visit_count  = db.Column(db.Integer, default=0, nullable=False)
    created_at   = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at   = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    sheet = db.relationship("Sheet", back_populates="questions")

    @property
    def tag_list(self) -> list:
        """Trimmed, non-empty tags in the order they were entered."""
        return [t.strip() for t in (self.tags or "").split(",") if t.strip()]

    def __repr__(self) -> str:
        return f"<Question {self.title!r} ({self.difficulty.value}) sheet={self.sheet_id}>"
