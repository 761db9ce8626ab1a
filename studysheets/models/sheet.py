from datetime import datetime, timezone
from studysheets.extensions import db


class Sheet(db.Model):
    """A named collection of questions owned by one user.

    access_code is the capability token: anyone holding it may view the
    sheet. The unique constraint on it is what makes code issuance safe
    under concurrent creates; see sheet_service.create_sheet.
    """
    __tablename__ = "sheets"

    id          = db.Column(db.Integer, primary_key=True)
    user_id     = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title       = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    access_code = db.Column(db.String(6), nullable=False)
    created_at  = db.Column(
        db.DateTime, default=lambda: datetime.now(timezone.utc), index=True
    )
    updated_at  = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.UniqueConstraint("access_code", name="uq_sheet_access_code"),
    )

    # ── Relationships ────────────────────────────────────────────────────────
    owner     = db.relationship("User", back_populates="sheets")
    questions = db.relationship(
        "Question", back_populates="sheet",
        cascade="all, delete-orphan",
        order_by="[Question.created_at, Question.id]",
    )

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def __repr__(self) -> str:
        return f"<Sheet {self.title!r} code={self.access_code} (user={self.user_id})>"
