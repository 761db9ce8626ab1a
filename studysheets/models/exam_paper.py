from datetime import datetime, timezone
from studysheets.extensions import db


class ExamPaper(db.Model):
    """A previous-year question paper shared in the Exam Corner.

    paper_url is an opaque reference into the object store; uploading the
    file itself happens outside this application.
    """
    __tablename__ = "exam_papers"

    id          = db.Column(db.Integer, primary_key=True)
    uploader_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    subject     = db.Column(db.String(120), nullable=False, index=True)
    exam_type   = db.Column(db.String(120), nullable=False, index=True)
    slot        = db.Column(db.String(120), nullable=False)
    paper_url   = db.Column(db.String(500), nullable=False)
    created_at  = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    uploader = db.relationship("User", foreign_keys=[uploader_id])

    def __repr__(self) -> str:
        return f"<ExamPaper {self.subject!r} {self.exam_type!r} {self.slot!r}>"
