from flask_wtf import FlaskForm
from wtforms import StringField, URLField
from wtforms.validators import DataRequired, Length, URL

from studysheets.utils.drafts import ExamPaperDraft, EXAM_FIELD_MAX, URL_MAX


class ExamPaperForm(FlaskForm):
    subject = StringField(
        "Subject",
        validators=[DataRequired(), Length(1, EXAM_FIELD_MAX)],
        render_kw={"placeholder": "e.g. Data Structures"},
    )
    exam_type = StringField(
        "Exam",
        validators=[DataRequired(), Length(1, EXAM_FIELD_MAX)],
        render_kw={"placeholder": "e.g. Mid-Sem"},
    )
    slot = StringField(
        "Slot",
        validators=[DataRequired(), Length(1, EXAM_FIELD_MAX)],
        render_kw={"placeholder": "e.g. Slot B"},
    )
    paper_url = URLField(
        "Paper link",
        validators=[DataRequired(), URL(), Length(1, URL_MAX)],
    )

    def draft(self) -> ExamPaperDraft:
        return ExamPaperDraft(
            subject=self.subject.data,
            exam_type=self.exam_type.data,
            slot=self.slot.data,
            paper_url=self.paper_url.data,
        )
