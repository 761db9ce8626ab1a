from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectField, URLField
from wtforms.validators import DataRequired, Length, Optional, Regexp, URL

from studysheets.models.question import Difficulty
from studysheets.models.reaction import Polarity
from studysheets.utils.drafts import (
    SheetDraft, QuestionDraft,
    SHEET_TITLE_MAX, DESCRIPTION_MAX, QUESTION_TITLE_MAX, TAGS_MAX, URL_MAX,
)

_CODE_PATTERN = r"^\s*[0-9A-Za-z]{6}\s*$"


def _coerce_difficulty(value):
    return value.value if isinstance(value, Difficulty) else value


class SheetForm(FlaskForm):
    title = StringField(
        "Sheet Title",
        validators=[DataRequired(), Length(1, SHEET_TITLE_MAX)],
        render_kw={"placeholder": "Enter sheet title…"},
    )
    description = TextAreaField(
        "Description",
        validators=[Optional(), Length(0, DESCRIPTION_MAX)],
        render_kw={"rows": 3, "placeholder": "Brief description of your sheet…"},
    )
    # Code previewed in the create dialog; a fresh one is generated if blank
    code = StringField(
        "Unique Access Code",
        validators=[Optional(), Regexp(_CODE_PATTERN, message="Must be 6 letters or digits.")],
    )

    def draft(self) -> SheetDraft:
        return SheetDraft(title=self.title.data, description=self.description.data)


class QuestionForm(FlaskForm):
    title = StringField(
        "Title",
        validators=[DataRequired(), Length(1, QUESTION_TITLE_MAX)],
        render_kw={"placeholder": "e.g. Two Sum"},
    )
    description = TextAreaField(
        "Description",
        validators=[Optional(), Length(0, DESCRIPTION_MAX)],
    )
    difficulty = SelectField(
        "Difficulty",
        choices=[(d.value, d.label) for d in Difficulty],
        coerce=_coerce_difficulty,
        validators=[DataRequired(message="You need to select a difficulty.")],
    )
    tags = StringField(
        "Tags",
        validators=[Optional(), Length(0, TAGS_MAX)],
        render_kw={"placeholder": "arrays, two pointers"},
    )
    practice_url = URLField(
        "Practice link",
        validators=[Optional(), URL(), Length(0, URL_MAX)],
    )
    video_url = URLField(
        "Video link",
        validators=[Optional(), URL(), Length(0, URL_MAX)],
    )

    def draft(self) -> QuestionDraft:
        return QuestionDraft(
            title=self.title.data,
            difficulty=self.difficulty.data,
            description=self.description.data,
            tags=self.tags.data,
            practice_url=self.practice_url.data,
            video_url=self.video_url.data,
        )


class ReactionForm(FlaskForm):
    polarity = SelectField(
        "Reaction",
        choices=[(p.value, p.value.capitalize()) for p in Polarity],
        validators=[DataRequired()],
    )
