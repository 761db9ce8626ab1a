from flask import current_app
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, EmailField
from wtforms.validators import DataRequired, Length, Email, ValidationError


class RegisterForm(FlaskForm):
    name = StringField(
        "Full Name",
        validators=[DataRequired(), Length(1, 100)],
    )
    email = EmailField(
        "College Email",
        validators=[DataRequired(), Email(check_deliverability=False), Length(5, 120)],
    )
    college_name = StringField(
        "College Name",
        validators=[DataRequired(), Length(1, 200)],
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(),
            Length(8, 128, message="Password must be at least 8 characters."),
        ],
    )

    def validate_email(self, field):
        domain = current_app.config.get("INSTITUTION_DOMAIN")
        if domain and not field.data.strip().lower().endswith("@" + domain):
            raise ValidationError(f"Please use your @{domain} email address.")


class LoginForm(FlaskForm):
    email = EmailField("Email", validators=[DataRequired(), Length(1, 120)])
    password = PasswordField("Password", validators=[DataRequired()])
