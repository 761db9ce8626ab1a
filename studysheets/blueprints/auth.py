"""
Auth blueprint: the identity provider the sheet core relies on.

POST /auth/register   – create an account with an institutional email
POST /auth/login      – start a session
POST /auth/logout     – end the session
GET  /auth/me         – the signed-in user
"""
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from flask_login import login_required, login_user, logout_user, current_user

from studysheets.extensions import db
from studysheets.forms.auth import RegisterForm, LoginForm
from studysheets.models.user import User
from studysheets.utils.errors import ValidationError
from studysheets.utils.helpers import log_audit, validate_form

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

_NO_CSRF = {"csrf": False}


def _serialize_user(user) -> dict:
    return {
        "id":           user.id,
        "name":         user.name,
        "email":        user.email,
        "college_name": user.college_name,
        "initials":     user.get_initials(),
        "sheet_count":  user.sheet_count,
    }


@auth_bp.route("/register", methods=["POST"])
def register():
    form = RegisterForm(meta=_NO_CSRF)
    validate_form(form)

    email = form.email.data.strip().lower()
    if User.query.filter_by(email=email).first():
        raise ValidationError("Please correct the highlighted fields.",
                              fields={"email": ["An account with this email already exists."]})

    user = User(
        name=form.name.data.strip(),
        email=email,
        college_name=form.college_name.data.strip(),
        is_active=True,
        sheet_count=0,
    )
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.flush()
    log_audit("registered", "user", user.id, user.email, user_id=user.id)
    db.session.commit()

    login_user(user)
    return jsonify(success=True, user=_serialize_user(user)), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    form = LoginForm(meta=_NO_CSRF)
    validate_form(form)

    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if user is None or not user.is_active or not user.check_password(form.password.data):
        return jsonify(error="Invalid email or password.", kind="Unauthorized", retryable=False), 401

    user.last_login = datetime.now(timezone.utc)
    log_audit("login", "user", user.id, user_id=user.id)
    db.session.commit()
    login_user(user)
    return jsonify(success=True, user=_serialize_user(user))


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify(success=True)


@auth_bp.route("/me")
@login_required
def me():
    return jsonify(user=_serialize_user(current_user))
