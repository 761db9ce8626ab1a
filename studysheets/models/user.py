from datetime import datetime, timezone
from flask_login import UserMixin
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHashError, VerificationError
from studysheets.extensions import db, login_manager

_ph = PasswordHasher()


class User(db.Model, UserMixin):
    """A registered student.

    sheet_count is the transactional counter behind the per-user sheet quota.
    It is only ever changed with conditional UPDATE statements in
    studysheets.utils.sheet_service, never by assigning the attribute.
    """
    __tablename__ = "users"

    id            = db.Column(db.Integer, primary_key=True)
    name          = db.Column(db.String(100), nullable=False)
    email         = db.Column(db.String(120), unique=True, nullable=False, index=True)
    college_name  = db.Column(db.String(200), nullable=False)
    password_hash = db.Column(db.String(512), nullable=False)
    sheet_count   = db.Column(db.Integer, default=0, nullable=False)
    is_active     = db.Column(db.Boolean, default=True, nullable=False)
    created_at    = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    last_login    = db.Column(db.DateTime, nullable=True)

    sheets = db.relationship("Sheet", back_populates="owner", lazy="dynamic",
                             foreign_keys="Sheet.user_id")

    # ── Password helpers ────────────────────────────────────────────────────
    def set_password(self, password: str) -> None:
        self.password_hash = _ph.hash(password)

    def check_password(self, password: str) -> bool:
        try:
            return _ph.verify(self.password_hash, password)
        except (VerifyMismatchError, InvalidHashError, VerificationError):
            return False

    # ── Display helpers ─────────────────────────────────────────────────────
    def get_initials(self) -> str:
        parts = self.name.split()
        if len(parts) >= 2:
            return (parts[0][0] + parts[-1][0]).upper()
        return self.name[:2].upper()

    # Flask-Login requires this property
    @property
    def active(self) -> bool:
        return self.is_active

    def __repr__(self) -> str:
        return f"<User {self.email}>"


@login_manager.user_loader
def load_user(user_id: str):
    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None
