from datetime import datetime, timezone
from studysheets.extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id          = db.Column(db.Integer, primary_key=True)
    user_id     = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action      = db.Column(db.String(64), nullable=False)    # e.g. sheet_created
    resource    = db.Column(db.String(64))
    resource_id = db.Column(db.Integer)
    details     = db.Column(db.String(500))
    ip_address  = db.Column(db.String(45))
    created_at  = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.resource}={self.resource_id}>"
