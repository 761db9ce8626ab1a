"""
Miscellaneous helpers used across services and blueprints.
"""
from flask import has_request_context, request
from studysheets.models.audit import AuditLog
from studysheets.extensions import db
from studysheets.utils.errors import ValidationError


def log_audit(
    action: str,
    resource: str = None,
    resource_id: int = None,
    details: str = None,
    user_id: int = None,
) -> None:
    """
    Append an audit log entry to the current session.
    Caller is responsible for db.session.commit().
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        resource=resource,
        resource_id=resource_id,
        details=(details or "")[:500] or None,
        ip_address=request.remote_addr if has_request_context() else None,
    )
    db.session.add(entry)


def validate_form(form) -> None:
    """Raise ValidationError carrying the form's field errors if it does not validate."""
    if not form.validate():
        raise ValidationError("Please correct the highlighted fields.", fields=form.errors)


def contains_pattern(text: str) -> str:
    """LIKE pattern matching *text* anywhere, with % and _ in it taken literally.

    Backslash is the escape character, so pass ``escape="\\\\"`` to ilike().
    """
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
