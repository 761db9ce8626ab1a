"""
Reaction ledger: at most one like/dislike per (user, target, item type).

The unique constraint uq_reaction_key is the source of truth. set_reaction
reads the current row with FOR UPDATE where the backend supports it, and
if a concurrent insert for the same key wins the race it re-runs once
against the committed row, so the key never ends up with two rows and
every call resolves to a single final state.
"""
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from studysheets.extensions import db
from studysheets.models.reaction import ItemType, Polarity, Reaction
from studysheets.utils.errors import StoreUnavailable, ValidationError, store_guard

log = logging.getLogger(__name__)

NONE = "none"


def _coerce(enum_cls, value, field: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field}.", fields={field: [f"Choose one of: {choices}."]})


@store_guard
def set_reaction(user, target_id: int, item_type, polarity) -> str:
    """Apply a like/dislike and return the user's resulting state.

    Same polarity as the stored one removes it ("none"); anything else
    inserts or replaces it and returns the new polarity's value.
    """
    item_type = _coerce(ItemType, item_type, "item_type")
    polarity = _coerce(Polarity, polarity, "polarity")

    for attempt in (1, 2):
        existing = (
            Reaction.query
            .filter_by(user_id=user.id, target_id=target_id, item_type=item_type)
            .with_for_update()
            .first()
        )
        if existing is not None and existing.polarity is polarity:
            db.session.delete(existing)
            state = NONE
        elif existing is not None:
            existing.polarity = polarity
            state = polarity.value
        else:
            db.session.add(Reaction(
                user_id=user.id, target_id=target_id,
                item_type=item_type, polarity=polarity,
            ))
            state = polarity.value
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            if attempt == 2:
                raise
            log.info("Reaction insert raced for user=%s %s=%s; retrying",
                     user.id, item_type.value, target_id)
            continue
        log.debug("Reaction user=%s %s=%s -> %s", user.id, item_type.value, target_id, state)
        return state


@store_guard
def user_reaction(user, target_id: int, item_type) -> str:
    """The user's current polarity for the target, or "none"."""
    if user is None:
        return NONE
    item_type = _coerce(ItemType, item_type, "item_type")
    row = Reaction.query.filter_by(
        user_id=user.id, target_id=target_id, item_type=item_type,
    ).first()
    return row.polarity.value if row else NONE


@store_guard
def counts(target_id: int, item_type) -> dict:
    item_type = _coerce(ItemType, item_type, "item_type")
    rows = (
        db.session.query(Reaction.polarity, func.count(Reaction.id))
        .filter(Reaction.target_id == target_id, Reaction.item_type == item_type)
        .group_by(Reaction.polarity)
        .all()
    )
    tally = {polarity: n for polarity, n in rows}
    return {
        "likes":    tally.get(Polarity.LIKE, 0),
        "dislikes": tally.get(Polarity.DISLIKE, 0),
    }


def clear_reactions(target_id: int, item_type) -> int:
    """Delete every reaction on a target. Caller is responsible for committing."""
    item_type = _coerce(ItemType, item_type, "item_type")
    return (
        Reaction.query
        .filter_by(target_id=target_id, item_type=item_type)
        .delete(synchronize_session=False)
    )


def counts_after_write(target_id: int, item_type) -> dict | None:
    """Best-effort tally for the response after a reaction write.

    The write has already committed, so a failure here is logged and
    reported as None instead of failing the request.
    """
    try:
        return counts(target_id, item_type)
    except (SQLAlchemyError, StoreUnavailable) as exc:
        db.session.rollback()
        log.warning("Could not refresh reaction counts for %s=%s: %s",
                    getattr(item_type, "value", item_type), target_id, exc)
        return None
