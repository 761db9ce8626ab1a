"""Like/dislike reactions on sheets and exam papers."""
import enum
from datetime import datetime, timezone
from studysheets.extensions import db


class ItemType(enum.Enum):
    SHEET      = "sheet"
    EXAM_PAPER = "exam_paper"


class Polarity(enum.Enum):
    LIKE    = "like"
    DISLIKE = "dislike"


class Reaction(db.Model):
    # target_id points at sheets.id or exam_papers.id depending on item_type,
    # so there is no foreign key; owners of a target clear its rows on delete.
    __tablename__ = "reactions"
    __table_args__ = (
        db.UniqueConstraint("user_id", "target_id", "item_type", name="uq_reaction_key"),
        db.Index("ix_reactions_target", "target_id", "item_type"),
    )

    id         = db.Column(db.Integer, primary_key=True)
    user_id    = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_id  = db.Column(db.Integer, nullable=False)
    item_type  = db.Column(db.Enum(ItemType), nullable=False)
    polarity   = db.Column(db.Enum(Polarity), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    user = db.relationship("User")

    def __repr__(self) -> str:
        return (f"<Reaction {self.polarity.value} user={self.user_id} "
                f"{self.item_type.value}={self.target_id}>")
