from __future__ import annotations

from ..extensions import db


class RecordCollection(db.Model):
    """
    One row per logical collection; payload holds the whole JSON array.

    Saving a collection rewrites the row (total replacement, last write wins).
    """
    __tablename__ = "record_collections"

    key = db.Column(db.String(64), primary_key=True)
    payload = db.Column(db.Text, nullable=False, default="[]")
    record_count = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, nullable=False)

    def __repr__(self) -> str:
        return f"<RecordCollection key={self.key!r} records={self.record_count}>"
