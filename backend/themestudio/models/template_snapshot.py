from themestudio.extensions import db
from .base import BaseModel
from .store_mixin import StoreMixin


class TemplateSnapshot(BaseModel, StoreMixin):
    __tablename__ = "template_snapshots"

    template_id = db.Column(
        db.String(36),
        db.ForeignKey("templates.id", ondelete="CASCADE"),
        nullable=False
    )

    version = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(20), nullable=False)
    # full_reset | manual | restore

    snapshot = db.Column(db.JSON, nullable=False)

    created_by = db.Column(db.String(36), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("template_id", "version", name="uq_template_snapshot_version"),
        db.Index("idx_template_snapshot_template", "template_id"),
    )
