from themestudio.extensions import db
from .base import BaseModel
from .store_mixin import StoreMixin


class Block(BaseModel, StoreMixin):
    __tablename__ = "blocks"

    section_id = db.Column(
        db.String(36),
        db.ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    # Only container blocks have children; siblings share (section_id, parent_block_id).
    parent_block_id = db.Column(
        db.String(36),
        db.ForeignKey("blocks.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    block_type = db.Column(db.String(100), nullable=False)  # text, image, button, container
    position = db.Column(db.Integer, nullable=False, default=0)
    enabled = db.Column(db.Boolean, nullable=False, default=True)
    settings = db.Column(db.JSON, nullable=False, default=dict)

    section = db.relationship("SectionInstance", back_populates="blocks")
    parent = db.relationship("Block", remote_side="Block.id", back_populates="children")
    children = db.relationship("Block", back_populates="parent", order_by="Block.position")

    __table_args__ = (
        db.Index("idx_block_scope_position", "section_id", "parent_block_id", "position"),
    )

    def to_record(self):
        """Flat record in the shape the tree transformer works with."""
        return {
            "id": self.id,
            "type": self.block_type,
            "position": self.position,
            "enabled": bool(self.enabled),
            "settings": dict(self.settings or {}),
            "parent_block_id": self.parent_block_id,
        }
