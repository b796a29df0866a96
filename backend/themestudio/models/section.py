from themestudio.extensions import db
from .base import BaseModel
from .store_mixin import StoreMixin


class SectionInstance(BaseModel, StoreMixin):
    """
    A section placed on a store template, or a store-wide override of a
    global slot (header, footer, announcement bar). Exactly one of
    ``template_id`` / ``global_slot`` is set.
    """
    __tablename__ = "sections"

    template_id = db.Column(
        db.String(36),
        db.ForeignKey("templates.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    global_slot = db.Column(db.String(50), nullable=True, index=True)

    section_type = db.Column(db.String(100), nullable=False)  # hero, featured-products, header
    position = db.Column(db.Integer, nullable=False, default=0)
    enabled = db.Column(db.Boolean, nullable=False, default=True)
    settings = db.Column(db.JSON, nullable=False, default=dict)

    template = db.relationship("Template", back_populates="sections")
    blocks = db.relationship(
        "Block",
        back_populates="section",
        order_by="Block.position",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        db.CheckConstraint(
            "(template_id IS NULL) <> (global_slot IS NULL)",
            name="ck_section_single_scope",
        ),
        db.Index("idx_section_template_position", "template_id", "position"),
        db.Index("idx_section_store_slot", "store_id", "global_slot"),
    )

    @property
    def is_global(self) -> bool:
        return self.global_slot is not None
