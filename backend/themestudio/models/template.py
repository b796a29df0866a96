from themestudio.extensions import db
from themestudio.domain.lifecycle.template import UNINITIALIZED
from .base import BaseModel
from .store_mixin import StoreMixin


class Template(BaseModel, StoreMixin):
    __tablename__ = "templates"

    template_type = db.Column(db.String(100), nullable=False)  # homepage, product, collection
    name = db.Column(db.String(200), nullable=False)
    enabled = db.Column(db.Boolean, nullable=False, default=True)
    settings = db.Column(db.JSON, nullable=False, default=dict)

    sync_status = db.Column(db.String(20), nullable=False, default=UNINITIALIZED, index=True)
    synced_theme = db.Column(db.String(100), nullable=True)
    synced_version = db.Column(db.String(50), nullable=True)
    synced_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("store_id", "template_type", name="uq_template_type_per_store"),
    )

    store = db.relationship("Store", back_populates="templates")
    sections = db.relationship(
        "SectionInstance",
        back_populates="template",
        order_by="SectionInstance.position",
        cascade="all, delete-orphan"
    )

    def is_synced_with(self, theme_code, version) -> bool:
        return (
            self.sync_status == "synced"
            and self.synced_theme == theme_code
            and self.synced_version == version
        )
