from themestudio.extensions import db
from .base import BaseModel


class Store(BaseModel):
    __tablename__ = "stores"

    name = db.Column(db.String(255), nullable=False)
    subdomain = db.Column(db.String(100), unique=True, nullable=False, index=True)
    owner_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    # Theme code; the bundle itself lives on disk and is never copied per store.
    active_theme = db.Column(db.String(100), nullable=False, default="base")
    is_active = db.Column(db.Boolean, default=True)

    owner = db.relationship("User", back_populates="stores")
    templates = db.relationship(
        "Template",
        back_populates="store",
        cascade="all, delete-orphan"
    )

    def is_owned_by(self, user_id) -> bool:
        return user_id is not None and str(self.owner_id) == str(user_id)
