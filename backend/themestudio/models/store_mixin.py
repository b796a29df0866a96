from themestudio.extensions import db


class StoreMixin:
    store_id = db.Column(
        db.String(36),
        db.ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
