from datetime import datetime, timezone
import uuid
from themestudio.extensions import db


def utc_now():
    return datetime.now(timezone.utc)


def new_id():
    return str(uuid.uuid4())


class BaseModel(db.Model):
    __abstract__ = True

    id = db.Column(db.String(36), primary_key=True, default=new_id, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utc_now, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utc_now, onupdate=utc_now, index=True)

    def __init__(self, **kwargs):
        """
        Ids are assigned on construction, not at flush, so rows created in one
        batch can reference each other before anything is written.
        """
        kwargs.setdefault("id", new_id())
        super().__init__(**kwargs)
