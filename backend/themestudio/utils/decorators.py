from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity
from themestudio.domain.exceptions import NotFound, Unauthorized


def store_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if g.get("current_store") is None:
            raise NotFound("Store not found")
        return fn(*args, **kwargs)
    return wrapper


def owner_required(fn):
    """Only the owner of ``g.current_store`` may call the wrapped view."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        store = g.get("current_store")
        if store is None:
            raise NotFound("Store not found")

        identity = get_jwt_identity()
        if not store.is_owned_by(identity):
            raise Unauthorized("You do not own this store")

        g.current_user_id = identity
        return fn(*args, **kwargs)
    return wrapper
