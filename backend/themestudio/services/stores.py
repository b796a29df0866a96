from themestudio.extensions import db
from themestudio.models.store import Store
from themestudio.domain.exceptions import NotFound, Unauthorized


def get_store(store_id) -> Store:
    store = db.session.get(Store, store_id)
    if store is None or not store.is_active:
        raise NotFound("Store not found")
    return store


def find_store_by_subdomain(subdomain):
    return Store.query.filter_by(subdomain=subdomain, is_active=True).first()


def load_owned_store(*, store_id, actor_id) -> Store:
    """The store, provided ``actor_id`` owns it."""
    store = get_store(store_id)
    if not store.is_owned_by(actor_id):
        raise Unauthorized("You do not own this store")
    return store
