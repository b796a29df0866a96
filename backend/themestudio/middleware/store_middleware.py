from flask import request, g
from themestudio.services.stores import find_store_by_subdomain


def store_middleware(app):
    @app.before_request
    def load_store():
        g.current_store = None

        subdomain = (request.view_args or {}).get("subdomain")
        if not subdomain:
            return

        # Missing stores are reported by the view decorators, not here.
        g.current_store = find_store_by_subdomain(subdomain)
