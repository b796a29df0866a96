from flask import current_app, jsonify
from themestudio.domain.exceptions import StudioError


def register_error_handlers(app):
    @app.errorhandler(StudioError)
    def handle_studio_error(error):
        if error.status_code >= 409:
            current_app.logger.warning("%s: %s", error.kind, error.message)

        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        return response
