# themestudio/api/v1/storefront.py
from flask import g, request, jsonify
from themestudio.application.storefront.compile_template import get_compiled_template
from themestudio.services.global_sections import get_resolver
from themestudio.utils.decorators import store_required
from . import v1_bp


@v1_bp.route("/storefront/<subdomain>/templates/<template_type>", methods=["GET"])
@store_required
def storefront_template(subdomain, template_type):
    compiled = get_compiled_template(
        store_id=g.current_store.id,
        template_type=template_type,
        theme_code=request.args.get("theme"),
    )
    return jsonify(compiled)


@v1_bp.route("/storefront/<subdomain>/global-sections", methods=["GET"])
@store_required
def storefront_global_sections(subdomain):
    store = g.current_store
    theme_code = request.args.get("theme") or store.active_theme
    return jsonify({
        "theme": theme_code,
        "global_sections": get_resolver().resolve(store.id, theme_code),
    })
