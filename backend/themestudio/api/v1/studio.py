# themestudio/api/v1/studio.py
from flask import g, request, jsonify
from flask_jwt_extended import jwt_required
from themestudio.application.storefront.compile_template import get_compiled_template
from themestudio.application.studio.activate_theme import activate_theme
from themestudio.application.studio.add_section import add_section
from themestudio.application.studio.analyze_template import analyze_template
from themestudio.application.studio.delete_block import delete_block
from themestudio.application.studio.delete_section import delete_section
from themestudio.application.studio.duplicate_block import duplicate_block
from themestudio.application.studio.duplicate_section import duplicate_section
from themestudio.application.studio.insert_block import insert_block
from themestudio.application.studio.move_block import move_block
from themestudio.application.studio.reorder_siblings import reorder_siblings
from themestudio.application.studio.scopes import get_block, get_section
from themestudio.application.studio.snapshots import create_snapshot, list_snapshots, restore_snapshot
from themestudio.application.studio.sync_theme import sync_theme_to_store
from themestudio.application.studio.update_block import update_block
from themestudio.application.studio.update_section import update_section
from themestudio.application.studio.update_template_settings import update_template_settings
from themestudio.domain.exceptions import ValidationError
from themestudio.normalizers.block import normalize_block
from themestudio.normalizers.section import normalize_section
from themestudio.normalizers.template import normalize_snapshot, normalize_template
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.utils.decorators import owner_required
from themestudio.utils.optimistic_lock import enforce_optimistic_lock
from . import v1_bp


def _body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _flag(data, name):
    value = data.get(name, False)
    if not isinstance(value, bool):
        raise ValidationError(f"'{name}' must be a boolean")
    return value


def _actor():
    return {"store_id": g.current_store.id, "actor_id": g.current_user_id}


# ------------------------
# Theme & templates
# ------------------------

@v1_bp.route("/stores/<subdomain>/theme", methods=["POST"])
@jwt_required()
@owner_required
def activate_store_theme(subdomain):
    data = _body()
    if not data.get("theme"):
        raise ValidationError("theme is required")

    return jsonify(activate_theme(theme_code=data["theme"], **_actor())), 200


@v1_bp.route("/stores/<subdomain>/templates/<template_type>/sync", methods=["POST"])
@jwt_required()
@owner_required
def sync_template(subdomain, template_type):
    data = _body()
    result = sync_theme_to_store(
        theme_code=data.get("theme") or g.current_store.active_theme,
        template_type=template_type,
        full_reset=_flag(data, "full_reset"),
        dry_run=_flag(data, "dry_run"),
        **_actor(),
    )
    return jsonify(result.to_dict()), 200


@v1_bp.route("/stores/<subdomain>/templates/analysis", methods=["GET"])
@jwt_required()
@owner_required
def template_analysis(subdomain):
    report = analyze_template(template_type=request.args.get("template_type"), **_actor())
    return jsonify(report), 200


@v1_bp.route("/stores/<subdomain>/templates/<template_type>", methods=["GET"])
@jwt_required()
@owner_required
def studio_template(subdomain, template_type):
    compiled = get_compiled_template(
        store_id=g.current_store.id,
        template_type=template_type,
        theme_code=request.args.get("theme"),
        include_disabled=True,
    )
    return jsonify(compiled), 200


@v1_bp.route("/stores/<subdomain>/templates/<template_type>/settings", methods=["PUT"])
@jwt_required()
@owner_required
def template_settings(subdomain, template_type):
    data = _body()
    template = update_template_settings(
        template_type=template_type,
        settings=data.get("settings"),
        replace=_flag(data, "replace"),
        **_actor(),
    )
    return jsonify(normalize_template(template, admin=True)), 200


# ------------------------
# Sections
# ------------------------

@v1_bp.route("/stores/<subdomain>/templates/<template_type>/sections", methods=["POST"])
@jwt_required()
@owner_required
def create_template_section(subdomain, template_type):
    data = _body()
    section = add_section(
        template_type=template_type,
        section_type=data.get("type"),
        position=data.get("position"),
        settings=data.get("settings"),
        **_actor(),
    )
    return jsonify(normalize_section(section, admin=True, include_disabled=True)), 201


@v1_bp.route("/stores/<subdomain>/global-sections/<slot>", methods=["POST"])
@jwt_required()
@owner_required
def create_global_section(subdomain, slot):
    data = _body()
    section = add_section(
        global_slot=slot,
        section_type=data.get("type"),
        position=data.get("position"),
        settings=data.get("settings"),
        **_actor(),
    )
    return jsonify(normalize_section(section, admin=True, include_disabled=True)), 201


@v1_bp.route("/stores/<subdomain>/global-sections/cache", methods=["DELETE"])
@jwt_required()
@owner_required
def clear_global_cache(subdomain):
    clear_global_sections_cache(g.current_store.id)
    return jsonify({"message": "Global sections cache cleared"}), 200


@v1_bp.route("/stores/<subdomain>/sections/<section_id>", methods=["PUT"])
@jwt_required()
@owner_required
def edit_section(subdomain, section_id):
    # -----------------------
    # Optimistic Locking Check
    # -----------------------
    enforce_optimistic_lock(get_section(g.current_store.id, section_id))

    data = _body()
    section = update_section(
        section_id=section_id,
        settings=data.get("settings"),
        enabled=data.get("enabled"),
        replace=_flag(data, "replace"),
        **_actor(),
    )
    return jsonify(normalize_section(section, admin=True, include_disabled=True)), 200


@v1_bp.route("/stores/<subdomain>/sections/<section_id>", methods=["DELETE"])
@jwt_required()
@owner_required
def remove_section(subdomain, section_id):
    delete_section(section_id=section_id, **_actor())
    return jsonify({"message": "Section deleted"}), 200


@v1_bp.route("/stores/<subdomain>/sections/<section_id>/duplicate", methods=["POST"])
@jwt_required()
@owner_required
def copy_section(subdomain, section_id):
    clone = duplicate_section(section_id=section_id, **_actor())
    return jsonify({"id": clone.id, "section": normalize_section(clone, admin=True, include_disabled=True)}), 201


# ------------------------
# Blocks
# ------------------------

@v1_bp.route("/stores/<subdomain>/sections/<section_id>/blocks", methods=["POST"])
@jwt_required()
@owner_required
def create_block(subdomain, section_id):
    data = _body()
    block = insert_block(
        section_id=section_id,
        parent_block_id=data.get("parent_block_id"),
        block_type=data.get("type"),
        position=data.get("position"),
        settings=data.get("settings"),
        **_actor(),
    )
    return jsonify(normalize_block(block, admin=True)), 201


@v1_bp.route("/stores/<subdomain>/blocks/<block_id>", methods=["PUT"])
@jwt_required()
@owner_required
def edit_block(subdomain, block_id):
    enforce_optimistic_lock(get_block(g.current_store.id, block_id))

    data = _body()
    block = update_block(
        block_id=block_id,
        settings=data.get("settings"),
        enabled=data.get("enabled"),
        replace=_flag(data, "replace"),
        **_actor(),
    )
    return jsonify(normalize_block(block, admin=True)), 200


@v1_bp.route("/stores/<subdomain>/blocks/<block_id>", methods=["DELETE"])
@jwt_required()
@owner_required
def remove_block(subdomain, block_id):
    delete_block(block_id=block_id, **_actor())
    return jsonify({"message": "Block deleted"}), 200


@v1_bp.route("/stores/<subdomain>/blocks/<block_id>/duplicate", methods=["POST"])
@jwt_required()
@owner_required
def copy_block(subdomain, block_id):
    clone = duplicate_block(block_id=block_id, **_actor())
    return jsonify({"id": clone.id, "block": normalize_block(clone, admin=True)}), 201


@v1_bp.route("/stores/<subdomain>/blocks/<block_id>/move", methods=["POST"])
@jwt_required()
@owner_required
def relocate_block(subdomain, block_id):
    data = _body()
    block = move_block(
        block_id=block_id,
        position=data.get("position"),
        target_parent_id=data.get("parent_block_id"),
        target_section_id=data.get("section_id"),
        **_actor(),
    )
    return jsonify(normalize_block(block, admin=True)), 200


@v1_bp.route("/stores/<subdomain>/reorder", methods=["POST"])
@jwt_required()
@owner_required
def reorder(subdomain):
    data = _body()
    result = reorder_siblings(
        scope=data.get("scope"),
        ordered_ids=data.get("order"),
        **_actor(),
    )
    return jsonify(result), 200


# ------------------------
# Snapshots
# ------------------------

@v1_bp.route("/stores/<subdomain>/templates/<template_type>/snapshots", methods=["GET"])
@jwt_required()
@owner_required
def template_snapshots(subdomain, template_type):
    snapshots = list_snapshots(template_type=template_type, **_actor())
    return jsonify({"items": [normalize_snapshot(s) for s in snapshots]}), 200


@v1_bp.route("/stores/<subdomain>/templates/<template_type>/snapshots", methods=["POST"])
@jwt_required()
@owner_required
def take_snapshot(subdomain, template_type):
    snapshot = create_snapshot(template_type=template_type, **_actor())
    return jsonify(normalize_snapshot(snapshot)), 201


@v1_bp.route("/stores/<subdomain>/templates/<template_type>/snapshots/<int:version>/restore", methods=["POST"])
@jwt_required()
@owner_required
def restore_template(subdomain, template_type, version):
    template = restore_snapshot(template_type=template_type, version=version, **_actor())
    return jsonify(normalize_template(template, admin=True)), 200
