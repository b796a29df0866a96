from flask import request, jsonify, g
from flask_jwt_extended import jwt_required
from themestudio.models.audit_log import AuditLog
from themestudio.normalizers.audit import normalize_audit_log
from themestudio.normalizers.pagination import normalize_pagination
from themestudio.utils.decorators import owner_required
from themestudio.utils.pagination import paginate_cursor, parse_limit
from . import v1_bp


@v1_bp.route("/stores/<subdomain>/audit", methods=["GET"])
@jwt_required()
@owner_required
def list_audit_logs(subdomain):
    store = g.current_store

    query = AuditLog.query.filter(AuditLog.store_id == store.id)

    # Optional filters
    if action := request.args.get("action"):
        query = query.filter(AuditLog.action == action)

    if entity_type := request.args.get("entity_type"):
        query = query.filter(AuditLog.entity_type == entity_type)

    if entity_id := request.args.get("entity_id"):
        query = query.filter(AuditLog.entity_id == entity_id)

    logs, meta = paginate_cursor(
        query,
        model=AuditLog,
        limit=parse_limit(request.args.get("limit")),
        cursor=request.args.get("cursor"),
    )

    return jsonify(normalize_pagination(logs, normalize_audit_log, cursor=meta)), 200
