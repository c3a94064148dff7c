import json
from flask import current_app
from models import db
from models.audit_log import AuditLog

def log_event(action: str, actor=None, entity=None, entity_id=None, metadata=None):
    """
    Stage an audit row on the current session. The caller's commit writes it,
    so the row lands in the same transaction as the change it describes.
    """
    if not current_app.config.get("AUDIT_LOG_ENABLED", True):
        return None

    row = AuditLog(
        actor=actor,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    return row
