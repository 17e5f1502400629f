import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("audit")


def log_user_action(
    user_id: int,
    action: str,
    entity: str,
    entity_id: Any = None,
    context: Optional[Dict[str, Optional[str]]] = None,
):
    """Log user actions for audit trail"""
    suffix = ""
    if context:
        suffix = f" via {context.get('endpoint')} from {context.get('ip_address') or 'unknown'}"
        if context.get("request_id"):
            suffix += f" [request_id={context['request_id']}]"
    logger.info(f"User {user_id} performed {action} on {entity} {entity_id or ''}{suffix}")
