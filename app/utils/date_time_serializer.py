from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict


def to_json_safe(value: Any) -> Any:
    """Recursively convert dates and decimals so a value can go into a JSON column"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: to_json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(item) for item in value]
    return value


def serialize_dates(data: Dict[str, Any]) -> Dict[str, Any]:
    return to_json_safe(data or {})
