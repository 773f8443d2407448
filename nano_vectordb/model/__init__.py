from .record import Record, JSONValue, F_ID, F_METRICS, check_fields

__all__ = ["Record", "JSONValue", "F_ID", "F_METRICS", "check_fields"]
