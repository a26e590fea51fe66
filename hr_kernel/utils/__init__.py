"""Utility modules for the HR kernel."""

from hr_kernel.utils.hashing import canonicalize_json, hash_payload, to_json_safe
from hr_kernel.utils.idempotency import generate_notification_key, parse_notification_key

__all__ = [
    "canonicalize_json",
    "hash_payload",
    "to_json_safe",
    "generate_notification_key",
    "parse_notification_key",
]
