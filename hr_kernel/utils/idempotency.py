"""
Idempotency key generation for the notification outbox.

One outbox row per (request, stage, recipient): re-entering a stage for the
same recipient, or retrying the same command, never queues a second
notification.
"""

from uuid import UUID


def generate_notification_key(
    request_id: UUID | str,
    stage: str,
    recipient_id: UUID | str,
) -> str:
    """
    Generate the outbox idempotency key for a notification.

    Format: request_id:stage:recipient_id

    Example:
        >>> generate_notification_key(request_id, "PENDING_HR", user_id)
        "6f1c...:PENDING_HR:550e8400-e29b-41d4-a716-446655440000"
    """
    return f"{request_id}:{stage}:{recipient_id}"


def parse_notification_key(key: str) -> tuple[str, str, str]:
    """
    Parse an outbox idempotency key into (request_id, stage, recipient_id).

    Raises:
        ValueError: If key format is invalid.
    """
    parts = key.split(":", 2)
    if len(parts) != 3 or not all(parts):
        raise ValueError(f"Invalid notification key format: {key}")
    return parts[0], parts[1], parts[2]
