from uuid import UUID

from crowdfund.utils.errors import ValidationFailed


def is_uuid(v) -> bool:
    try:
        UUID(str(v))
        return True
    except ValueError:
        return False


def check_id(v, label: str = "resource") -> str:
    """Path ids go straight into uuid columns; reject junk before Postgres does."""
    if not is_uuid(v):
        raise ValidationFailed(f"Invalid {label} ID format")
    return str(v)
