"""Import all models so SQLAlchemy metadata knows about them."""
from cdmi.models.base import Base
from cdmi.models.row_item import RowItem
from cdmi.models.fingerprint import FingerprintEntry
from cdmi.models.login_log import LoginLog
from cdmi.models.pending_deletion import PendingBlobDeletion

__all__ = [
    "Base",
    "RowItem", "FingerprintEntry", "LoginLog", "PendingBlobDeletion",
]
