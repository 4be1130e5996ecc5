import enum


class EntityState(str, enum.Enum):
    """Soft-delete lifecycle shared by posts and comments"""
    ACTIVE = "active"    # visible, counts towards derived counters
    DELETED = "deleted"  # tombstone, kept for referential integrity
