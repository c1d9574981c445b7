from enum import Enum


class Role(str, Enum):
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
    ORG_ADMIN = "ORG_ADMIN"
    BRANCH_ADMIN = "BRANCH_ADMIN"


class RemovalAction(str, Enum):
    DELETED = "deleted"
    REMOVED = "removed"
