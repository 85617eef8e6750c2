"""Enumerations stored as plain strings in the database."""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    CITIZEN = "CITIZEN"
    ADMINISTRATOR = "ADMINISTRATOR"
    PUBLIC_RELATIONS_OFFICER = "PUBLIC_RELATIONS_OFFICER"
    MUNICIPAL_ADMINISTRATOR = "MUNICIPAL_ADMINISTRATOR"
    TECHNICAL_STAFF_MEMBER = "TECHNICAL_STAFF_MEMBER"
    EXTERNAL_MAINTAINER = "EXTERNAL_MAINTAINER"


STAFF_ROLES = frozenset(
    {
        Role.PUBLIC_RELATIONS_OFFICER,
        Role.MUNICIPAL_ADMINISTRATOR,
        Role.TECHNICAL_STAFF_MEMBER,
    }
)


class ReportStatus(str, enum.Enum):
    SUBMITTED = "SUBMITTED"
    CATEGORIZED = "CATEGORIZED"
    ASSIGNED = "ASSIGNED"
    REJECTED = "REJECTED"
    EXTERNALLY_ASSIGNED = "EXTERNALLY_ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    SUSPENDED = "SUSPENDED"
    RESOLVED = "RESOLVED"


TERMINAL_STATUSES = frozenset({ReportStatus.REJECTED, ReportStatus.RESOLVED})


class NotificationType(str, enum.Enum):
    REPORT_STATUS = "REPORT_STATUS"
    MESSAGE = "MESSAGE"


class ChatType(str, enum.Enum):
    CITIZEN_STAFF = "CITIZEN_STAFF"
    MAINTAINER_STAFF = "MAINTAINER_STAFF"
    DIRECT = "DIRECT"
