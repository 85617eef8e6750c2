"""Report workflow transition table.

This table is the only place that says which status may follow which, and
who may move a report along each edge.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from civic.models.enums import ReportStatus, Role

S = ReportStatus


class Transition(str, enum.Enum):
    SET_CATEGORY = "SET_CATEGORY"
    REVIEW = "REVIEW"
    ASSIGN_MAINTAINER = "ASSIGN_MAINTAINER"
    UPDATE_STATUS = "UPDATE_STATUS"


class ReviewDecision(str, enum.Enum):
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


@dataclass(frozen=True)
class TransitionRule:
    roles: frozenset[Role]
    edges: frozenset[tuple[ReportStatus, ReportStatus]]
    notify: bool
    # actor must be the assignee or supervising staff
    assignee_gated: bool = False
    # technical staff must supervise the report's category
    supervisor_gated: bool = False

    @property
    def sources(self) -> frozenset[ReportStatus]:
        return frozenset(src for src, _ in self.edges)


INITIAL_STATUS = S.SUBMITTED

CREATE_ROLES = frozenset({Role.CITIZEN})

TRANSITIONS: dict[Transition, TransitionRule] = {
    Transition.SET_CATEGORY: TransitionRule(
        roles=frozenset({Role.PUBLIC_RELATIONS_OFFICER, Role.MUNICIPAL_ADMINISTRATOR}),
        edges=frozenset({(S.SUBMITTED, S.CATEGORIZED), (S.CATEGORIZED, S.CATEGORIZED)}),
        notify=False,
    ),
    Transition.REVIEW: TransitionRule(
        roles=frozenset({Role.PUBLIC_RELATIONS_OFFICER}),
        edges=frozenset({(S.CATEGORIZED, S.ASSIGNED), (S.CATEGORIZED, S.REJECTED)}),
        notify=True,
    ),
    Transition.ASSIGN_MAINTAINER: TransitionRule(
        roles=frozenset({Role.TECHNICAL_STAFF_MEMBER}),
        edges=frozenset({(S.ASSIGNED, S.EXTERNALLY_ASSIGNED)}),
        notify=True,
        supervisor_gated=True,
    ),
    Transition.UPDATE_STATUS: TransitionRule(
        roles=frozenset({Role.TECHNICAL_STAFF_MEMBER, Role.EXTERNAL_MAINTAINER}),
        edges=frozenset(
            {
                (S.EXTERNALLY_ASSIGNED, S.IN_PROGRESS),
                (S.EXTERNALLY_ASSIGNED, S.RESOLVED),
                (S.IN_PROGRESS, S.RESOLVED),
                (S.IN_PROGRESS, S.SUSPENDED),
                (S.SUSPENDED, S.IN_PROGRESS),
                (S.SUSPENDED, S.RESOLVED),
            }
        ),
        notify=True,
        assignee_gated=True,
    ),
}

# Max images attached to a report
MAX_REPORT_IMAGES = 3

# Title derived from the description when none is given
DERIVED_TITLE_LENGTH = 80
