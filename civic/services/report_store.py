"""Report store: persistence contract for reports and their status."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from civic.core.errors import ConflictError, DomainError, InternalError, NotFoundError
from civic.models.enums import ReportStatus
from civic.models.reference import Category
from civic.models.report import Report

logger = logging.getLogger(__name__)

_SUPERVISED_STATUSES = [
    ReportStatus.ASSIGNED.value,
    ReportStatus.EXTERNALLY_ASSIGNED.value,
    ReportStatus.IN_PROGRESS.value,
    ReportStatus.SUSPENDED.value,
    ReportStatus.RESOLVED.value,
]


def _with_relations(stmt):
    return stmt.options(
        selectinload(Report.category),
        selectinload(Report.created_by),
        selectinload(Report.assigned_to),
    )


class ReportStore:
    """Reads and writes reports on one session.

    Concurrent writers are serialised by the ``version`` column: the loser
    of a race gets ``ConflictError`` when its unit of work commits.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """Commit everything written inside the block, or nothing."""
        try:
            yield self.db
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            raise ConflictError("Report was modified concurrently, retry the operation") from None
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("A concurrent write created the same record, retry the operation") from None
        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("report_store_failure")
            raise InternalError("Unexpected storage failure") from None
        except BaseException:
            # cancelled mid-block: nothing may stay applied
            self.db.rollback()
            raise

    def get(self, report_id: int) -> Report | None:
        return self.db.get(Report, report_id)

    def require(self, report_id: int) -> Report:
        report = self.get(report_id)
        if not report:
            raise NotFoundError(f"Report {report_id} not found")
        return report

    def add(self, report: Report) -> Report:
        self.db.add(report)
        self.db.flush()
        return report

    def write_status(self, report: Report, status: ReportStatus) -> None:
        """Only the workflow engine calls this."""
        report.status = status.value
        self.db.flush()

    def by_status(self, status: ReportStatus) -> list[Report]:
        result = self.db.execute(
            _with_relations(select(Report))
            .where(Report.status == status.value)
            .order_by(Report.created_at.desc(), Report.id.desc())
        )
        return list(result.scalars().all())

    def by_creator(self, user_id: int) -> list[Report]:
        result = self.db.execute(
            _with_relations(select(Report))
            .where(Report.created_by_id == user_id)
            .order_by(Report.created_at.desc(), Report.id.desc())
        )
        return list(result.scalars().all())

    def by_assignee_or_office(self, user_id: int, office_id: int | None) -> list[Report]:
        """Reports assigned to the user, plus reports supervised by their office."""
        condition = Report.assigned_to_id == user_id
        if office_id is not None:
            supervised = Report.category_id.in_(
                select(Category.id).where(Category.office_id == office_id)
            ) & Report.status.in_(_SUPERVISED_STATUSES)
            condition = or_(condition, supervised)
        result = self.db.execute(
            _with_relations(select(Report)).where(condition).order_by(Report.created_at.desc(), Report.id.desc())
        )
        return list(result.scalars().all())
