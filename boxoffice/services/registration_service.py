"""
Registration Service - persistence of ticket orders.

Every state change is a single statement so that concurrent requests,
possibly on separate processes, cannot corrupt a row.
"""

import logging
from dataclasses import dataclass
from typing import List

from sqlalchemy import select, update, func, case, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.errors import PersistenceError
from boxoffice.models import Registration, PaymentStatus, TICKET_PRICE_CENTS
from boxoffice.schemas import PurchaseRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationStats:
    """Aggregates shown on the admin listing."""

    total_registrations: int
    total_tickets_sold: int
    total_revenue: int


class RegistrationService:
    """Service for creating and updating registrations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_pending(self, request: PurchaseRequest) -> Registration:
        """
        Insert a pending registration and commit it.
        The total is always derived from the ticket count.
        """
        registration = Registration(
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            phone=request.phone,
            num_tickets=request.num_tickets,
            total_amount=request.num_tickets * TICKET_PRICE_CENTS,
            payment_status=PaymentStatus.PENDING.value,
        )

        try:
            self.db.add(registration)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create registration: {e}")
            raise PersistenceError("Could not save registration") from e

        logger.info(
            f"Created registration {registration.id} for {request.num_tickets} tickets",
            extra={"registration_id": registration.id},
        )
        return registration

    async def attach_session_id(self, registration_id: int, session_id: str) -> bool:
        """
        Record the Stripe session id on a registration.
        Only fills an empty slot, so a registration never gets a second session.
        """
        stmt = (
            update(Registration)
            .where(
                Registration.id == registration_id,
                Registration.stripe_session_id.is_(None),
            )
            .values(stripe_session_id=session_id)
        )
        attached = await self._execute_update(stmt)

        if attached:
            logger.info(
                f"Attached session {session_id} to registration {registration_id}",
                extra={"registration_id": registration_id, "session_id": session_id},
            )
        else:
            logger.warning(
                f"Registration {registration_id} already has a session, kept it"
            )
        return attached

    async def mark_paid_by_session_id(self, session_id: str) -> bool:
        """
        Conditional paid-transition keyed by Stripe session id.

        Safe to apply any number of times and from both confirmation paths.
        Returns True only for the call that performed the transition.
        """
        stmt = (
            update(Registration)
            .where(
                Registration.stripe_session_id == session_id,
                Registration.payment_status == PaymentStatus.PENDING.value,
            )
            .values(payment_status=PaymentStatus.PAID.value)
        )
        transitioned = await self._execute_update(stmt)

        if transitioned:
            logger.info(
                f"Registration for session {session_id} marked paid",
                extra={"session_id": session_id},
            )
        else:
            logger.info(
                f"No pending registration for session {session_id}, nothing to do",
                extra={"session_id": session_id},
            )
        return transitioned

    async def list_registrations(self) -> List[Registration]:
        """All registrations, newest first."""
        result = await self._execute(
            select(Registration)
            .order_by(desc(Registration.created_at), desc(Registration.id))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def summarize(self) -> RegistrationStats:
        """Registration count over all rows; tickets and revenue over paid rows only."""
        is_paid = Registration.payment_status == PaymentStatus.PAID.value
        query = select(
            func.count(Registration.id),
            func.coalesce(
                func.sum(case((is_paid, Registration.num_tickets), else_=0)), 0
            ),
            func.coalesce(
                func.sum(case((is_paid, Registration.total_amount), else_=0)), 0
            ),
        )
        result = await self._execute(query)
        count, tickets, revenue = result.one()

        return RegistrationStats(
            total_registrations=int(count),
            total_tickets_sold=int(tickets),
            total_revenue=int(revenue),
        )

    async def _execute_update(self, stmt) -> bool:
        try:
            result = await self.db.execute(
                stmt.execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Registration update failed: {e}")
            raise PersistenceError("Could not update registration") from e
        return result.rowcount == 1

    async def _execute(self, query):
        try:
            return await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"Registration query failed: {e}")
            raise PersistenceError("Could not read registrations") from e
