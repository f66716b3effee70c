"""Booking repository layer."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import dialect_insert
from app.core.enums import BillingFrequencyEnum, ConfirmationStatusEnum, PaymentMethodEnum
from app.modules.booking.models import Booking


class BookingRepository:
    """DB operations for class bookings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = select(Booking).options(selectinload(Booking.gym_class)).where(Booking.id == booking_id)
        return await self.session.scalar(stmt)

    async def list_bookings(
        self,
        member_id: UUID | None,
        class_ids: list[UUID] | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        """List bookings filtered by owner and/or a set of classes."""
        base_stmt: Select[tuple[Booking]] = select(Booking)
        if member_id is not None:
            base_stmt = base_stmt.where(Booking.member_id == member_id)
        if class_ids is not None:
            base_stmt = base_stmt.where(Booking.class_id.in_(class_ids))

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Booking.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def insert_booking_if_absent(
        self,
        booking_id: UUID,
        member_id: UUID | None,
        participant_id: UUID | None,
        participant_name: str | None,
        class_id: UUID | None,
        stripe_session_id: str,
        session_start: datetime | None,
        payment_method: PaymentMethodEnum,
        billing_frequency: BillingFrequencyEnum | None,
        stripe_customer_id: str | None = None,
        stripe_subscription_id: str | None = None,
        next_billing_date: date | None = None,
    ) -> bool:
        """Insert a paid PENDING booking; return False when the id already exists."""
        stmt = (
            dialect_insert(self.session, Booking)
            .values(
                id=booking_id,
                member_id=member_id,
                participant_id=participant_id,
                participant_name=participant_name,
                class_id=class_id,
                paid=True,
                attended=False,
                confirmation_status=ConfirmationStatusEnum.PENDING,
                stripe_session_id=stripe_session_id,
                session_start=session_start,
                payment_method=payment_method,
                billing_frequency=billing_frequency,
                stripe_customer_id=stripe_customer_id,
                stripe_subscription_id=stripe_subscription_id,
                next_billing_date=next_billing_date,
            )
            .on_conflict_do_nothing(index_elements=[Booking.id])
            .returning(Booking.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def save(self, booking: Booking) -> Booking:
        await self.session.flush()
        return booking
