import logging
import uuid
from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

from storefront.domain.exceptions import ConflictError, EventNotFoundError, NotFoundError
from storefront.domain.models import Event, Registration, RegistrationStatus, WaitlistEntry

logger = logging.getLogger(__name__)


class CreateEventDTO(BaseModel):
    title: str
    description: str
    location: str
    date: datetime
    capacity: int = Field(gt=0)
    price: int = Field(ge=0)
    image_url: str


class EventsService:
    """Events, registrations and the waitlist"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def create_event(self, dto: CreateEventDTO) -> Event:
        event = Event(id=str(uuid.uuid4()), **dto.model_dump())
        async with self._uow() as uow:
            await uow.events.create(event)
            await uow.commit()
        logger.info(f"Event created: {event.id}")
        return event

    async def list_events(self) -> List[Event]:
        async with self._uow() as uow:
            return await uow.events.list()

    async def get_event(self, event_id: str) -> Event:
        async with self._uow() as uow:
            event = await uow.events.get_by_id(event_id)
        if not event:
            raise EventNotFoundError(f"Event {event_id} not found")
        return event

    async def register(self, user_id: str, event_id: str,
                       status: RegistrationStatus = RegistrationStatus.PENDING) -> Registration:
        async with self._uow() as uow:
            event = await uow.events.get_by_id(event_id)
            if not event:
                raise EventNotFoundError("Event not found")

            registrations = await uow.registrations.list_for_event(event_id)
            active = [r for r in registrations if r.status != RegistrationStatus.CANCELLED]
            if len(active) >= event.capacity:
                raise ConflictError("Event is at full capacity")

            registration = Registration(
                id=str(uuid.uuid4()),
                user_id=user_id,
                event_id=event_id,
                status=status,
                created_at=datetime.now(timezone.utc),
            )
            await uow.registrations.create(registration)
            await uow.commit()

        logger.info(f"User {user_id} registered for event {event_id}")
        return registration

    async def get_registration(self, registration_id: str) -> Registration:
        async with self._uow() as uow:
            registration = await uow.registrations.get_by_id(registration_id)
        if not registration:
            raise NotFoundError(f"Registration {registration_id} not found")
        return registration

    async def list_registrations(self, event_id: str) -> List[Registration]:
        async with self._uow() as uow:
            return await uow.registrations.list_for_event(event_id)

    async def join_waitlist(self, email: str) -> WaitlistEntry:
        email = email.strip().lower()
        async with self._uow() as uow:
            if await uow.waitlist.contains(email):
                raise ConflictError("Email already in waitlist")
            entry = WaitlistEntry(id=str(uuid.uuid4()), email=email, created_at=datetime.now(timezone.utc))
            await uow.waitlist.add(entry)
            await uow.commit()
        return entry

    async def is_on_waitlist(self, email: str) -> bool:
        async with self._uow() as uow:
            return await uow.waitlist.contains(email.strip().lower())
