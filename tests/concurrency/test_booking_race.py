from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from agenda.core.errors import ConcurrentWriteConflict, SchedulingConflict
from agenda.db.base import Base
from agenda.db.models import Booking, BookingStatus
from agenda.schemas.booking import BookingUpdateRequest
from agenda.services.booking_service import create_booking, update_booking
from agenda.services.conflicts import ResourceSelector


@pytest.mark.concurrent
def test_two_parallel_booking_attempts_only_one_succeeds(tmp_path, tenant_seeder):
    db_file = tmp_path / "race.db"
    engine = create_engine(f"sqlite+pysqlite:///{db_file}", connect_args={"check_same_thread": False})
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    seed_session = SessionLocal()
    seeded = tenant_seeder(seed_session, "race")
    seed_session.close()
    start_time = datetime.now(UTC).replace(microsecond=0) + timedelta(hours=1)

    def attempt(offset_minutes: int) -> str:
        session = SessionLocal()
        try:
            create_booking(
                db=session,
                tenant_id=seeded.tenant_id,
                customer_id=seeded.customer_id,
                service_id=seeded.service_id,
                selector=ResourceSelector(professional_id=seeded.professional_id),
                start_time=start_time + timedelta(minutes=offset_minutes),
            )
            return "created"
        except (SchedulingConflict, ConcurrentWriteConflict):
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(attempt, [0, 30]))

    assert sorted(results) == ["conflict", "created"]

    check = SessionLocal()
    total_bookings = check.query(Booking).count()
    check.close()
    engine.dispose()

    assert total_bookings == 1


@pytest.mark.concurrent
def test_parallel_bookings_for_different_professionals_both_succeed(tmp_path, tenant_seeder):
    db_file = tmp_path / "parallel.db"
    engine = create_engine(f"sqlite+pysqlite:///{db_file}", connect_args={"check_same_thread": False})
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    seed_session = SessionLocal()
    first = tenant_seeder(seed_session, "left")
    second = tenant_seeder(seed_session, "right")
    seed_session.close()
    start_time = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)

    def attempt(seeded) -> int:
        session = SessionLocal()
        try:
            return create_booking(
                db=session,
                tenant_id=seeded.tenant_id,
                customer_id=seeded.customer_id,
                service_id=seeded.service_id,
                selector=ResourceSelector(professional_id=seeded.professional_id),
                start_time=start_time,
            ).tenant_id
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        tenant_ids = sorted(pool.map(attempt, [first, second]))

    engine.dispose()

    assert tenant_ids == sorted([first.tenant_id, second.tenant_id])


@pytest.mark.concurrent
def test_reschedule_racing_a_create_into_the_same_slot(tmp_path, tenant_seeder):
    db_file = tmp_path / "reschedule-race.db"
    engine = create_engine(f"sqlite+pysqlite:///{db_file}", connect_args={"check_same_thread": False})
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    seed_session = SessionLocal()
    seeded = tenant_seeder(seed_session, "reschedule-race")
    slot = datetime(2024, 1, 1, 10, 0, tzinfo=UTC)
    existing = create_booking(
        db=seed_session,
        tenant_id=seeded.tenant_id,
        customer_id=seeded.customer_id,
        service_id=seeded.service_id,
        selector=ResourceSelector(professional_id=seeded.professional_id),
        start_time=slot + timedelta(hours=4),
    )
    existing_id = existing.id
    seed_session.close()

    def reschedule() -> str:
        session = SessionLocal()
        try:
            update_booking(session, existing_id, seeded.tenant_id, BookingUpdateRequest(start_time=slot))
            return "rescheduled"
        except (SchedulingConflict, ConcurrentWriteConflict):
            return "conflict"
        finally:
            session.close()

    def book() -> str:
        session = SessionLocal()
        try:
            create_booking(
                db=session,
                tenant_id=seeded.tenant_id,
                customer_id=seeded.customer_id,
                service_id=seeded.service_id,
                selector=ResourceSelector(professional_id=seeded.professional_id),
                start_time=slot,
            )
            return "created"
        except (SchedulingConflict, ConcurrentWriteConflict):
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        futures = [pool.submit(reschedule), pool.submit(book)]
        results = [future.result() for future in futures]

    check = SessionLocal()
    in_slot = (
        check.query(Booking)
        .filter(Booking.status != BookingStatus.CANCELLED.value, Booking.start_time == slot)
        .count()
    )
    check.close()
    engine.dispose()

    assert results.count("conflict") == 1
    assert in_slot == 1
