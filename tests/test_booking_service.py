"""Tests for the booking transaction."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from bookly.exceptions import ConflictError, InputValidationError, NotFoundError, StorageError
from bookly.models.audit_log import AuditLog
from bookly.models.meeting import Meeting, MeetingStatus
from bookly.services import timezones
from bookly.services.booking_service import SLOT_TAKEN_MESSAGE, BookingService
from conftest import make_result

START = datetime(2024, 6, 10, 9, 0)


@pytest.fixture
def service():
    return BookingService()


def _book(service, db, **overrides):
    kwargs = {
        "event_slug": "30-min",
        "invitee_name": "Ada Lovelace",
        "invitee_email": "ada@example.com",
        "start_time": START,
        "tz_name": "UTC",
    }
    kwargs.update(overrides)
    return service.book(db, **kwargs)


def _added(db, model):
    return [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], model)]


class TestBook:
    @pytest.mark.asyncio
    async def test_books_free_slot(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]

        confirmation = await _book(service, mock_db)

        meeting = confirmation.meeting
        assert confirmation.event_type is event_type
        assert meeting.start_time == datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc)
        assert meeting.end_time - meeting.start_time == timedelta(minutes=30)
        assert meeting.status == MeetingStatus.SCHEDULED
        assert meeting.timezone == "UTC"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_event_type_row_is_locked(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]

        await _book(service, mock_db)

        lock_stmt = mock_db.execute.await_args_list[0].args[0]
        assert lock_stmt._for_update_arg is not None

    @pytest.mark.asyncio
    async def test_naive_start_is_read_in_request_timezone(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]

        confirmation = await _book(service, mock_db, tz_name="America/New_York")

        assert confirmation.meeting.start_time == datetime(2024, 6, 10, 13, 0, tzinfo=timezone.utc)
        assert confirmation.meeting.timezone == "America/New_York"

        local = timezones.from_utc(confirmation.meeting.start_time, confirmation.meeting.timezone)
        assert local.replace(tzinfo=None) == START

    @pytest.mark.asyncio
    async def test_offset_start_is_an_absolute_instant(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]
        start = datetime(2024, 6, 10, 9, 0, tzinfo=timezone(timedelta(hours=2)))

        confirmation = await _book(service, mock_db, start_time=start, tz_name="America/New_York")

        assert confirmation.meeting.start_time == datetime(2024, 6, 10, 7, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_invitee_fields_are_trimmed(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]

        confirmation = await _book(service, mock_db, invitee_name="  Ada  ", invitee_email=" ada@example.com ")

        assert confirmation.meeting.invitee_name == "Ada"
        assert confirmation.meeting.invitee_email == "ada@example.com"

    @pytest.mark.asyncio
    async def test_audit_entry_has_no_invitee_pii(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]

        await _book(service, mock_db)

        [entry] = _added(mock_db, AuditLog)
        assert entry.action == "meeting.booked"
        assert "ada@example.com" not in str(entry.extra_data)
        assert "Ada" not in str(entry.extra_data)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field,value",
        [
            ("invitee_name", "   "),
            ("invitee_email", "   "),
            ("event_slug", ""),
            ("start_time", None),
            ("tz_name", ""),
            ("tz_name", None),
        ],
    )
    async def test_required_fields(self, service, mock_db, field, value):
        with pytest.raises(InputValidationError, match="are required"):
            await _book(service, mock_db, **{field: value})
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_event_type(self, service, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await _book(service, mock_db, event_slug="nope")
        assert not _added(mock_db, Meeting)

    @pytest.mark.asyncio
    async def test_overlapping_meeting_is_a_conflict(self, service, mock_db, event_type, scheduled_meeting):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=scheduled_meeting.id)]

        with pytest.raises(ConflictError, match=SLOT_TAKEN_MESSAGE):
            await _book(service, mock_db)
        assert not _added(mock_db, Meeting)
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exclusion_constraint_violation_is_a_conflict(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]
        mock_db.flush.side_effect = IntegrityError(
            "INSERT INTO meetings",
            {},
            Exception('conflicting key value violates exclusion constraint "meetings_no_overlap_per_event_type"'),
        )

        with pytest.raises(ConflictError):
            await _book(service, mock_db)
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_integrity_error_is_a_storage_error(self, service, mock_db, event_type):
        mock_db.execute.side_effect = [make_result(scalar=event_type), make_result(scalar=None)]
        mock_db.flush.side_effect = IntegrityError("INSERT INTO meetings", {}, Exception("foreign key violation"))

        with pytest.raises(StorageError):
            await _book(service, mock_db)

    @pytest.mark.asyncio
    async def test_database_failure_is_a_storage_error(self, service, mock_db):
        mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("server closed the connection"))

        with pytest.raises(StorageError):
            await _book(service, mock_db)
        mock_db.rollback.assert_awaited_once()
