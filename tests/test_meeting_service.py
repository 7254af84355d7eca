"""Tests for meeting listing and cancellation."""

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from bookly.exceptions import ConflictError, NotFoundError, StorageError
from bookly.models.meeting import MeetingStatus
from bookly.schemas.meeting import MeetingResponse
from bookly.services import meeting_service
from conftest import make_result


class TestListMeetings:
    @pytest.mark.asyncio
    async def test_returns_rows(self, mock_db, scheduled_meeting):
        mock_db.execute.return_value = make_result(scalars=[scheduled_meeting])

        assert await meeting_service.list_meetings(mock_db) == [scheduled_meeting]

    @pytest.mark.asyncio
    async def test_upcoming_filter_uses_now(self, mock_db):
        mock_db.execute.return_value = make_result(scalars=[])
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)

        await meeting_service.list_meetings(mock_db, upcoming=True, now=now)

        stmt = mock_db.execute.await_args.args[0]
        compiled = str(stmt)
        assert "meetings.start_time >" in compiled
        assert "meetings.status =" in compiled


class TestGetMeeting:
    @pytest.mark.asyncio
    async def test_missing(self, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await meeting_service.get_meeting(mock_db, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_storage_failure(self, mock_db):
        mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("timeout"))

        with pytest.raises(StorageError):
            await meeting_service.get_meeting(mock_db, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_storage_failure(self, mock_db):
        mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("timeout"))

        with pytest.raises(StorageError):
            await meeting_service.list_meetings(mock_db)


class TestCancelMeeting:
    @pytest.mark.asyncio
    async def test_cancel_scheduled(self, mock_db, scheduled_meeting):
        mock_db.execute.return_value = make_result(scalar=scheduled_meeting)

        meeting = await meeting_service.cancel_meeting(mock_db, scheduled_meeting.id)

        assert meeting.status == MeetingStatus.CANCELLED
        mock_db.commit.assert_awaited_once()
        lock_stmt = mock_db.execute.await_args_list[0].args[0]
        assert lock_stmt._for_update_arg is not None

    @pytest.mark.asyncio
    async def test_cancel_twice_is_a_conflict(self, mock_db, scheduled_meeting):
        scheduled_meeting.status = MeetingStatus.CANCELLED
        mock_db.execute.return_value = make_result(scalar=scheduled_meeting)

        with pytest.raises(ConflictError, match="already cancelled"):
            await meeting_service.cancel_meeting(mock_db, scheduled_meeting.id)
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_completed_meeting_cannot_be_cancelled(self, mock_db, scheduled_meeting):
        scheduled_meeting.status = MeetingStatus.COMPLETED
        mock_db.execute.return_value = make_result(scalar=scheduled_meeting)

        with pytest.raises(ConflictError):
            await meeting_service.cancel_meeting(mock_db, scheduled_meeting.id)
        assert scheduled_meeting.status == MeetingStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_missing_meeting(self, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)

        with pytest.raises(NotFoundError):
            await meeting_service.cancel_meeting(mock_db, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_storage_failure(self, mock_db):
        mock_db.execute.side_effect = OperationalError("SELECT", {}, Exception("timeout"))

        with pytest.raises(StorageError):
            await meeting_service.cancel_meeting(mock_db, uuid.uuid4())
        mock_db.rollback.assert_awaited_once()


class TestMeetingResponse:
    def test_local_times_in_meeting_timezone(self, scheduled_meeting, event_type):
        body = MeetingResponse.build(scheduled_meeting, event_type)

        assert body.start_time == "2024-06-10T09:00:00+00:00"
        assert body.local_start == "2024-06-10T05:00:00"
        assert body.local_end == "2024-06-10T05:30:00"
        assert body.event_type_slug == "30-min"
        assert body.status == "scheduled"
