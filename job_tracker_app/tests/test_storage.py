"""
Test the tracker storage layer against the in-memory document store.
"""
import pytest
from datetime import datetime, timedelta, timezone

from job_tracker_app.backend.errors import NotFound, StoreError
from job_tracker_app.backend.models.db.database import InMemoryDocumentStore
from job_tracker_app.backend.schemas import (
    ApplicationCreate,
    InterviewCreate,
    RecruiterCreate,
    ReminderCreate,
)
from job_tracker_app.backend.services.application_tracker import TrackerStorage, chunked


def make_application(storage, user_id, company="Acme", title="Engineer", **fields):
    return storage.create_application(user_id, ApplicationCreate(company=company, title=title, **fields))


def make_interview(storage, application_id, when, round="Technical"):
    return storage.create_interview(
        InterviewCreate(application_id=application_id, round=round, interview_date=when)
    )


class TestApplicationStorage:
    """Test CRUD over applications."""

    def test_create_applies_defaults(self, storage, user_id):
        before = datetime.now(timezone.utc) - timedelta(seconds=1)

        application = make_application(storage, user_id)

        assert application.id
        assert application.user_id == user_id
        assert application.status == "Saved"
        assert before <= application.application_date <= datetime.now(timezone.utc) + timedelta(seconds=1)
        assert application.created_at == application.updated_at

    def test_create_keeps_given_date_and_status(self, storage, user_id):
        applied_on = datetime(2024, 1, 15, tzinfo=timezone.utc)

        application = make_application(storage, user_id, status="Applied", application_date=applied_on)

        assert application.status == "Applied"
        assert application.application_date == applied_on

    def test_create_then_get_round_trip(self, storage, user_id):
        created = make_application(storage, user_id, location="Berlin", salary="80k", notes="Referral")

        fetched = storage.get_application(created.id)

        assert fetched == created
        assert fetched.location == "Berlin"

    def test_get_missing_returns_none(self, storage):
        assert storage.get_application("does-not-exist") is None

    def test_get_has_no_owner_filter(self, storage, user_id):
        created = make_application(storage, user_id)

        assert storage.get_application(created.id).user_id == user_id

    def test_list_orders_by_most_recently_updated(self, storage, user_id):
        first = make_application(storage, user_id, company="First")
        second = make_application(storage, user_id, company="Second")
        storage.update_application(first.id, {"notes": "touched"})

        listed = storage.list_applications(user_id)

        assert [app.id for app in listed] == [first.id, second.id]

    def test_update_refreshes_updated_at(self, storage, user_id):
        created = make_application(storage, user_id)

        updated = storage.update_application(created.id, {"status": "Applied"})

        assert updated.status == "Applied"
        assert updated.updated_at > created.created_at
        assert updated.created_at == created.created_at

    def test_update_cannot_change_owner(self, storage, user_id, other_user_id):
        created = make_application(storage, user_id)

        storage.update_application(created.id, {"user_id": other_user_id, "notes": "moved?"})

        stored = storage.get_application(created.id)
        assert stored.user_id == user_id
        assert stored.notes == "moved?"
        assert storage.list_applications(other_user_id) == []

    def test_update_missing_raises_not_found(self, storage):
        with pytest.raises(NotFound):
            storage.update_application("does-not-exist", {"status": "Applied"})

    def test_delete_is_idempotent(self, storage, user_id):
        created = make_application(storage, user_id)

        storage.delete_application(created.id)
        storage.delete_application(created.id)

        assert storage.get_application(created.id) is None


class TestOwnershipIsolation:
    """Owner-scoped lists never leak another user's records."""

    def test_lists_are_scoped_to_owner(self, storage, user_id, other_user_id, reminder_due):
        make_application(storage, user_id)
        storage.create_recruiter(user_id, RecruiterCreate(name="Mine"))
        storage.create_reminder(user_id, ReminderCreate(title="Mine", due_date=reminder_due))

        theirs = make_application(storage, other_user_id, company="Theirs")
        storage.create_recruiter(other_user_id, RecruiterCreate(name="Theirs"))
        storage.create_reminder(other_user_id, ReminderCreate(title="Theirs", due_date=reminder_due))

        assert all(app.user_id == user_id for app in storage.list_applications(user_id))
        assert [r.name for r in storage.list_recruiters(user_id)] == ["Mine"]
        assert [r.title for r in storage.list_reminders(user_id)] == ["Mine"]
        assert [app.id for app in storage.list_applications(other_user_id)] == [theirs.id]

    def test_interviews_are_scoped_through_parent(self, storage, user_id, other_user_id, interview_time):
        mine = make_application(storage, user_id)
        theirs = make_application(storage, other_user_id)
        my_interview = make_interview(storage, mine.id, interview_time)
        make_interview(storage, theirs.id, interview_time)

        assert storage.list_interviews(user_id) == [my_interview]


class TestInterviewListing:
    """Test the two-phase, chunked interview query."""

    def test_chunked_listing_is_globally_sorted(self, store, storage, user_id):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        expected = []
        for i in range(25):
            application = make_application(storage, user_id, company=f"Company {i}")
            # Interleave dates so chunk boundaries do not line up with date order
            expected.append(make_interview(storage, application.id, base + timedelta(hours=(i * 7) % 25)))

        interviews = storage.list_interviews(user_id)

        assert len(interviews) == 25
        assert {i.id for i in interviews} == {i.id for i in expected}
        dates = [i.interview_date for i in interviews]
        assert all(earlier > later for earlier, later in zip(dates, dates[1:]))
        assert store.queries_against("interviews") == 3

    @pytest.mark.parametrize("batch_size", [1, 3, 10])
    def test_result_does_not_depend_on_chunk_size(self, store, user_id, batch_size):
        storage = TrackerStorage(store, batch_size=batch_size)
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i in range(12):
            application = make_application(storage, user_id, company=f"Company {i}")
            make_interview(storage, application.id, base + timedelta(days=i))

        dates = [i.interview_date for i in storage.list_interviews(user_id)]

        assert dates == sorted(dates, reverse=True)
        assert len(dates) == 12

    def test_batch_larger_than_store_limit_fails(self, store, user_id, interview_time):
        storage = TrackerStorage(store, batch_size=30)
        for i in range(11):
            application = make_application(storage, user_id, company=f"Company {i}")
            make_interview(storage, application.id, interview_time)

        with pytest.raises(StoreError):
            storage.list_interviews(user_id)

    def test_batch_size_does_not_raise_store_limit(self, user_id, interview_time, monkeypatch):
        from job_tracker_app.backend.config.settings import Settings
        from job_tracker_app.backend.models.db import database

        settings = Settings(_env_file=None, store_backend="memory", query_in_batch_size=20)
        monkeypatch.setattr(database, "get_settings", lambda: settings)
        database.get_document_store.cache_clear()
        try:
            store = database.get_document_store()
        finally:
            database.get_document_store.cache_clear()

        assert store.in_filter_limit == 10
        storage = TrackerStorage(store, batch_size=20)
        for i in range(15):
            application = make_application(storage, user_id, company=f"Company {i}")
            make_interview(storage, application.id, interview_time)

        with pytest.raises(StoreError):
            storage.list_interviews(user_id)

    def test_no_applications_short_circuits(self, store, storage, user_id):
        assert storage.list_interviews(user_id) == []
        assert store.queries_against("interviews") == 0

    def test_date_range_filter(self, storage, user_id):
        application = make_application(storage, user_id)
        base = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        for day in range(5):
            make_interview(storage, application.id, base + timedelta(days=day))

        interviews = storage.list_interviews(
            user_id,
            start_date=base + timedelta(days=1),
            end_date=base + timedelta(days=3),
        )

        assert [i.interview_date for i in interviews] == [
            base + timedelta(days=3),
            base + timedelta(days=2),
            base + timedelta(days=1),
        ]

    def test_naive_filter_bounds_are_utc(self, storage, user_id):
        application = make_application(storage, user_id)
        make_interview(storage, application.id, datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))

        interviews = storage.list_interviews(user_id, start_date=datetime(2024, 3, 1, 9, 0))

        assert len(interviews) == 1


class TestInterviewStorage:

    def test_update_cannot_move_interview(self, storage, user_id, other_user_id, interview_time):
        mine = make_application(storage, user_id)
        theirs = make_application(storage, other_user_id)
        interview = make_interview(storage, mine.id, interview_time)

        updated = storage.update_interview(interview.id, {"application_id": theirs.id, "completed": True})

        assert updated.application_id == mine.id
        assert updated.completed is True

    def test_update_missing_interview(self, storage):
        with pytest.raises(NotFound):
            storage.update_interview("missing", {"notes": "x"})

    def test_delete_interview_is_idempotent(self, storage, user_id, interview_time):
        application = make_application(storage, user_id)
        interview = make_interview(storage, application.id, interview_time)

        storage.delete_interview(interview.id)
        storage.delete_interview(interview.id)

        assert storage.get_interview(interview.id) is None


class TestReminderAndRecruiterStorage:

    def test_reminders_ordered_by_due_date(self, storage, user_id):
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)
        late = storage.create_reminder(user_id, ReminderCreate(title="Late", due_date=now + timedelta(days=5)))
        early = storage.create_reminder(user_id, ReminderCreate(title="Early", due_date=now + timedelta(days=1)))

        assert [r.id for r in storage.list_reminders(user_id)] == [early.id, late.id]

    def test_reminder_update_and_complete(self, storage, user_id, reminder_due):
        reminder = storage.create_reminder(user_id, ReminderCreate(title="Send thank-you", due_date=reminder_due))

        updated = storage.update_reminder(reminder.id, {"completed": True})

        assert updated.completed is True
        assert updated.user_id == user_id

    def test_recruiter_update_and_delete(self, storage, user_id):
        recruiter = storage.create_recruiter(user_id, RecruiterCreate(name="Sam", email="sam@example.com"))

        updated = storage.update_recruiter(recruiter.id, {"phone": "+1 555 0100"})
        storage.delete_recruiter(recruiter.id)

        assert updated.phone == "+1 555 0100"
        assert updated.email == "sam@example.com"
        assert storage.get_recruiter(recruiter.id) is None


class TestEndToEndScenario:
    """Create, update, schedule, then delete the parent application."""

    def test_acme_scenario(self, storage, user_id, interview_time):
        application = make_application(storage, user_id, company="Acme", title="Engineer")
        assert application.id
        assert application.status == "Saved"
        assert abs(application.application_date - datetime.now(timezone.utc)) < timedelta(seconds=5)

        updated = storage.update_application(application.id, {"status": "Applied"})
        assert updated.updated_at > application.created_at

        interview = make_interview(storage, application.id, interview_time)
        assert storage.list_interviews(user_id) == [interview]

        storage.delete_application(application.id)

        # The orphan is hidden from the owner's list but still readable by id
        assert storage.list_interviews(user_id) == []
        assert storage.get_interview(interview.id) == interview


def test_chunked_helper():
    assert chunked(list(range(25)), 10) == [list(range(10)), list(range(10, 20)), list(range(20, 25))]
    assert chunked([], 10) == []


def test_storage_rejects_zero_batch_size():
    with pytest.raises(ValueError):
        TrackerStorage(InMemoryDocumentStore(), batch_size=0)
