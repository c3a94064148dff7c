import threading

import pytest

from models import db
from models.booking import Booking, CANCELLED, COMPLETED, CONFIRMED
from services.availability import available_seats
from services.errors import BookingNotFound, InvalidInput, InvalidTransition
from services.ledger import (
    ALLOWED_TRANSITIONS,
    delete_booking,
    get_booking,
    list_bookings,
    set_status,
)
from services.reservations import reserve


@pytest.fixture
def booked(make_trip):
    """A CONFIRMED booking on seat 1 of a two-seat trip."""
    trip = make_trip(capacity=2)
    return reserve(trip.id, 1, "Alice", "111")


class TestSetStatus:
    @pytest.mark.parametrize("target", [COMPLETED, CANCELLED, CONFIRMED])
    def test_from_confirmed(self, booked, target):
        result = set_status(booked.id, target)

        assert result.status == target
        assert db.session.get(Booking, booked.id).status == target

    def test_cancel_stamps_cancelled_at(self, booked):
        set_status(booked.id, CANCELLED)

        assert get_booking(booked.id).cancelled_at is not None

    def test_complete_leaves_cancelled_at_empty(self, booked):
        set_status(booked.id, COMPLETED)

        assert get_booking(booked.id).cancelled_at is None

    def test_status_is_case_insensitive(self, booked):
        assert set_status(booked.id, " completed ").status == COMPLETED

    @pytest.mark.parametrize(
        "first, second",
        [
            (COMPLETED, CANCELLED),
            (COMPLETED, CONFIRMED),
            (CANCELLED, CONFIRMED),
            (CANCELLED, COMPLETED),
        ],
    )
    def test_terminal_states_reject_other_targets(self, booked, first, second):
        set_status(booked.id, first)

        with pytest.raises(InvalidTransition) as info:
            set_status(booked.id, second)

        assert info.value.current == first
        assert info.value.requested == second
        assert get_booking(booked.id).status == first

    @pytest.mark.parametrize("terminal", [COMPLETED, CANCELLED])
    def test_terminal_state_to_itself_is_noop(self, booked, terminal, audit_actions):
        set_status(booked.id, terminal)
        before = audit_actions()

        assert set_status(booked.id, terminal).status == terminal
        assert audit_actions() == before

    def test_double_cancel_frees_the_seat_once(self, booked):
        trip_id = booked.trip_id
        reserve(trip_id, 2, "Bob", "222")

        set_status(booked.id, CANCELLED)
        set_status(booked.id, CANCELLED)

        assert available_seats(trip_id) == 1

    def test_cancelled_booking_is_never_resurrected_over_a_new_one(self, booked):
        trip_id = booked.trip_id
        set_status(booked.id, CANCELLED)
        reserve(trip_id, 1, "Carol", "333")

        with pytest.raises(InvalidTransition):
            set_status(booked.id, CONFIRMED)
        assert available_seats(trip_id) == 1

    @pytest.mark.parametrize("status", ["PENDING", "", None, "cancel"])
    def test_unknown_status(self, booked, status):
        with pytest.raises(InvalidInput):
            set_status(booked.id, status)

    def test_unknown_booking(self, app):
        with pytest.raises(BookingNotFound):
            set_status(424242, CANCELLED)

    def test_status_change_is_audited(self, booked, audit_actions):
        set_status(booked.id, CANCELLED, actor="admin")

        assert audit_actions()[-1] == "BOOKING_STATUS_CHANGE"

    def test_concurrent_change_is_detected(self, app, booked):
        booking_id = booked.id
        assert booked.status == CONFIRMED  # cached in this session

        def complete_elsewhere():
            with app.app_context():
                set_status(booking_id, COMPLETED)

        worker = threading.Thread(target=complete_elsewhere)
        worker.start()
        worker.join()

        with pytest.raises(InvalidTransition) as info:
            set_status(booking_id, CANCELLED)

        assert info.value.current == COMPLETED
        assert get_booking(booking_id).status == COMPLETED

    def test_transition_table_has_terminal_states(self):
        assert ALLOWED_TRANSITIONS[COMPLETED] == {COMPLETED}
        assert ALLOWED_TRANSITIONS[CANCELLED] == {CANCELLED}


class TestListAndDelete:
    def test_list_newest_first_with_filters(self, make_trip):
        trip = make_trip(capacity=3)
        other = make_trip(capacity=3, bus_name="Dhaka-Sylhet 02")
        a = reserve(trip.id, 1, "Alice", "111")
        b = reserve(trip.id, 2, "Bob", "222")
        c = reserve(other.id, 1, "Carol", "333")
        set_status(a.id, CANCELLED)

        assert [x.id for x in list_bookings()] == [c.id, b.id, a.id]
        assert [x.id for x in list_bookings(trip_id=trip.id)] == [b.id, a.id]
        assert [x.id for x in list_bookings(status="cancelled")] == [a.id]
        assert [x.id for x in list_bookings(trip_id=trip.id, status=CONFIRMED)] == [b.id]

    def test_list_rejects_unknown_status(self, app):
        with pytest.raises(InvalidInput):
            list_bookings(status="LOST")

    def test_delete_frees_live_seat(self, booked, count_bookings, audit_actions):
        trip_id = booked.trip_id
        booking_id = booked.id

        delete_booking(booking_id, actor="admin")

        assert count_bookings(id=booking_id) == 0
        assert available_seats(trip_id) == 2
        assert audit_actions()[-1] == "BOOKING_DELETE"
        with pytest.raises(BookingNotFound):
            get_booking(booking_id)

    def test_delete_unknown(self, app):
        with pytest.raises(BookingNotFound):
            delete_booking(31337)
