"""
Dispatcher tests

Scenario tests run the SimPy environment to completion and inspect the
car and the statistics recorder (which sees every broker publication).
"""

import itertools

import pytest

from simulator.core.car import Car
from simulator.core.dispatcher import Dispatcher
from simulator.core.request import CarMode, Direction, Request, RequestKind
from simulator.errors import (
    CarAlreadyAttachedError,
    DuplicateRequestError,
    InvalidRequestError,
    UnknownCarError,
)
from group_control.algorithms.nearest_car import NearestCarSelector


def _destinations(statistics):
    return [request for _, request in statistics.enqueued.values() if request["kind"] == RequestKind.DESTINATION.value]


# --- Scenarios ---

def test_single_trip_with_generated_destination(env, dispatcher, car, statistics):
    call = dispatcher.floor_call(3, Direction.UP, destination_floor=4)
    env.run()

    assert statistics.floors_visited("Car_1") == [1, 2, 3, 4]
    assert statistics.stops("Car_1") == [3, 4]
    assert car.floor == 4
    assert car.mode == CarMode.IDLE
    assert len(dispatcher.queue) == 0
    # 2 floors up, 2s dwell, 1 floor up, 2s dwell
    assert env.now == 7.0

    destinations = _destinations(statistics)
    assert len(destinations) == 1
    assert destinations[0]["floor"] == 4
    assert destinations[0]["origin_id"] == call.request_id
    assert statistics.get_wait_times() == [4.0]


def test_batching_serves_same_direction_calls_in_one_pass(env, dispatcher, car, statistics):
    dispatcher.floor_call(3, Direction.UP, destination_floor=7)
    dispatcher.floor_call(5, Direction.UP, destination_floor=7)
    env.run()

    floors = statistics.floors_visited("Car_1")
    assert floors == list(range(1, 8))
    assert statistics.stops("Car_1") == [3, 5, 7]
    assert len(dispatcher.queue) == 0
    assert car.mode == CarMode.IDLE


def test_later_call_on_the_way_is_served_before_the_head(env, dispatcher, statistics):
    far = dispatcher.floor_call(5, Direction.UP, destination_floor=7)
    near = dispatcher.floor_call(3, Direction.UP, destination_floor=6)
    env.run()

    assert statistics.stops("Car_1") == [3, 5, 6, 7]
    order = statistics.dequeue_order
    assert order.index(near.request_id) < order.index(far.request_id)


def test_opposite_direction_call_on_the_way_is_not_batched(env, dispatcher, statistics):
    dispatcher.floor_call(6, Direction.UP)
    down_call = dispatcher.floor_call(4, Direction.DOWN)
    env.run()

    # Passes floor 4 on the way up without stopping, comes back for it
    assert statistics.stops("Car_1") == [6, 4]
    assert statistics.dequeued[down_call.request_id][1] == 4


def test_fifo_holds_when_paths_do_not_overlap(env, dispatcher, car, statistics):
    first = dispatcher.floor_call(8, Direction.DOWN)
    second = dispatcher.floor_call(1, Direction.UP)
    env.run()

    assert statistics.dequeue_order == [first.request_id, second.request_id]
    assert statistics.stops("Car_1") == [8, 1]
    assert statistics.floors_visited("Car_1") == [1, 2, 3, 4, 5, 6, 7, 8, 7, 6, 5, 4, 3, 2, 1]
    assert car.floor == 1


def test_top_floor_reverses_and_purges_both_directions(env, dispatcher, car, statistics):
    dispatcher.floor_call(10, Direction.DOWN)
    dispatcher.floor_call(10, Direction.UP)
    dispatcher.floor_call(10, Direction.DOWN)
    env.run()

    assert max(statistics.floors_visited("Car_1")) == 10
    assert statistics.stops("Car_1") == [10]
    assert car.direction == Direction.DOWN
    assert len(dispatcher.queue) == 0
    assert len(statistics.dequeue_order) == 3


def test_bottom_floor_reverses_and_purges(env, broker, statistics):
    car = Car(env, "Car_1", broker, max_floor=10, start_floor=5)
    dispatcher = Dispatcher(env, "Dispatcher", broker, max_floor=10)
    dispatcher.attach(car)

    dispatcher.floor_call(1, Direction.UP)
    dispatcher.floor_call(1, Direction.UP)
    env.run()

    assert statistics.floors_visited("Car_1") == [5, 4, 3, 2, 1]
    assert statistics.stops("Car_1") == [1]
    assert car.direction == Direction.UP
    assert len(dispatcher.queue) == 0


def test_request_at_current_floor_opens_without_moving(env, dispatcher, car, statistics):
    dispatcher.floor_call(1, Direction.UP, destination_floor=3)
    env.run()

    assert statistics.stops("Car_1") == [1, 3]
    assert car.floor == 3
    assert env.now == 6.0


def test_queue_drains_for_mixed_traffic(env, dispatcher, car, statistics):
    calls = [(4, Direction.DOWN, 1), (9, Direction.UP, 10), (2, Direction.UP, 6),
             (7, Direction.DOWN, 3), (10, Direction.DOWN, 1)]
    for floor, direction, destination in calls:
        dispatcher.floor_call(floor, direction, destination_floor=destination)
    env.run()

    assert len(dispatcher.queue) == 0
    assert statistics.get_outstanding_requests() == []
    assert len(_destinations(statistics)) == len(calls)
    assert car.mode == CarMode.IDLE
    assert all(1 <= floor <= 10 for floor in statistics.floors_visited("Car_1"))


def test_calls_arriving_while_running_are_served(env, dispatcher, car, statistics):
    def caller():
        yield env.timeout(3)
        dispatcher.floor_call(6, Direction.DOWN, destination_floor=2)
        yield env.timeout(20)
        dispatcher.destination(9)

    env.process(caller())
    env.run()

    assert statistics.stops("Car_1") == [6, 2, 9]
    assert car.floor == 9


# --- No car available ---

def test_no_car_keeps_request_and_backs_off_until_attach(env, broker, statistics):
    dispatcher = Dispatcher(env, "Dispatcher", broker, max_floor=10, retry_backoff=1.0, retry_backoff_max=30.0)
    request = dispatcher.floor_call(3, Direction.UP)
    car = Car(env, "Car_1", broker, max_floor=10)

    def attach_later():
        yield env.timeout(5.5)
        dispatcher.attach(car)

    env.process(attach_later())
    env.run(until=5)

    assert dispatcher.state == "WAITING_FOR_CAR"
    assert dispatcher.queue.peek_first() is request
    assert [t for t, _ in statistics.no_car_events] == [0, 1.0, 3.0]

    env.run(until=30)

    assert car.floor == 3
    assert len(dispatcher.queue) == 0
    assert len(statistics.no_car_events) == 3


def test_disabled_car_is_not_dispatched_until_reenabled(env, dispatcher, car, statistics):
    dispatcher.set_car_mode("Car_1", CarMode.DISABLED)
    dispatcher.floor_call(3, Direction.UP)
    env.run(until=2)

    assert car.floor == 1
    assert len(dispatcher.queue) == 1
    assert statistics.no_car_events

    dispatcher.set_car_mode("Car_1", CarMode.IDLE)
    env.run(until=30)

    assert car.floor == 3
    assert len(dispatcher.queue) == 0


# --- Run flag ---

def test_stop_before_run_holds_requests(env, dispatcher, car):
    dispatcher.stop()
    dispatcher.floor_call(3, Direction.UP)
    env.run(until=10)

    assert dispatcher.state == "STOPPED"
    assert not dispatcher.is_running
    assert car.floor == 1
    assert len(dispatcher.queue) == 1

    # Stopping again changes nothing
    dispatcher.stop()
    assert dispatcher.state == "STOPPED"
    assert len(dispatcher.queue) == 1

    dispatcher.start()
    dispatcher.start()
    env.run(until=30)

    assert car.floor == 3
    assert len(dispatcher.queue) == 0


def test_stop_mid_cycle_lets_the_cycle_finish(env, dispatcher, car):
    dispatcher.floor_call(5, Direction.UP, destination_floor=8)

    def operator():
        yield env.timeout(2.5)
        dispatcher.stop()

    env.process(operator())
    env.run(until=20)

    assert car.floor == 5
    assert dispatcher.state == "STOPPED"
    assert [r.floor for r in dispatcher.pending_requests] == [8]

    dispatcher.start()
    env.run(until=40)

    assert car.floor == 8
    assert len(dispatcher.queue) == 0


# --- Boundary validation ---

@pytest.mark.parametrize("floor,direction,destination", [
    (0, Direction.UP, None),
    (11, Direction.DOWN, None),
    (3, Direction.GOTO, None),
    (3, Direction.IDLE, None),
    (3, Direction.UP, 3),
    (3, Direction.UP, 12),
])
def test_invalid_floor_calls_are_rejected(env, dispatcher, floor, direction, destination):
    with pytest.raises(InvalidRequestError):
        dispatcher.floor_call(floor, direction, destination_floor=destination)
    assert len(dispatcher.queue) == 0


def test_invalid_destination_is_rejected(env, dispatcher):
    with pytest.raises(InvalidRequestError):
        dispatcher.destination(11)
    with pytest.raises(InvalidRequestError):
        dispatcher.call_elevator(Request("x", RequestKind.DESTINATION, 4, Direction.UP))


def test_duplicate_request_is_rejected(env, dispatcher):
    request = Request.floor_call("dup", 4, Direction.UP)
    dispatcher.call_elevator(request)
    with pytest.raises(DuplicateRequestError):
        dispatcher.call_elevator(request)
    assert len(dispatcher.queue) == 1


# --- Car management ---

def test_attach_and_detach(env, broker, dispatcher, car):
    with pytest.raises(CarAlreadyAttachedError):
        dispatcher.attach(car)
    with pytest.raises(UnknownCarError):
        dispatcher.detach("Car_9")
    with pytest.raises(UnknownCarError):
        dispatcher.set_car_mode("Car_9", CarMode.DISABLED)
    with pytest.raises(ValueError):
        dispatcher.attach(Car(env, "Short", broker, max_floor=5))

    assert dispatcher.detach("Car_1") is car
    assert dispatcher.cars == {}


def test_injected_id_factory(env, broker, car):
    counter = itertools.count(100)
    dispatcher = Dispatcher(env, "Dispatcher", broker, max_floor=10, id_factory=lambda: f"call-{next(counter)}")
    dispatcher.attach(car)

    first = dispatcher.floor_call(2, Direction.UP, destination_floor=5)
    env.run()

    assert first.request_id == "call-100"
    assert dispatcher.queue.is_retired("call-101")


def test_selector_picks_car_for_each_cycle(env, broker, statistics):
    dispatcher = Dispatcher(env, "Dispatcher", broker, max_floor=10, selector=NearestCarSelector(num_floors=10))
    low = Car(env, "Car_1", broker, max_floor=10, start_floor=1)
    high = Car(env, "Car_2", broker, max_floor=10, start_floor=9)
    dispatcher.attach(low)
    dispatcher.attach(high)

    dispatcher.floor_call(8, Direction.DOWN)
    env.run()

    assert high.floor == 8
    assert low.floor == 1
    assert statistics.stops("Car_2") == [8]
    assert "Car_1" not in statistics.door_events_history


def test_constructor_validation(env, broker):
    with pytest.raises(ValueError):
        Dispatcher(env, "Bad", broker, max_floor=1)
    with pytest.raises(ValueError):
        Dispatcher(env, "Bad", broker, max_floor=10, retry_backoff=0)
    with pytest.raises(ValueError):
        Dispatcher(env, "Bad", broker, max_floor=10, retry_backoff=5.0, retry_backoff_max=1.0)


def test_request_with_unknown_direction_is_rejected(env, dispatcher):
    with pytest.raises(InvalidRequestError):
        dispatcher.call_elevator(Request("x", RequestKind.FLOOR_CALL, 3, "SIDEWAYS"))
    with pytest.raises(InvalidRequestError):
        dispatcher.call_elevator(Request("y", "ELSEWHERE", 3, Direction.UP))
    assert len(dispatcher.queue) == 0


def test_hand_built_request_with_string_fields_is_accepted(env, dispatcher, car):
    request = dispatcher.call_elevator(Request("z", "FLOOR_CALL", 2, "UP"))
    env.run()

    assert request.direction == Direction.UP
    assert request.kind == RequestKind.FLOOR_CALL
    assert car.floor == 2


# --- Request ids ---

def test_generated_destination_skips_caller_chosen_ids(env, dispatcher, car, statistics):
    dispatcher.call_elevator(Request.floor_call("req-0001", 3, Direction.UP, destination_floor=5))
    env.run()

    assert car.floor == 5
    assert len(dispatcher.queue) == 0
    destinations = _destinations(statistics)
    assert [d["request_id"] for d in destinations] == ["req-0002"]
    assert destinations[0]["origin_id"] == "req-0001"


def test_generated_ids_skip_queued_caller_ids(env, dispatcher):
    dispatcher.call_elevator(Request.floor_call("req-0002", 6, Direction.DOWN))

    assert dispatcher.floor_call(2, Direction.UP).request_id == "req-0001"
    assert dispatcher.floor_call(4, Direction.UP).request_id == "req-0003"


def test_exhausted_id_factory_drops_destination_and_keeps_running(env, broker, car):
    dispatcher = Dispatcher(env, "Dispatcher", broker, max_floor=10, id_factory=lambda: "same")
    dispatcher.attach(car)
    dispatcher.call_elevator(Request.floor_call("same", 3, Direction.UP, destination_floor=5))
    env.run(until=20)

    assert car.floor == 3
    assert len(dispatcher.queue) == 0
    assert dispatcher.state == "WAITING_FOR_WORK"
    with pytest.raises(DuplicateRequestError):
        dispatcher.floor_call(4, Direction.UP)


def test_id_errors_survive_reraise():
    for error in (DuplicateRequestError("req-0001"), UnknownCarError("Car_9"), CarAlreadyAttachedError("Car_1")):
        copy = type(error)(*error.args)
        assert str(copy) == str(error)
    assert str(DuplicateRequestError("req-0001")) == "Request req-0001 is already queued or has been retired"


# --- Several cars ---

def test_car_not_reselected_returns_to_idle(env, broker, statistics):
    dispatcher = Dispatcher(env, "Dispatcher", broker, max_floor=10, selector=NearestCarSelector(num_floors=10))
    low = Car(env, "Car_1", broker, max_floor=10, start_floor=1)
    high = Car(env, "Car_2", broker, max_floor=10, start_floor=10)
    dispatcher.attach(low)
    dispatcher.attach(high)

    dispatcher.floor_call(2, Direction.UP)
    dispatcher.floor_call(9, Direction.DOWN)
    env.run()

    assert low.floor == 2
    assert high.floor == 9
    assert low.mode == CarMode.IDLE
    assert low.direction == Direction.IDLE
    assert high.mode == CarMode.IDLE
    # Car_1 is parked when the second cycle goes to Car_2 (1s travel + 2s dwell)
    assert statistics.mode_history["Car_1"] == [(0, "ACTIVE"), (3.0, "IDLE")]
