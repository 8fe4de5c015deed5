from radioflexsim.medium.event_queue import EventQueue


def test_events_run_in_time_then_schedule_order():
    queue = EventQueue()
    order = []
    queue.schedule(20.0, lambda: order.append("late"))
    queue.schedule(10.0, lambda: order.append("first"))
    queue.schedule(10.0, lambda: order.append("second"))
    assert queue.run() == 3
    assert order == ["first", "second", "late"]
    assert queue.now == 20.0


def test_cancelled_event_is_skipped():
    queue = EventQueue()
    fired = []
    event = queue.schedule_in(5.0, lambda: fired.append(1))
    event.cancel()
    assert len(queue) == 0
    queue.run()
    assert fired == []


def test_run_until_moves_clock():
    queue = EventQueue()
    fired = []
    queue.schedule(50.0, lambda: fired.append(50))
    queue.schedule(150.0, lambda: fired.append(150))
    queue.advance(100.0)
    assert fired == [50]
    assert queue.now == 100.0
    assert queue.peek_time() == 150.0


def test_past_event_runs_now():
    queue = EventQueue(start_time=10.0)
    event = queue.schedule(5.0, lambda: None)
    assert event.time == 10.0
