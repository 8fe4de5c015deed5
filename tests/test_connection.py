from radioflexsim.medium.connection import Connection
from radioflexsim.medium.radio import Radio, RadioEvent, TxPair


def test_destination_views():
    src, a, b, c = (Radio(i) for i in range(4))
    conn = Connection(src, start_time=3.0)
    conn.add_destination(a, delay=2.0, signal=-50.0)
    conn.add_destination(b)
    conn.add_interfered(c, -80.0)
    conn.add_interfered(b)

    assert conn.destinations == [a]
    assert conn.all_destinations == [a, b]
    assert conn.interfered == [c, b]
    assert conn.interfered_non_destinations == [c]
    assert conn.destination_delay(a) == 2.0
    assert conn.signal_strength(a) == -50.0
    assert conn.signal_strength(b) is None

    conn.remove_destination(a)
    assert not conn.involves(a)
    assert conn.involves(c)


def test_connection_ids_are_unique():
    src = Radio(1)
    assert Connection(src).id != Connection(src).id


def test_radio_reception_callbacks():
    radio = Radio(1)
    events = []
    radio.event_triggers.subscribe(lambda event, r: events.append(event))

    radio.signal_reception_start()
    assert radio.receiving and not radio.interfered
    radio.interfere_any_reception()
    radio.interfere_any_reception()
    assert events.count(RadioEvent.RECEPTION_INTERFERED) == 1
    radio.signal_reception_end()
    assert not radio.receiving and not radio.interfered


def test_transmitting_radio_gets_interfered_instead_of_receiving():
    radio = Radio(1)
    radio.start_transmission()
    radio.signal_reception_start()
    assert radio.interfered
    assert not radio.receiving


def test_off_radio_cannot_transmit():
    radio = Radio(1, radio_on=False)
    assert not radio.start_transmission("data")
    radio.signal_reception_start()
    assert not radio.receiving


def test_tx_pair_from_radios():
    pair = TxPair.from_radios(Radio(1, 0, 0, output_power=3.0), Radio(2, 3, 4))
    assert pair.distance == 5.0
    assert pair.tx_power == 3.0
    assert pair.source == (0.0, 0.0)
    assert pair.dest == (3.0, 4.0)
