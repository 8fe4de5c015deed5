import logging

import pytest

from radioflexsim.medium import (
    SS_NOTHING,
    Change,
    ConfigError,
    ConnectionEngine,
    GraphTopology,
    Radio,
    RadioEvent,
    StatisticalModel,
)
from radioflexsim.medium.topology import channels_compatible


def test_register_none_and_duplicates_warn(graph_engine, caplog):
    engine, _, radios = graph_engine
    with caplog.at_level(logging.WARNING):
        engine.register(None)
        engine.register(radios[0])
        engine.unregister(Radio(99))
    assert len(engine.radios) == 3
    assert len(caplog.records) == 3


def test_registration_triggers(graph_engine):
    engine, _, radios = graph_engine
    changes = []
    engine.medium_triggers.subscribe(lambda change, radio: changes.append((change, radio)))
    extra = Radio(4)
    engine.register(extra)
    engine.unregister(extra)
    assert changes == [(Change.ADD, extra), (Change.REMOVE, extra)]
    assert not engine.is_registered(extra)


def test_clean_delivery(graph_engine):
    engine, model, (r1, r2, r3) = graph_engine
    model.add_edge(r1, r2, signal=-40.0, lqi=90)
    started = []
    engine.transmission_triggers.subscribe(lambda event, conn: started.append(event))

    r1.transmit("hello", 100.0, engine.queue)
    conn = engine.connection_from(r1)
    assert conn.destinations == [r2]
    assert r2.receiving
    assert r2.current_signal_strength == -40.0
    assert r2.lqi == 90
    assert engine.connection_to(r2) is conn

    engine.queue.run()
    assert not r2.receiving
    assert r2.last_packet_received == "hello"
    assert engine.active_connections == []
    assert engine.last_connection is conn
    assert (engine.frames_sent, engine.frames_received, engine.frames_interfered) == (1, 1, 0)
    assert started == [RadioEvent.TRANSMISSION_STARTED, RadioEvent.TRANSMISSION_FINISHED]


def test_uninvolved_radio_keeps_baseline(graph_engine):
    engine, model, (r1, r2, r3) = graph_engine
    model.add_edge(r1, r2)
    r1.start_transmission()
    assert r3.current_signal_strength == SS_NOTHING
    engine.set_base_rssi(r3, -90.0)
    assert r3.current_signal_strength == -90.0


def test_collision_interferes_both(graph_engine):
    engine, model, (r1, r2, r3) = graph_engine
    model.add_edge(r1, r2)
    model.add_edge(r3, r2)
    r1.transmit("a", 100.0, engine.queue)
    first = engine.connection_from(r1)
    r3.transmit("b", 100.0, engine.queue)
    second = engine.connection_from(r3)

    assert r2.interfered
    assert first.is_interfered(r2)
    assert second.interfered == [r2]
    engine.queue.run()
    assert engine.frames_received == 0
    assert engine.frames_interfered == 2
    assert not r2.receiving


def test_receiving_source_is_interfered(graph_engine):
    engine, model, (r1, r2, r3) = graph_engine
    model.add_edge(r1, r2)
    model.add_edge(r2, r3)
    r1.start_transmission()
    conn = engine.connection_from(r1)
    r2.start_transmission()
    assert r2.interfered
    assert conn.is_interfered(r2)
    assert engine.connection_from(r2).destinations == [r3]


def test_delayed_delivery(graph_engine):
    engine, model, (r1, r2, _) = graph_engine
    model.add_edge(r1, r2, delay=50.0)
    queue = engine.queue
    r1.transmit("late", 200.0, queue)
    assert not r2.receiving
    queue.advance(49.0)
    assert not r2.receiving
    queue.advance(50.0)
    assert r2.receiving
    assert r2.last_packet_received == "late"
    queue.advance(249.0)
    assert r2.receiving
    queue.run()
    assert queue.now == 250.0
    assert not r2.receiving


def test_unregister_cancels_delayed_start(graph_engine):
    engine, model, (r1, r2, _) = graph_engine
    model.add_edge(r1, r2, delay=50.0)
    r1.transmit("late", 200.0, engine.queue)
    engine.unregister(r2)
    engine.queue.run()
    assert not r2.receiving
    assert r2.last_packet_received is None


def test_unregister_while_receiving_then_register_again(graph_engine):
    engine, model, (r1, r2, _) = graph_engine
    model.add_edge(r1, r2)
    r1.transmit("one", 100.0, engine.queue)
    assert r2.receiving
    engine.unregister(r2)
    assert not r2.receiving
    assert not r2.interfered
    engine.queue.run()

    engine.register(r2)
    model.add_edge(r1, r2)
    r1.transmit("two", 100.0, engine.queue)
    assert engine.connection_from(r1).destinations == [r2]
    engine.queue.run()
    assert r2.last_packet_received == "two"
    assert not r2.receiving


def test_unregister_source_finishes_connection(graph_engine):
    engine, model, (r1, r2, _) = graph_engine
    model.add_edge(r1, r2)
    r1.start_transmission()
    engine.unregister(r1)
    assert engine.active_connections == []
    assert engine.frames_sent == 1
    assert not r2.receiving


def test_hardware_off_retracts_destination(graph_engine, caplog):
    engine, model, (r1, r2, _) = graph_engine
    model.add_edge(r1, r2)
    r1.start_transmission()
    conn = engine.connection_from(r1)
    r2.turn_off()
    assert conn.is_interfered(r2)
    with caplog.at_level(logging.ERROR):
        r1.turn_off()
    assert "Connection source turned off" in caplog.text


def test_missing_packet_is_logged(graph_engine, caplog):
    engine, model, (r1, r2, _) = graph_engine
    model.add_edge(r1, r2)
    r1.start_transmission()
    with caplog.at_level(logging.ERROR):
        engine.on_packet_transmitted(r1)
    assert "No radio packet" in caplog.text


def test_connections_dataframe(graph_engine):
    engine, model, (r1, r2, r3) = graph_engine
    assert list(engine.get_connections_dataframe().columns)[:2] == ["connection_id", "source_id"]
    model.add_edge(r1, r2)
    r1.transmit("x", 30.0, engine.queue)
    engine.queue.run()
    df = engine.get_connections_dataframe()
    assert len(df) == 1
    assert df.loc[0, "duration"] == 30.0
    assert df.loc[0, "destination_ids"] == [2]


def test_config_round_trip(graph_engine):
    engine, model, (r1, r2, r3) = graph_engine
    model.add_edge(r1, r2, ratio=0.5, delay=10.0)
    engine.set_base_rssi(r3, -90.0)
    engine.set_send_rssi(r1, -5.0)
    config = engine.to_config()

    other = ConnectionEngine(GraphTopology())
    copies = [Radio(i, float(i), 0.0) for i in range(1, 4)]
    for radio in copies:
        other.register(radio)
    other.from_config(config)
    assert other.base_rssi(copies[2]) == -90.0
    assert other.send_rssi(copies[0]) == -5.0
    assert other.to_config() == config


def test_config_unknown_radio(graph_engine):
    engine, _, _ = graph_engine
    with pytest.raises(ConfigError):
        engine.from_config({"base_rssi": {42: -80.0}})
    with pytest.raises(ConfigError):
        engine.from_config({"send_rssi": {1: "loud"}})


def test_rejected_model_config_keeps_rssi_maps():
    model = StatisticalModel()
    engine = ConnectionEngine(model)
    radio = Radio(1)
    engine.register(radio)
    with pytest.raises(ConfigError):
        engine.from_config({"send_rssi": {1: -3.0}, "model": {"awgn_sigma": "loud"}})
    assert engine.send_rssi(radio) == -10.0
    assert model.awgn_sigma == 3.0


@pytest.mark.parametrize("first", [-1, 0, 1, 2])
@pytest.mark.parametrize("second", [-1, 0, 1, 2])
def test_channel_compatibility_is_symmetric(first, second):
    assert channels_compatible(first, second) == channels_compatible(second, first)
    assert channels_compatible(-1, second)
    assert channels_compatible(first, first)
