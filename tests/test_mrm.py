import pytest

from radioflexsim.medium import (
    CapturePolicy,
    Change,
    ChannelModel,
    ConfigError,
    ConnectionEngine,
    Outcome,
    Parameter,
    Radio,
    RayTraceModel,
    TxPair,
)


def _engine(model, *radios):
    engine = ConnectionEngine(model, seed=2)
    for radio in radios:
        engine.register(radio)
    return engine


def test_free_space_destination_signal():
    model = RayTraceModel()
    a, b = Radio(1, 0, 0), Radio(2, 10, 0)
    engine = _engine(model, a, b)
    a.start_transmission()
    conn = engine.connection_from(a)
    expected = model.channel.received_signal_strength(TxPair.from_radios(a, b))[0]
    assert conn.destinations == [b]
    assert conn.signal_strength(b) == pytest.approx(expected)
    assert b.current_signal_strength == pytest.approx(expected)
    assert a.current_signal_strength == model.channel.parameter(Parameter.bg_noise_mean)


def test_channel_mismatch_is_interfered():
    model = RayTraceModel()
    a, b = Radio(1, 0, 0, channel=1), Radio(2, 10, 0, channel=2)
    _engine(model, a, b)
    (item,) = model.classify(a)
    assert item.outcome is Outcome.INTERFERED
    assert item.signal is None


def test_out_of_range_is_skipped():
    model = RayTraceModel(transmitting_range=5.0)
    a, b = Radio(1, 0, 0), Radio(2, 10, 0)
    _engine(model, a, b)
    assert model.classify(a) == []
    assert model.neighbors(a) == []


def test_neighbors_grow_with_range():
    model = RayTraceModel(transmitting_range=5.0)
    radios = [Radio(i, float(x), 0.0) for i, x in enumerate((0, 3, 8, 20))]
    _engine(model, *radios)
    counts = []
    for rng in (5.0, 10.0, 50.0):
        model.transmitting_range = rng
        counts.append(len(model.neighbors(radios[0])))
    assert counts == [1, 2, 3]


def test_capture_policy_follows_parameter():
    channel = ChannelModel()
    model = RayTraceModel(channel)
    engine = _engine(model, Radio(1), Radio(2, 5, 0))
    changes = []
    engine.medium_triggers.subscribe(lambda change, arg: changes.append(change))
    assert model.capture_policy is CapturePolicy.PREAMBLE_WINDOW
    channel.set_parameter(Parameter.capture_effect, False)
    assert model.capture_policy is CapturePolicy.NONE
    assert changes == [Change.UPDATE]

    fixed = RayTraceModel(ChannelModel(), capture_policy=CapturePolicy.SYMMETRIC)
    fixed.channel.set_parameter(Parameter.capture_effect, False)
    assert fixed.capture_policy is CapturePolicy.SYMMETRIC


def test_strong_frame_captures_within_preamble():
    model = RayTraceModel()
    a, b, c = Radio(1, 0, 0), Radio(2, 100, 0), Radio(3, 101, 0)
    engine = _engine(model, a, b, c)
    a.start_transmission()
    first = engine.connection_from(a)
    assert b.receiving
    engine.queue.advance(10.0)
    c.start_transmission()
    second = engine.connection_from(c)
    assert second.is_clean_destination(b)
    assert not first.involves(b)


def test_late_frame_interferes_after_preamble():
    model = RayTraceModel()
    a, b, c = Radio(1, 0, 0), Radio(2, 100, 0), Radio(3, 101, 0)
    engine = _engine(model, a, b, c)
    a.start_transmission()
    first = engine.connection_from(a)
    engine.queue.advance(100.0)
    c.start_transmission()
    assert first.is_interfered(b)
    assert engine.connection_from(c).is_interfered(b)
    assert b.interfered


def test_noise_source_raises_neighbours():
    model = RayTraceModel()
    quiet = Radio(1, 0, 0)
    noise = Radio(2, 5, 0, noise_level=10.0)
    _engine(model, quiet, noise)
    pair = TxPair(5, 0, 0, 0, tx_power=10.0)
    assert quiet.current_signal_strength == pytest.approx(model.channel.received_signal_strength(pair)[0])


def test_noise_interferes_reception():
    model = RayTraceModel()
    a, b = Radio(1, 0, 0), Radio(2, 50, 0)
    noise = Radio(3, 51, 0)
    engine = _engine(model, a, b, noise)
    a.start_transmission()
    assert b.receiving and not b.interfered
    noise.set_noise_level(20.0)
    assert b.interfered
    assert engine.connection_from(a).is_interfered(b)


def test_config_round_trip():
    model = RayTraceModel(transmitting_range=30.0)
    model.channel.set_parameter(Parameter.snr_threshold, 3.0)
    config = model.to_config()
    assert config["transmitting_range"] == 30.0
    assert config["snr_threshold"] == 3.0

    other = RayTraceModel()
    other.from_config(config)
    assert other.transmitting_range == 30.0
    assert other.channel.parameter(Parameter.snr_threshold) == 3.0
    assert other.to_config() == config


def test_rejected_config_resets_range_and_channel():
    model = RayTraceModel(transmitting_range=30.0)
    model.channel.set_parameter(Parameter.snr_threshold, 3.0)
    with pytest.raises(ConfigError):
        model.from_config({"transmitting_range": 40.0, "snr_threshold": "high"})
    assert model.transmitting_range is None
    assert model.channel.parameter(Parameter.snr_threshold) == 6.0

    model.channel.set_parameter(Parameter.snr_threshold, 3.0)
    with pytest.raises(ConfigError):
        model.from_config({"transmitting_range": "far"})
    assert model.transmitting_range is None
    assert model.channel.parameter(Parameter.snr_threshold) == 6.0
