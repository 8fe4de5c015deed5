import numpy as np

from radioflexsim.medium import ChannelModel, ConnectionEngine, GraphTopology, RngManager
from radioflexsim.medium._random import ensure_rng


def test_same_seed_same_stream():
    assert ensure_rng(None, 5).random() == ensure_rng(None, 5).random()
    assert ensure_rng(None, 5).random() != ensure_rng(None, 6).random()


def test_given_generator_is_shared():
    rng = np.random.Generator(np.random.MT19937(3))
    assert ensure_rng(rng) is rng
    engine = ConnectionEngine(GraphTopology(), rng=rng)
    channel = ChannelModel(rng=rng)
    assert engine.rng is channel.rng is rng


def test_engine_seed_drives_model_draws():
    first = ConnectionEngine(GraphTopology(), seed=11)
    second = ConnectionEngine(GraphTopology(), seed=11)
    assert first.model.rng.random() == second.model.rng.random()


def test_named_streams_are_reproducible():
    first, second = RngManager(123), RngManager(123)
    assert first.stream("engine").random() == second.stream("engine").random()
    assert first.stream("engine") is first.stream("engine")


def test_named_streams_are_independent():
    rngs = RngManager(7)
    assert rngs.stream("engine").random() != rngs.stream("channel").random()
    assert rngs.stream("radio", 1).random() != rngs.stream("radio", 2).random()
