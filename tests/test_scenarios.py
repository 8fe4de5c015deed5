import pytest

from radioflexsim.medium import Parameter, RayType, TxPair
from radioflexsim.medium.topology import CapturePolicy
from radioflexsim.scenarios import (
    WallParameters,
    build_capture_scenario,
    build_logistic_pair,
    build_wall_scenario,
    run_capture_scenario,
)


def test_logistic_pair_is_reliable():
    scenario = build_logistic_pair()
    model = scenario.engine.model
    assert model.rx_success_probability(scenario["A"], scenario["B"]) == pytest.approx(1.0, abs=1e-3)

    scenario["A"].transmit("hello", 1000.0, scenario.queue)
    scenario.queue.run()
    assert scenario["B"].last_packet_received == "hello"
    assert scenario.engine.frames_received == 1


def test_closer_sender_captures_receiver():
    scenario = build_capture_scenario()
    b = scenario["B"]
    conn_a, conn_c = run_capture_scenario(scenario)
    assert conn_a.is_interfered(b)
    assert conn_c.is_clean_destination(b)
    assert b.last_packet_received == "from C"
    assert not b.receiving


def test_without_capture_both_frames_are_lost():
    scenario = build_capture_scenario(capture_policy=CapturePolicy.NONE)
    conn_a, conn_c = run_capture_scenario(scenario)
    b = scenario["B"]
    assert conn_a.is_interfered(b)
    assert conn_c.is_interfered(b)


def test_wall_leaves_one_refracted_path():
    scenario = build_wall_scenario()
    channel = scenario.engine.model.channel
    a, b = scenario["A"], scenario["B"]
    p = channel.parameters
    tree = channel.build_tree(
        a.position,
        p[Parameter.rt_max_rays],
        p[Parameter.rt_max_refractions],
        p[Parameter.rt_max_reflections],
        p[Parameter.rt_max_diffractions],
    )
    (path,) = channel.connecting_paths(a.position, b.position, tree)
    assert path.types == [RayType.ORIGIN, RayType.REFRACTION, RayType.DESTINATION]
    assert path.length == pytest.approx(10.0)


def test_wall_attenuation_follows_thickness():
    scenario = build_wall_scenario()
    channel = scenario.engine.model.channel
    rss, _ = channel.received_signal_strength(TxPair.from_radios(scenario["A"], scenario["B"]))
    assert rss == pytest.approx(channel.fspl(10.0) - 6.0)

    thin = build_wall_scenario(WallParameters(wall_thickness=1.0))
    thin_channel = thin.engine.model.channel
    pair = TxPair.from_radios(thin["A"], thin["B"])
    assert thin_channel.received_signal_strength(pair)[0] == pytest.approx(channel.fspl(10.0) - 3.0)


def test_wall_still_delivers():
    scenario = build_wall_scenario()
    a, b = scenario["A"], scenario["B"]
    a.transmit("through", 500.0, scenario.queue)
    conn = scenario.engine.connection_from(a)
    assert conn.is_clean_destination(b)
    scenario.queue.run()
    assert b.last_packet_received == "through"
