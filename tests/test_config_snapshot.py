import pytest

from radioflexsim.medium import (
    ConfigError,
    ConnectionEngine,
    GraphTopology,
    Radio,
    RayTraceModel,
    load_snapshot,
    save_snapshot,
)


@pytest.mark.parametrize("name", ["medium.yaml", "medium.yml", "medium.json"])
def test_snapshot_round_trip(tmp_path, name):
    data = {"model": {"snr_threshold": 3.0, "obstacles": [[1.0, 2.0, 3.0, 4.0]]}, "send_rssi": {1: -20.0}}
    path = save_snapshot(tmp_path / name, data)
    loaded = load_snapshot(path)
    assert loaded["model"] == data["model"]
    # JSON keys come back as strings
    assert {int(k): v for k, v in loaded["send_rssi"].items()} == {1: -20.0}


def test_empty_file_is_empty_snapshot(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_snapshot(path) == {}


def test_non_mapping_is_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_snapshot(path)


def test_broken_json_is_rejected(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_snapshot(path)


def test_unsupported_suffix(tmp_path):
    with pytest.raises(ConfigError):
        save_snapshot(tmp_path / "medium.ini", {})
    with pytest.raises(ConfigError):
        load_snapshot(tmp_path / "medium.txt")


def test_graph_engine_through_yaml(tmp_path, graph_engine):
    engine, model, radios = graph_engine
    model.add_edge(radios[0], radios[1], ratio=0.5, signal=-40.0, delay=10.0)
    engine.set_send_rssi(radios[0], -20.0)
    path = save_snapshot(tmp_path / "graph.yaml", engine.to_config())

    other_model = GraphTopology()
    other = ConnectionEngine(other_model, seed=1)
    copies = [Radio(r.id, *r.position) for r in radios]
    for radio in copies:
        other.register(radio)
    other.from_config(load_snapshot(path))

    (edge,) = other_model.edges
    assert edge.source is copies[0]
    assert edge.dest.radio is copies[1]
    assert edge.dest.ratio == 0.5
    assert edge.dest.delay == 10.0
    assert other.send_rssi(copies[0]) == -20.0
    assert other.to_config() == engine.to_config()


def test_ray_trace_engine_through_json(tmp_path):
    model = RayTraceModel(transmitting_range=40.0)
    model.channel.add_rect_obstacle(4, -5, 2, 10)
    engine = ConnectionEngine(model)
    path = save_snapshot(tmp_path / "mrm.json", engine.to_config())

    other = ConnectionEngine(RayTraceModel())
    other.from_config(load_snapshot(path))
    assert other.model.transmitting_range == 40.0
    assert other.model.channel.obstacle_count == 1
    assert other.to_config() == engine.to_config()


def test_unknown_radio_in_snapshot(graph_engine):
    engine, _, _ = graph_engine
    with pytest.raises(ConfigError):
        engine.from_config({"base_rssi": {42: -50.0}})
