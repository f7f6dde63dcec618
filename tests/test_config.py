import pytest

from ranking_proximity.config import ProximityConfig, check_doc_type


def test_defaults():
    config = ProximityConfig()
    assert config.strategy == "nearest_pair"
    assert config.order_penalty == 2.0
    assert config.max_distance == 1000.0


def test_from_env(monkeypatch):
    monkeypatch.setenv("RANKING_PROXIMITY_STRATEGY", "min_span")
    monkeypatch.setenv("RANKING_PROXIMITY_MAX_DISTANCE", "50")
    monkeypatch.setenv("RANKING_PROXIMITY_ORDER_PENALTY", " ")
    assert ProximityConfig.from_env() == ProximityConfig("min_span", 2.0, 50.0)


def test_from_env_rejects_unknown_strategy(monkeypatch):
    monkeypatch.setenv("RANKING_PROXIMITY_STRATEGY", "window")
    with pytest.raises(ValueError):
        ProximityConfig.from_env()


def test_config_is_frozen():
    config = ProximityConfig()
    with pytest.raises(AttributeError):
        config.order_penalty = 3.0


@pytest.mark.parametrize("doc_type, ok", [("text", True), ("html", True), ("pdf", False)])
def test_check_doc_type(doc_type, ok):
    if ok:
        assert check_doc_type(doc_type) == doc_type
    else:
        with pytest.raises(ValueError):
            check_doc_type(doc_type)
