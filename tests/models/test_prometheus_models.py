# tests/models/test_prometheus_models.py

import pytest

from finkube.models.prometheus import parse_matrix, parse_vector


def test_parse_vector():
    """Vector entries become samples with float values and integer timestamps."""
    result = [
        {"metric": {"namespace": "shop"}, "value": [1678886400.123, "0.5"]},
        {"metric": {"namespace": "blog"}, "value": [1678886400, "NaN"]},
    ]

    samples = parse_vector(result)

    assert len(samples) == 1
    assert samples[0].labels == {"namespace": "shop"}
    assert samples[0].timestamp == 1678886400
    assert samples[0].value == 0.5
    assert samples[0].as_series().points == [(1678886400, 0.5)]


def test_parse_matrix_drops_nan_points():
    """NaN points are dropped from range series."""
    result = [{"metric": {}, "values": [[100, "1"], [115, "NaN"], [130, "2.5"]]}]

    series = parse_matrix(result)

    assert series[0].labels == {}
    assert series[0].points == [(100, 1.0), (130, 2.5)]


def test_malformed_results_raise():
    """Entries without the expected shape raise standard errors."""
    with pytest.raises(KeyError):
        parse_vector([{"metric": {}}])
    with pytest.raises(ValueError):
        parse_matrix([{"metric": {}, "values": [[100, "many"]]}])
