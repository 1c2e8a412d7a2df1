import pytest

from kubecost_exporter.paths import resolve_path


@pytest.mark.parametrize(
    "path, mapping, expected",
    [
        ("key", {"key": "value"}, ("value", True)),
        ("x", {"key": "value"}, (None, False)),
        ("key1.key2", {"key1": {"key2": "value"}}, ("value", True)),
        ("key1.key2", {"key1": {"key2": 1}}, (1, True)),
        ("key1.key2", {"key1": {"key2": 13.37}}, (13.37, True)),
        ("key1.key2.key3", {"key1": {"key2": "value"}}, (None, False)),
        ("key1.missing", {"key1": {"key2": "value"}}, (None, False)),
    ],
)
def test_resolve_path(path, mapping, expected):
    assert resolve_path(path, mapping) == expected


def test_resolve_path_keeps_present_empty_values():
    """A key that exists with a null or empty value is found."""
    assert resolve_path("key", {"key": None}) == (None, True)
    assert resolve_path("key", {"key": ""}) == ("", True)
    assert resolve_path("a.b", {"a": {"b": {}}}) == ({}, True)


def test_resolve_path_returns_nested_containers():
    labels = {"app": "api", "team": "core"}
    assert resolve_path("labels", {"labels": labels}) == (labels, True)


def test_resolve_path_through_non_mapping_is_not_found():
    """Sequences and scalars cannot be indexed by a segment."""
    mapping = {"services": ["a", "b"], "node": "minikube"}
    assert resolve_path("services.0", mapping) == (None, False)
    assert resolve_path("node.name", mapping) == (None, False)


def test_resolve_path_deep():
    mapping = {"a": {"b": {"c": {"d": "deep"}}}}
    assert resolve_path("a.b.c.d", mapping) == ("deep", True)
    assert resolve_path("a.b.x.d", mapping) == (None, False)
