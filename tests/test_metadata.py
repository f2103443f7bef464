"""
Unit tests for handler metadata.

Metadata is fixed when the handler is created and read-only afterwards. The
handler gives no meaning to any key; consumers decide, e.g. by sorting their
handlers on a "priority" key.
"""

import pytest

import callback_handler


def noop() -> None:
    pass


def test_default_metadata_is_empty() -> None:
    """Test that a handler without metadata has an empty mapping."""
    handler = callback_handler.CallbackHandler(noop)

    assert handler.get_metadata() == {}
    assert handler.get_metadatum("priority") is None


def test_get_metadatum() -> None:
    """Test that single metadata values are returned, or None when absent."""
    handler = callback_handler.CallbackHandler(noop, {"priority": 10})

    assert handler.get_metadatum("priority") == 10
    assert handler.get_metadatum("missing") is None
    assert handler.get_metadatum("missing", 0) == 0


def test_none_values_are_kept() -> None:
    """Test that a stored None is returned rather than the default."""
    handler = callback_handler.CallbackHandler(noop, {"owner": None})

    assert "owner" in handler.get_metadata()
    assert handler.get_metadatum("owner", "fallback") is None


def test_metadata_is_read_only() -> None:
    """Test that the returned mapping cannot be modified."""
    handler = callback_handler.CallbackHandler(noop, {"priority": 1})

    with pytest.raises(TypeError):
        handler.get_metadata()["priority"] = 2  # type: ignore[index]

    with pytest.raises(TypeError):
        del handler.metadata["priority"]  # type: ignore[attr-defined]

    assert handler.get_metadatum("priority") == 1


def test_metadata_is_copied() -> None:
    """Test that changing the source mapping later does not affect the handler."""
    metadata = {"priority": 1}
    handler = callback_handler.CallbackHandler(noop, metadata)

    metadata["priority"] = 99
    metadata["extra"] = True

    assert handler.get_metadata() == {"priority": 1}


def test_metadata_property_matches_getter() -> None:
    """Test that the metadata property and get_metadata() agree."""
    handler = callback_handler.CallbackHandler(noop, {"a": 1, "b": [1, 2]})

    assert handler.metadata is handler.get_metadata()


def test_consumer_priority_ordering() -> None:
    """Test that consumers can order handlers by a priority metadatum."""
    calls: list[str] = []

    def make(name: str):
        return lambda: calls.append(name)

    handlers = [
        callback_handler.CallbackHandler(make("low"), {"priority": 1}),
        callback_handler.CallbackHandler(make("default")),
        callback_handler.CallbackHandler(make("high"), {"priority": 10}),
    ]

    for handler in sorted(
        handlers, key=lambda h: h.get_metadatum("priority", 0), reverse=True
    ):
        handler.call()

    assert calls == ["high", "low", "default"]
