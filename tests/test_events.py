import pytest

from webdriver_binaries.events import EventEmitter


def test_emit_in_registration_order():
    emitter = EventEmitter()
    calls = []
    emitter.on("progress", lambda payload: calls.append(("first", payload["fraction"])))
    emitter.on("progress", lambda payload: calls.append(("second", payload["fraction"])))

    emitter.emit("progress", {"fraction": 0.5})
    emitter.emit("complete", {})

    assert calls == [("first", 0.5), ("second", 0.5)]


def test_off():
    emitter = EventEmitter()
    calls = []
    listener = calls.append
    emitter.on("complete", listener)
    emitter.off("complete", listener)
    emitter.off("complete", listener)

    emitter.emit("complete", {"binary": "chrome"})
    assert calls == []


def test_forward_only_named_events():
    """Test forwarded events reach outer listeners unchanged"""
    inner, outer = EventEmitter(), EventEmitter()
    outer.forward(inner, ["progress", "request.start"])
    received = []
    outer.on("progress", lambda payload: received.append(("progress", payload)))
    outer.on("request.start", lambda payload: received.append(("request.start", payload)))
    outer.on("complete", lambda payload: received.append(("complete", payload)))

    inner.emit("request.start", {"url": "https://example.com/a.zip"})
    inner.emit("progress", {"fraction": 1.0})
    inner.emit("complete", {"binary": "chrome"})

    assert received == [
        ("request.start", {"url": "https://example.com/a.zip"}),
        ("progress", {"fraction": 1.0}),
    ]


def test_listener_errors_propagate():
    emitter = EventEmitter()

    def broken(payload):
        raise ValueError("listener failed")

    emitter.on("progress", broken)
    with pytest.raises(ValueError, match="listener failed"):
        emitter.emit("progress", {})
