"""Tests for variant_wiring.protocol — envelopes and the outbox."""
from __future__ import annotations

import pytest

from variant_wiring import ProtocolError
from variant_wiring.protocol import Envelope, Outbox, decode


class TestDecode:
    def test_from_json(self) -> None:
        env = decode('{"type": "create-interaction", "data": {"id": "x"}}')
        assert env == Envelope("create-interaction", {"id": "x"})

    def test_from_dict(self) -> None:
        assert decode({"type": "init"}) == Envelope("init")

    def test_keeps_message(self) -> None:
        assert decode({"type": "error", "message": "boom"}).message == "boom"

    @pytest.mark.parametrize("raw", ["{", "[]", '{"data": 1}', '{"type": 3}', {"type": ""}])
    def test_rejects_malformed(self, raw) -> None:
        with pytest.raises(ProtocolError):
            decode(raw)


class TestEnvelope:
    def test_to_dict_omits_empty_fields(self) -> None:
        assert Envelope("init").to_dict() == {"type": "init"}

    def test_to_json(self) -> None:
        assert Envelope("error", None, "x").to_json() == '{"type": "error", "message": "x"}'


class TestOutbox:
    def test_flush_delivers_in_order(self) -> None:
        box = Outbox()
        seen: list[str] = []
        box.subscribe(lambda env: seen.append(env.type))
        box.post("a")
        box.post("b")
        assert seen == []
        box.flush()
        assert seen == ["a", "b"]

    def test_flush_clears_queue(self) -> None:
        box = Outbox()
        seen: list[Envelope] = []
        box.subscribe(seen.append)
        box.post("a")
        box.flush()
        box.flush()
        assert len(seen) == 1

    def test_posts_during_flush_are_deferred(self) -> None:
        box = Outbox()
        seen: list[str] = []

        def handler(env: Envelope) -> None:
            seen.append(env.type)
            if env.type == "first":
                box.post("second")

        box.subscribe(handler)
        box.post("first")
        box.flush()
        assert seen == ["first"]
        box.flush()
        assert seen == ["first", "second"]

    def test_clear_and_unsubscribe(self) -> None:
        box = Outbox()
        seen: list[Envelope] = []
        box.subscribe(seen.append)
        box.post("a")
        box.clear()
        box.flush()
        box.unsubscribe(seen.append)
        box.unsubscribe(seen.append)
        box.post("b")
        box.flush()
        assert seen == []
