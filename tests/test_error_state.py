from services.error_state import ERROR_TTL_SECONDS, ErrorSlot


def test_newer_message_replaces_older(clock):
    slot = ErrorSlot(clock=clock)
    slot.set("first")
    clock.advance(3)
    slot.set("second")
    clock.advance(3)

    assert slot.message == "second"


def test_expires_at_ttl(clock):
    slot = ErrorSlot(clock=clock)
    slot.set("boom")
    clock.advance(ERROR_TTL_SECONDS)

    assert slot.message is None
    assert slot.remaining == 0.0


def test_remaining(clock):
    slot = ErrorSlot(ttl=5, clock=clock)
    slot.set("boom")
    clock.advance(2)

    assert slot.remaining == 3


def test_clear(clock):
    slot = ErrorSlot(clock=clock)
    slot.set("boom")
    slot.clear()

    assert slot.message is None
