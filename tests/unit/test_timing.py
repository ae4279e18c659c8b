"""tests/unit/test_timing.py"""

import asyncio

import pytest

from reqtimeout.utils.timing import PhaseTimer, Timeout, TimerState


class TestTimeout:
    """Tests for Timeout class."""

    def test_timeout_from_float_with_none(self):
        """Test Timeout.from_float() with None returns empty Timeout."""
        timeout = Timeout.from_float(None)

        assert isinstance(timeout, Timeout)
        assert timeout.connect is None
        assert timeout.socket is None
        assert not timeout.enabled

    def test_timeout_from_float_with_value(self):
        """Test Timeout.from_float() with float value."""
        timeout = Timeout.from_float(5.0)

        assert timeout.connect == 5.0
        assert timeout.socket == 5.0
        assert timeout.enabled

    def test_from_value_number(self):
        """A bare number applies to both phases."""
        assert Timeout.from_value(2) == Timeout(connect=2.0, socket=2.0)

    def test_from_value_mapping(self):
        """A mapping configures each phase independently."""
        timeout = Timeout.from_value({"socket": 1.5})

        assert timeout.connect is None
        assert timeout.socket == 1.5
        assert not timeout.connect_enabled
        assert timeout.socket_enabled

    def test_from_value_instance_passthrough(self):
        """A Timeout instance is returned unchanged."""
        timeout = Timeout(connect=1.0)
        assert Timeout.from_value(timeout) is timeout

    def test_from_value_none(self):
        """None disables both phases."""
        assert not Timeout.from_value(None).enabled

    @pytest.mark.parametrize("value", [0, -1, {"connect": 0, "socket": -2.5}])
    def test_non_positive_disables(self, value):
        """Zero and negative durations are not enforced."""
        timeout = Timeout.from_value(value)

        assert not timeout.connect_enabled
        assert not timeout.socket_enabled
        assert not timeout.enabled

    def test_from_value_unknown_phase(self):
        """Unknown mapping keys are rejected."""
        with pytest.raises(TypeError, match="read"):
            Timeout.from_value({"connect": 1, "read": 2})

    @pytest.mark.parametrize("value", ["1", True, [1, 2]])
    def test_from_value_invalid_type(self, value):
        """Unsupported types are rejected."""
        with pytest.raises(TypeError):
            Timeout.from_value(value)


class TestPhaseTimer:
    """Tests for PhaseTimer class."""

    @pytest.mark.asyncio
    async def test_fires_after_delay(self):
        """An armed timer calls back once its delay elapsed."""
        fired = []
        timer = PhaseTimer("socket", 0.02, lambda: fired.append(True)).arm()

        assert timer.armed
        await asyncio.sleep(0.05)

        assert fired == [True]
        assert timer.state is TimerState.FIRED
        assert not timer.armed

    @pytest.mark.asyncio
    async def test_cancel_prevents_callback(self):
        """A cancelled timer never calls back."""
        fired = []
        timer = PhaseTimer("connect", 0.02, lambda: fired.append(True)).arm()
        timer.cancel()

        await asyncio.sleep(0.05)

        assert fired == []
        assert timer.state is TimerState.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_idle_timer(self):
        """Cancelling a timer that was never armed keeps it idle."""
        timer = PhaseTimer("connect", 0.02, lambda: None)
        timer.cancel()

        assert timer.state is TimerState.IDLE

    @pytest.mark.asyncio
    async def test_rearm_restarts_countdown(self):
        """Re-arming replaces the pending callback with a full-delay one."""
        fired = []
        timer = PhaseTimer("socket", 0.06, lambda: fired.append(True)).arm()

        await asyncio.sleep(0.04)
        timer.arm()
        await asyncio.sleep(0.04)
        assert fired == []

        await asyncio.sleep(0.05)
        assert fired == [True]

    @pytest.mark.asyncio
    async def test_uses_given_loop(self):
        """The timer schedules on the loop it was given."""
        loop = asyncio.get_running_loop()
        timer = PhaseTimer("socket", 10, lambda: None, loop=loop).arm()

        assert timer._loop is loop
        timer.cancel()
