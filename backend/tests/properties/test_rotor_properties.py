"""
Property-Based Tests for protocol and rotor state invariants.

These hold for ANY valid input, not just hand-picked examples.
"""

import pytest
from hypothesis import given, assume, settings, HealthCheck
from hypothesis import strategies as st

from antenna_rotor import MotionController
from rotor.errors import InvalidArgument, ParseError
from rotor.protocol import encode, parse_position, to_degrees, degrees_to_counts
from rotor.state import RotorConfig
from rotor.transport import MockTransport
from rotor.types import Direction


# =============================================================================
# Hypothesis Strategies
# =============================================================================


prefix_char = st.characters(min_codepoint=33, max_codepoint=126)
degrees_strategy = st.floats(min_value=0.001, max_value=1000, allow_nan=False)
ratio_strategy = st.floats(min_value=0.01, max_value=1.0)


def connected_rotor() -> tuple:
    transport = MockTransport()
    config = RotorConfig(command_settle_delay=0, reset_settle_delay=0)
    ctrl = MotionController(transport, port="mock", config=config)
    ctrl.connect()
    return ctrl, transport


# =============================================================================
# Response parsing
# =============================================================================


class TestParsePosition:

    @given(prefix=prefix_char, p=st.integers(min_value=-10**9, max_value=10**9))
    def test_any_prefix_any_integer(self, prefix: str, p: int):
        """One leading character is always dropped; the rest is the count."""
        assert parse_position(prefix + str(p)) == p

    @given(prefix=prefix_char, p=st.integers(min_value=-10**9, max_value=10**9))
    def test_with_terminator(self, prefix: str, p: int):
        assert parse_position(f"{prefix}{p}\r\n".encode("ascii")) == p

    @given(prefix=prefix_char, text=st.text(alphabet="abcxyz.#*", min_size=0, max_size=8))
    def test_rejects_non_integer_payload(self, prefix: str, text: str):
        with pytest.raises(ParseError):
            parse_position(prefix + text)

    @given(raw=st.integers(min_value=-10**7, max_value=10**7), ratio=ratio_strategy)
    def test_degrees_round_trip_within_one_count(self, raw: int, ratio: float):
        degrees = to_degrees(raw, 1000, ratio)
        assert abs(degrees_to_counts(degrees, 1000, ratio) - raw) <= 1


# =============================================================================
# Command encoding
# =============================================================================


class TestEncoding:

    @given(address=st.integers(min_value=0, max_value=99),
           body=st.sampled_from(["LD3", "LD0", "Z", "PZ", "PR", "LF"]))
    def test_addressed_format(self, address: int, body: str):
        wire = encode(address, body)
        assert wire == f"{address}{body}\r\n".encode("ascii")
        assert wire.endswith(b"\r\n")

    @given(address=st.integers(max_value=-1))
    def test_negative_address_rejected(self, address: int):
        with pytest.raises(InvalidArgument):
            encode(address, "PR")


# =============================================================================
# Rotor state
# =============================================================================


class TestDegreesPerStep:

    @given(d=degrees_strategy, ratio=ratio_strategy)
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_read_back_and_payload(self, d: float, ratio: float):
        """set_degrees_per_step(d) reads back d and sends D<d * 1000 * ratio>."""
        assume(round(d * 1000 * ratio) >= 1)
        ctrl, transport = connected_rotor()
        ctrl.set_gearbox_ratio(ratio)

        ctrl.set_degrees_per_step(d)

        assert ctrl.degrees_per_step == d
        assert transport.sent_commands[-1] == f"D{int(round(d * 1000 * ratio))}"


class TestStepSign:

    @given(d=degrees_strategy, direction=st.sampled_from(list(Direction)))
    @settings(max_examples=100)
    def test_two_steps_move_twice(self, d: float, direction: Direction):
        """Two steps move the angle by exactly 2 * degrees_per_step, signed."""
        ctrl, _ = connected_rotor()
        ctrl.set_direction(direction)
        ctrl.set_degrees_per_step(d)
        start = ctrl.current_angle

        ctrl.activate_step()
        ctrl.activate_step()

        assert ctrl.current_angle - start == pytest.approx(2 * d * direction.sign)

    @given(steps=st.lists(st.sampled_from(list(Direction)), max_size=20))
    def test_angle_is_sum_of_signed_steps(self, steps):
        ctrl, _ = connected_rotor()
        ctrl.set_degrees_per_step(5)

        for direction in steps:
            ctrl.set_direction(direction)
            ctrl.activate_step()

        assert ctrl.current_angle == sum(5 * d.sign for d in steps)


class TestGearboxRatio:

    @given(good=ratio_strategy,
           bad=st.one_of(
               st.floats(max_value=0, allow_nan=False),
               st.floats(min_value=1, exclude_min=True, allow_nan=False),
           ))
    def test_rejects_out_of_range(self, good: float, bad: float):
        ctrl, transport = connected_rotor()
        ctrl.set_gearbox_ratio(good)

        with pytest.raises(InvalidArgument):
            ctrl.set_gearbox_ratio(bad)

        assert ctrl.gearbox_ratio == good
        assert transport.sent_commands == []
