"""Unit tests for mission pad commands."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from tello_comm.devices.mission_pad import DetectDirection, MissionPadAPI
from tello_comm.devices.tello import Tello
from tests.helpers.fake_drone import FakeTello


@pytest.fixture
def mock_tello() -> MagicMock:
    tello = MagicMock(spec=Tello)
    tello.execute_command.return_value = True
    tello.execute_action.return_value = True
    return tello


class TestRendering:
    """Tests for the exact wire text of each command."""

    @pytest.mark.parametrize(
        ("call", "expected"),
        [
            (lambda api: api.enable_pad_detection(), "mon"),
            (lambda api: api.disable_pad_detection(), "moff"),
            (lambda api: api.set_pad_detection_direction(DetectDirection.BOTH), "mdirection 2"),
            (lambda api: api.fly_straight_to_pad(50, 0, 100, 30, 1), "go 50 0 100 30 m1"),
            (
                lambda api: api.fly_arc_to_pad(20, 20, 80, 60, 40, 80, 30, 2),
                "curve 20 20 80 60 40 80 30 m2",
            ),
            (
                lambda api: api.jump_to_next_pad(100, 0, 80, 30, 90, 1, 2),
                "jump 100 0 80 30 90 m1 m2",
            ),
        ],
    )
    def test_wire_text(self, fake_tello: FakeTello, connected_tello: Tello, call, expected):
        """Test the exact text each command puts on the wire."""
        assert call(connected_tello.mission_pad) is True
        assert fake_tello.received[-1] == expected

    def test_float_arguments_render_compactly(self, fake_tello: FakeTello, connected_tello: Tello):
        """Test that whole-number floats render without decimals."""
        assert connected_tello.mission_pad.fly_straight_to_pad(50.0, -20.0, 100.0, 30.0, 4)
        assert fake_tello.received[-1] == "go 50 -20 100 30 m4"


class TestRouting:
    """Tests for which request flavor each command uses."""

    def test_detection_settings_are_commands(self, mock_tello: MagicMock):
        """Test that detection settings use the command timeout."""
        api = MissionPadAPI(mock_tello)
        api.enable_pad_detection()
        api.disable_pad_detection()
        api.set_pad_detection_direction(DetectDirection.FORWARD_ONLY)

        assert mock_tello.execute_command.call_count == 3
        mock_tello.execute_action.assert_not_called()
        mock_tello.execute_command.assert_called_with("mdirection {}", DetectDirection.FORWARD_ONLY)

    def test_flights_are_actions(self, mock_tello: MagicMock):
        """Test that pad flights use the action timeout."""
        api = MissionPadAPI(mock_tello)
        api.fly_straight_to_pad(1, 2, 3, 4, 5)
        api.fly_arc_to_pad(1, 2, 3, 4, 5, 6, 7, 8)
        api.jump_to_next_pad(1, 2, 3, 4, 5, 6, 7)

        assert mock_tello.execute_action.call_count == 3
        mock_tello.execute_command.assert_not_called()

    def test_failure_propagates(self, mock_tello: MagicMock):
        """Test that a failed request returns False."""
        mock_tello.execute_command.return_value = False
        assert MissionPadAPI(mock_tello).enable_pad_detection() is False

    def test_direction_accepts_plain_int(self, mock_tello: MagicMock):
        """Test that a plain int direction is converted to DetectDirection."""
        MissionPadAPI(mock_tello).set_pad_detection_direction(0)  # type: ignore[arg-type]
        mock_tello.execute_command.assert_called_with("mdirection {}", DetectDirection.DOWNWARD_ONLY)
