"""
Unit tests for the transports.
"""

import pytest
import serial

from antenna_rotor import MotionController
from rotor import serial_transport
from rotor.errors import RotorError, TransportError
from rotor.file_transport import FileTransport
from rotor.serial_transport import SerialTransport, SerialConfig
from rotor.transport import MockTransport, Transport


class TestMockTransport:
    """Tests for the simulated controller."""

    @pytest.fixture
    def mock(self):
        transport = MockTransport()
        transport.open("mock", 9600)
        return transport

    def test_not_connected_until_open(self):
        transport = MockTransport()
        assert not transport.is_connected
        with pytest.raises(TransportError):
            transport.write(b"G\r\n")

    def test_open_failure(self):
        transport = MockTransport()
        transport.fail_open = True
        with pytest.raises(TransportError):
            transport.open("mock", 9600)

    def test_tracks_sent_commands(self, mock):
        mock.write(b"H+\r\n")
        mock.write(b"D2000\r\n")

        assert mock.sent_commands == ["H+", "D2000"]
        assert mock.command_count == 2

    def test_step_moves_position(self, mock):
        mock.write(b"H-\r\n")
        mock.write(b"D500\r\n")
        mock.write(b"G\r\n")

        assert mock.position == -500

    def test_position_report(self, mock):
        mock.position = 4000
        mock.write(b"2PR\r\n")
        mock.write(b"2LF\r\n")

        assert mock.read_line() == b"*4000\r\n"

    def test_slow_motion_completes_after_reports(self):
        transport = MockTransport(motion_reads=2)
        transport.open("mock", 9600)
        transport.write(b"D1000\r\n")
        transport.write(b"G\r\n")

        readings = []
        for _ in range(3):
            transport.write(b"2PR\r\n")
            transport.write(b"2LF\r\n")
            readings.append(int(transport.read_line()[1:]))

        assert readings[0] < 1000
        assert readings[-1] == 1000
        assert not transport.is_moving

    def test_stalled_never_moves(self, mock):
        mock.stalled = True
        mock.write(b"D1000\r\n")
        mock.write(b"G\r\n")

        assert mock.position == 0

    def test_kill_halts_motion(self):
        transport = MockTransport(motion_reads=5)
        transport.open("mock", 9600)
        transport.write(b"D1000\r\n")
        transport.write(b"G\r\n")
        transport.write(b"MN\r\n")
        transport.write(b"K\r\n")

        assert not transport.is_moving

    def test_limits_and_zero(self, mock):
        mock.position = 77
        mock.write(b"2LD3\r\n")
        mock.write(b"2PZ\r\n")

        assert mock.limits_enabled is False
        assert mock.position == 0

    def test_read_without_response_raises(self, mock):
        with pytest.raises(TransportError):
            mock.read_line()

    def test_flush_input(self, mock):
        mock.queue_response("*1")
        mock.flush_input()
        with pytest.raises(TransportError):
            mock.read_line()

    def test_satisfies_protocol(self, mock):
        transport: Transport = mock
        assert isinstance(transport.is_connected, bool)
        for name in ("open", "close", "write", "read_line", "flush_input"):
            assert callable(getattr(transport, name))


class TestFileTransport:
    """Tests for the dry-run file transport."""

    def test_appends_wire_bytes(self, tmp_path):
        path = tmp_path / "capture.txt"
        transport = FileTransport()
        transport.open(str(path))
        transport.write(b"H+\r\n")
        transport.write(b"G\r\n")
        transport.close()

        assert path.read_bytes() == b"H+\r\nG\r\n"

    def test_appends_across_sessions(self, tmp_path):
        path = tmp_path / "capture.txt"
        for line in (b"G\r\n", b"K\r\n"):
            transport = FileTransport()
            transport.open(str(path))
            transport.write(line)
            transport.close()

        assert path.read_bytes() == b"G\r\nK\r\n"

    def test_cannot_read(self, tmp_path):
        transport = FileTransport()
        transport.open(str(tmp_path / "capture.txt"))
        with pytest.raises(TransportError):
            transport.read_line()

    def test_write_when_closed(self):
        with pytest.raises(TransportError):
            FileTransport().write(b"G\r\n")

    def test_open_failure(self, tmp_path):
        with pytest.raises(TransportError):
            FileTransport().open(str(tmp_path / "missing" / "capture.txt"))


class FakeSerial:
    """Stands in for serial.Serial in SerialTransport tests."""

    def __init__(self, port, baudrate, bytesize, parity, stopbits, timeout):
        self.port = port
        self.baudrate = baudrate
        self.bytesize = bytesize
        self.timeout = timeout
        self.is_open = True
        self.written = []
        self.lines = []
        self.flushed = False

    def write(self, data):
        self.written.append(data)
        return len(data)

    def readline(self):
        return self.lines.pop(0) if self.lines else b""

    def reset_input_buffer(self):
        self.flushed = True

    def close(self):
        self.is_open = False


class UnpluggedSerial(FakeSerial):
    """A port whose device has gone away after opening."""

    def reset_input_buffer(self):
        raise serial.SerialException("device reports readiness to read but returned no data")

    def close(self):
        raise serial.SerialException("device disconnected")


class TestSerialTransport:
    """Tests for the pyserial transport, with the port faked out."""

    @pytest.fixture
    def fake_serial(self, monkeypatch):
        monkeypatch.setattr(serial_transport.serial, "Serial", FakeSerial)

    @pytest.fixture
    def opened(self, fake_serial):
        transport = SerialTransport(SerialConfig(timeout=0.5))
        transport.open("/dev/ttyUSB0", 9600)
        return transport

    def test_open_uses_eight_data_bits(self, opened):
        port = opened._serial
        assert port.port == "/dev/ttyUSB0"
        assert port.baudrate == 9600
        assert port.bytesize == serial.EIGHTBITS
        assert opened.is_connected

    def test_write(self, opened):
        opened.write(b"2PR\r\n")
        assert opened._serial.written == [b"2PR\r\n"]

    def test_read_line(self, opened):
        opened._serial.lines.append(b"*100\r\n")
        assert opened.read_line() == b"*100\r\n"

    def test_read_timeout_raises(self, opened):
        with pytest.raises(TransportError, match="Timeout"):
            opened.read_line(timeout=0.1)
        assert opened._serial.timeout == 0.5

    def test_partial_line_is_timeout(self, opened):
        opened._serial.lines.append(b"*10")
        with pytest.raises(TransportError):
            opened.read_line()

    def test_flush_input(self, opened):
        opened.flush_input()
        assert opened._serial.flushed

    def test_close(self, opened):
        opened.close()
        assert not opened.is_connected
        with pytest.raises(TransportError):
            opened.write(b"G\r\n")

    def test_open_missing_port_raises_transport_error(self):
        transport = SerialTransport()
        with pytest.raises(TransportError):
            transport.open("/dev/definitely-not-a-rotor", 9600)
        assert not transport.is_connected


class TestSerialTransportUnplugged:
    """pyserial failures after opening surface as TransportError."""

    @pytest.fixture
    def unplugged(self, monkeypatch):
        monkeypatch.setattr(serial_transport.serial, "Serial", UnpluggedSerial)
        transport = SerialTransport(SerialConfig(timeout=0.5))
        transport.open("/dev/ttyUSB0", 9600)
        return transport

    def test_flush_input_raises_transport_error(self, unplugged):
        with pytest.raises(TransportError, match="Flush failed"):
            unplugged.flush_input()

    def test_close_raises_transport_error_and_drops_port(self, unplugged):
        with pytest.raises(TransportError, match="Close failed"):
            unplugged.close()
        assert not unplugged.is_connected

    def test_position_read_raises_rotor_error(self, unplugged, fast_config):
        ctrl = MotionController(unplugged, port="/dev/ttyUSB0", config=fast_config)
        ctrl.connect()
        with pytest.raises(RotorError) as excinfo:
            ctrl.get_absolute_position()
        assert isinstance(excinfo.value, TransportError)

    def test_disconnect_still_leaves_controller_disconnected(self, unplugged, fast_config):
        ctrl = MotionController(unplugged, port="/dev/ttyUSB0", config=fast_config)
        ctrl.connect()
        with pytest.raises(TransportError):
            ctrl.disconnect()
        assert not ctrl.is_connected
