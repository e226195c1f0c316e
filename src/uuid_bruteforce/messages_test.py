import pydantic
import pytest

from uuid_bruteforce import messages


class TestEncoding:
    """Test suite for the wire format workers send"""

    def test_progress_shape(self):
        assert messages.progress(3, 100_000) == {
            "type": "progress",
            "worker_id": 3,
            "checked": "100000",
        }

    def test_found_shape(self):
        assert messages.found(1, "secret", 7) == {
            "type": "found",
            "worker_id": 1,
            "private": "secret",
            "checked": "7",
        }

    def test_error_names_exception(self):
        wire = messages.error(2, RuntimeError("entropy source failed"), 12)
        assert wire["type"] == "error"
        assert wire["worker_id"] == 2
        assert wire["error"] == "RuntimeError: entropy source failed"
        assert wire["checked"] == "12"

    def test_huge_counts_are_exact(self):
        """Counts past 2**64 survive the boundary without rounding"""
        checked = 2 ** 80 + 1
        wire = messages.progress(0, checked)
        assert wire["checked"] == str(checked)
        assert messages.parse_report(wire).count == checked


class TestParseReport:
    """Test suite for validating inbound reports"""

    def test_dispatches_on_type(self):
        assert isinstance(messages.parse_report(messages.progress(0, 1)), messages.ProgressMessage)
        assert isinstance(messages.parse_report(messages.found(0, "x", 1)), messages.FoundMessage)
        assert isinstance(
            messages.parse_report(messages.error(0, ValueError("bad"), 1)), messages.ErrorMessage
        )

    def test_model_passes_through(self):
        message = messages.ProgressMessage(worker_id=0, checked="5")
        assert messages.parse_report(message) is message

    def test_found_carries_secret(self):
        report = messages.parse_report(messages.found(4, "abc", 99))
        assert report.worker_id == 4
        assert report.private == "abc"
        assert report.count == 99

    def test_unknown_type(self):
        with pytest.raises(pydantic.ValidationError):
            messages.parse_report({"type": "hello", "worker_id": 0, "checked": "1"})

    def test_checked_must_be_decimal(self):
        with pytest.raises(pydantic.ValidationError):
            messages.parse_report({"type": "progress", "worker_id": 0, "checked": "1.5e3"})
        with pytest.raises(pydantic.ValidationError):
            messages.parse_report({"type": "progress", "worker_id": 0, "checked": "-1"})

    def test_missing_field(self):
        with pytest.raises(pydantic.ValidationError):
            messages.parse_report({"type": "found", "worker_id": 0, "checked": "1"})


class TestStartMessage:
    """Test suite for the spawn message"""

    def test_roundtrip_through_wire(self):
        start = messages.StartMessage(target_public="pub", worker_id=6)
        assert messages.StartMessage.model_validate(start.to_wire()) == start

    def test_frozen(self):
        start = messages.StartMessage(target_public="pub", worker_id=6)
        with pytest.raises(pydantic.ValidationError):
            start.worker_id = 7
