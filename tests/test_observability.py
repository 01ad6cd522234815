"""Tests for logging setup."""

from bucket_storage.core.observability import redact_secrets


class TestRedactSecrets:
    """Test masking of credentials in log events."""

    def test_secret_values_are_masked(self):
        """Test that credential keys are replaced."""
        event = redact_secrets(
            None,
            "info",
            {"event": "Connecting", "secret_key": "s3cr3t", "connection_string": "A=b"},
        )
        assert event["secret_key"] == "***"
        assert event["connection_string"] == "***"
        assert event["event"] == "Connecting"

    def test_other_values_are_kept(self):
        """Test that ordinary context passes through."""
        event = redact_secrets(None, "info", {"event": "Saving file", "path": "a.txt"})
        assert event == {"event": "Saving file", "path": "a.txt"}

    def test_empty_secret_is_left_alone(self):
        """Test that missing credentials are not reported as present."""
        event = redact_secrets(None, "debug", {"event": "x", "secret_key": None})
        assert event["secret_key"] is None
