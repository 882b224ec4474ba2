"""Tests for the token redaction processor."""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from arr_auth.utils.logger import get_logger, redact_secrets


class TestRedactSecrets(unittest.TestCase):
    def test_token_values_are_masked(self):
        event = {"event": "login.complete", "access_token": "eyJ0eXAi", "refresh_token": "0.AX", "username": "alice@contoso.com"}
        out = redact_secrets(None, "info", dict(event))
        self.assertEqual(out["access_token"], "***")
        self.assertEqual(out["refresh_token"], "***")
        self.assertEqual(out["username"], "alice@contoso.com")
        self.assertEqual(out["event"], "login.complete")

    def test_empty_values_left_alone(self):
        out = redact_secrets(None, "info", {"event": "x", "access_token": ""})
        self.assertEqual(out["access_token"], "")

    def test_get_logger_binds_context(self):
        logger = get_logger("arr_auth.tests", command="login")
        self.assertIsNotNone(logger)
        logger.info("logger.smoke", access_token="should-not-appear")


if __name__ == "__main__":
    unittest.main()
