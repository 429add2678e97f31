import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from quotedesk.config.settings import Settings


class TestQuoteSettings(unittest.TestCase):
    def test_defaults_without_env(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()

        self.assertIsNone(settings.FINNHUB_API_KEY)
        self.assertEqual(settings.FINNHUB_BASE_URL, "https://finnhub.io/api/v1")
        self.assertEqual(settings.QUOTE_CACHE_TTL_MS, 10_000)
        self.assertEqual(settings.QUOTE_UPSTREAM_TIMEOUT_SEC, 5.0)
        self.assertIsNone(settings.QUOTE_CACHE_MAX_ENTRIES)
        self.assertFalse(settings.QUOTE_SINGLE_FLIGHT)
        self.assertIsNone(settings.ANALYSIS_SERVICE_BASE_URL)
        self.assertEqual(settings.ANALYSIS_DEFAULT_YEAR, 2025)
        self.assertEqual(settings.ANALYSIS_DEFAULT_QUARTER, 3)

    def test_env_overrides(self):
        env = {
            "FINNHUB_API_KEY": " key-123 ",
            "QUOTE_CACHE_TTL_MS": "2500",
            "QUOTE_UPSTREAM_TIMEOUT_SEC": "8",
            "QUOTE_CACHE_MAX_ENTRIES": "1000",
            "QUOTE_SINGLE_FLIGHT": "true",
            "ANALYSIS_SERVICE_BASE_URL": "https://research.example.test",
            "ANALYSIS_DEFAULT_QUARTER": "4",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.FINNHUB_API_KEY, "key-123")
        self.assertEqual(settings.QUOTE_CACHE_TTL_MS, 2500)
        self.assertEqual(settings.QUOTE_UPSTREAM_TIMEOUT_SEC, 8.0)
        self.assertEqual(settings.QUOTE_CACHE_MAX_ENTRIES, 1000)
        self.assertTrue(settings.QUOTE_SINGLE_FLIGHT)
        self.assertEqual(settings.ANALYSIS_SERVICE_BASE_URL, "https://research.example.test")
        self.assertEqual(settings.ANALYSIS_DEFAULT_QUARTER, 4)

    def test_blank_api_key_is_unset(self):
        with patch.dict(os.environ, {"FINNHUB_API_KEY": "   "}, clear=True):
            settings = Settings.from_env()

        self.assertIsNone(settings.FINNHUB_API_KEY)

    def test_non_positive_ttl_fails_validation(self):
        with patch.dict(os.environ, {"QUOTE_CACHE_TTL_MS": "0"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings.from_env()

    def test_quarter_out_of_range_fails_validation(self):
        with patch.dict(os.environ, {"ANALYSIS_DEFAULT_QUARTER": "5"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings.from_env()


if __name__ == "__main__":
    unittest.main()
