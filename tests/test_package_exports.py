"""Tests for top-level package lazy exports."""

from __future__ import annotations

import unittest

import nexus_agent


class PackageExportTests(unittest.TestCase):
    """Ensure __getattr__ and exported symbols behave as expected."""

    def test_lazy_exports_resolve_known_symbols(self) -> None:
        for name in nexus_agent.__all__:
            with self.subTest(name=name):
                self.assertIsNotNone(getattr(nexus_agent, name))
        self.assertTrue(callable(nexus_agent.load_config))
        self.assertTrue(callable(nexus_agent.classify_mime_type))

    def test_unknown_symbol_raises_attribute_error(self) -> None:
        with self.assertRaises(AttributeError):
            getattr(nexus_agent, "THIS_DOES_NOT_EXIST")


if __name__ == "__main__":
    unittest.main()
