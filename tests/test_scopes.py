"""Tests for scope resolution: each scope pre-consents the other's permissions."""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from arr_auth.auth.scopes import (
    REMOTE_RENDERING_SCOPES,
    STORAGE_SCOPES,
    Scope,
    resolve_scopes,
)


class TestScopes(unittest.TestCase):
    def test_extra_scopes_mirror_the_other_domain(self):
        """For every scope, its extra scopes are the other scope's primary scopes."""
        for scope in Scope:
            bundle = resolve_scopes(scope)
            other = resolve_scopes(scope.other)
            self.assertEqual(bundle.extra, other.primary)
            self.assertEqual(other.extra, bundle.primary)

    def test_primary_scopes_non_empty_and_distinct(self):
        for scope in Scope:
            bundle = resolve_scopes(scope)
            self.assertTrue(bundle.primary)
            self.assertFalse(set(bundle.primary) & set(bundle.extra))

    def test_concrete_values(self):
        self.assertEqual(resolve_scopes(Scope.PRIMARY).primary, REMOTE_RENDERING_SCOPES)
        self.assertEqual(resolve_scopes(Scope.STORAGE).primary, STORAGE_SCOPES)
        self.assertEqual(
            resolve_scopes(Scope.PRIMARY).primary,
            ("https://sts.mixedreality.azure.com/mixedreality.signin",),
        )

    def test_accepts_string_value(self):
        self.assertEqual(resolve_scopes("storage"), resolve_scopes(Scope.STORAGE))
        with self.assertRaises(ValueError):
            resolve_scopes("graph")


if __name__ == "__main__":
    unittest.main()
