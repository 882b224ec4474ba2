"""Tests for the azure-core credential adapter."""

import asyncio
import sys
import unittest
from pathlib import Path

from azure.core.credentials import AccessToken

sys.path.insert(0, str(Path(__file__).resolve().parent))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from _fakes import FakeIdentityProvider, RecordingStore, fixed_factory, make_account, make_credential
from arr_auth.auth.credential import SessionTokenCredential
from arr_auth.auth.errors import LoginFailedError, ProviderServiceError
from arr_auth.auth.scopes import Scope, resolve_scopes
from arr_auth.auth.session import AuthSession
from arr_auth.models import LoginStatus

BOB = make_account("bob@contoso.com")


class TestSessionTokenCredential(unittest.TestCase):
    def test_get_token_returns_access_token(self):
        credential = make_credential(BOB, token="storage-token")
        provider = FakeIdentityProvider(interactive=lambda s, e, c: credential)
        session = AuthSession(store=RecordingStore(), provider_factory=fixed_factory(provider), interactive_mode="browser")

        async def run():
            async with SessionTokenCredential(session, "app-1", Scope.STORAGE) as cred:
                return await cred.get_token("https://storage.azure.com/.default")

        token = asyncio.run(run())

        self.assertIsInstance(token, AccessToken)
        self.assertEqual(token.token, "storage-token")
        self.assertEqual(token.expires_on, credential.expires_on)
        self.assertEqual(provider.interactive_calls[0][0], resolve_scopes(Scope.STORAGE).primary)

    def test_failed_login_raises(self):
        provider = FakeIdentityProvider(interactive=ProviderServiceError("AADSTS90002: tenant not found"))
        session = AuthSession(store=RecordingStore(), provider_factory=fixed_factory(provider), interactive_mode="browser")
        cred = SessionTokenCredential(session, "app-1")

        with self.assertRaises(LoginFailedError) as ctx:
            asyncio.run(cred.get_token())
        self.assertEqual(ctx.exception.result.status, LoginStatus.FAILED)
        self.assertIn("AADSTS90002", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
