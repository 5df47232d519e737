"""
Tests for the confidential value store.
"""

import pytest

from ..confidential import KeyedConfidentialStore
from ..engine_core.catalog import ROLES, Role
from ..engine_core.errors import OwnershipError


@pytest.fixture
def keyed_store():
    return KeyedConfidentialStore("unit-test-key")


class TestKeyedConfidentialStore:
    """Tests for sealing, comparing and revealing roles."""

    @pytest.mark.parametrize("role", ROLES)
    def test_compare_matches_only_sealed_role(self, keyed_store, role):
        handle = keyed_store.seal("alice", role)
        for claimed in ROLES:
            assert keyed_store.unseal_and_compare("alice", handle, claimed) == (claimed == role)

    def test_reveal(self, keyed_store):
        handle = keyed_store.seal("alice", Role.ASSASSIN)
        assert keyed_store.reveal("alice", handle) == Role.ASSASSIN

    def test_handle_hides_role(self, keyed_store):
        handle = keyed_store.seal("alice", Role.DUKE)
        assert "Duke" not in handle
        assert keyed_store.seal("alice", Role.DUKE) != handle

    def test_wrong_owner_rejected(self, keyed_store):
        handle = keyed_store.seal("alice", Role.DUKE)
        with pytest.raises(OwnershipError):
            keyed_store.reveal("bob", handle)
        with pytest.raises(OwnershipError):
            keyed_store.unseal_and_compare("bob", handle, Role.DUKE)

    def test_malformed_handle_rejected(self, keyed_store):
        with pytest.raises(OwnershipError):
            keyed_store.reveal("alice", "not-a-handle")

    def test_other_key_rejected(self, keyed_store):
        handle = keyed_store.seal("alice", Role.DUKE)
        with pytest.raises(OwnershipError):
            KeyedConfidentialStore("another-key").reveal("alice", handle)

    def test_same_key_opens_handles(self, keyed_store):
        handle = keyed_store.seal("alice", Role.CAPTAIN)
        assert KeyedConfidentialStore(b"unit-test-key").reveal("alice", handle) == Role.CAPTAIN
