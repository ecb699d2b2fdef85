"""Unit tests for the vault repair pass and initial content."""

import pytest

from vaultbox.core.migration import (
    LEGACY_RESERVED_BLOCK_IDS,
    MigrationPolicy,
    build_initial_vault,
    repair_vault,
)
from vaultbox.core.models import DEFAULT_BLOCK_ID, Block, Note, PasswordEntry, Vault


@pytest.fixture
def policy():
    return MigrationPolicy(seed_notes=(("Welcome", "First steps"), ("Tips", "Lock when idle")))


def _legacy_vault():
    return Vault(
        blocks=[
            Block(DEFAULT_BLOCK_ID, "General"),
            Block("xss", "XSS payloads"),
            Block("blk_1", "Work"),
        ],
        passwords=[PasswordEntry("pwd_1", "xss", "s", "u", "p")],
        notes=[
            Note("note_1", "xss", "payload", "..."),
            Note("note_2", "blk_1", "Welcome", "edited by the user"),
        ],
    )


def test_default_reserved_ids():
    assert LEGACY_RESERVED_BLOCK_IDS == {"xss", "sqli", "pentest"}
    assert MigrationPolicy().seed_notes == ()


def test_initial_vault_has_default_and_seeds(policy):
    vault = build_initial_vault(policy)
    assert [b.block_id for b in vault.blocks] == [DEFAULT_BLOCK_ID]
    assert [n.title for n in vault.notes] == ["Welcome", "Tips"]
    assert all(n.block_id == DEFAULT_BLOCK_ID for n in vault.notes)


def test_initial_vault_without_seeds():
    vault = build_initial_vault(MigrationPolicy())
    assert vault.notes == []


def test_repair_drops_reserved_blocks_and_repoints_entries(policy):
    vault = _legacy_vault()
    assert repair_vault(vault, policy) is True

    assert [b.block_id for b in vault.blocks] == [DEFAULT_BLOCK_ID, "blk_1"]
    assert vault.passwords[0].block_id == DEFAULT_BLOCK_ID
    assert vault.get_note("note_1").block_id == DEFAULT_BLOCK_ID


def test_repair_dedups_seeds_by_title(policy):
    vault = _legacy_vault()
    repair_vault(vault, policy)

    titles = [n.title for n in vault.notes]
    assert titles.count("Welcome") == 1
    assert titles.count("Tips") == 1
    # the user's copy is left alone
    assert vault.get_note("note_2").content == "edited by the user"


def test_repair_is_idempotent(policy):
    vault = _legacy_vault()
    repair_vault(vault, policy)
    snapshot = vault.to_dict()

    assert repair_vault(vault, policy) is False
    assert vault.to_dict() == snapshot


def test_repair_restores_missing_default_block():
    vault = Vault(blocks=[Block("blk_1", "Work")])
    assert repair_vault(vault, MigrationPolicy()) is True
    assert vault.blocks[0].block_id == DEFAULT_BLOCK_ID


def test_repair_collapses_duplicate_default():
    vault = Vault(blocks=[Block(DEFAULT_BLOCK_ID, "General"), Block(DEFAULT_BLOCK_ID, "Again")])
    assert repair_vault(vault, MigrationPolicy()) is True
    assert [b.name for b in vault.blocks] == ["General"]


def test_repair_clean_vault_is_noop():
    vault = Vault()
    vault.add_password(DEFAULT_BLOCK_ID, "s", "u", "p")
    assert repair_vault(vault, MigrationPolicy()) is False


def test_repair_respects_custom_reserved_ids():
    policy = MigrationPolicy(reserved_block_ids=frozenset({"blk_1"}))
    vault = _legacy_vault()
    repair_vault(vault, policy)
    assert {b.block_id for b in vault.blocks} == {DEFAULT_BLOCK_ID, "xss"}
