"""
Repair pass run on every successful open, plus seed content for new vaults.

The reserved block ids and the seed notes are data, not code: both live on a
versioned :class:`MigrationPolicy` so hosts can ship their own without touching
the store. Seed notes are deduplicated by title, so changing the seed set never
duplicates a note the user already has.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

from .models import DEFAULT_BLOCK_ID, DEFAULT_BLOCK_NAME, Block, Note, Vault, new_id

# Block ids used by early vault versions for canned content
LEGACY_RESERVED_BLOCK_IDS = frozenset({"xss", "sqli", "pentest"})


@dataclass(frozen=True)
class MigrationPolicy:
    version: int = 1
    reserved_block_ids: FrozenSet[str] = LEGACY_RESERVED_BLOCK_IDS
    # (title, content) pairs placed in the default block
    seed_notes: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


def build_initial_vault(policy: MigrationPolicy) -> Vault:
    """Fresh vault: the default block plus the policy's seed notes."""
    vault = Vault()
    _add_missing_seed_notes(vault, policy)
    return vault


def _add_missing_seed_notes(vault: Vault, policy: MigrationPolicy) -> bool:
    titles = {n.title for n in vault.notes}
    added = False
    for title, content in policy.seed_notes:
        if title in titles:
            continue
        vault.notes.append(Note(new_id("note"), DEFAULT_BLOCK_ID, title, content))
        titles.add(title)
        added = True
    return added


def repair_vault(vault: Vault, policy: MigrationPolicy) -> bool:
    """
    Bring a decrypted vault in line with the current invariants.

    - drop blocks whose id is reserved
    - keep exactly one default block, creating it if missing
    - re-point passwords and notes whose block no longer exists to default
    - add seed notes whose title is not present yet

    Returns True if anything changed. Running it again on the result returns
    False and leaves the vault untouched.
    """
    changed = False

    kept = []
    seen_default = False
    for block in vault.blocks:
        if block.block_id in policy.reserved_block_ids and block.block_id != DEFAULT_BLOCK_ID:
            changed = True
            continue
        if block.block_id == DEFAULT_BLOCK_ID:
            if seen_default:
                changed = True
                continue
            seen_default = True
        kept.append(block)

    if not seen_default:
        kept.insert(0, Block(DEFAULT_BLOCK_ID, DEFAULT_BLOCK_NAME))
        changed = True
    vault.blocks = kept

    block_ids = {b.block_id for b in vault.blocks}
    for entry in list(vault.passwords) + list(vault.notes):
        if entry.block_id not in block_ids:
            entry.block_id = DEFAULT_BLOCK_ID
            changed = True

    if _add_missing_seed_notes(vault, policy):
        changed = True

    return changed
