"""
Data models for the decrypted vault and its records
"""

import random
import string
import time

from .exceptions import BlockNotFoundError, EntryNotFoundError, ProtectedBlockError

VAULT_VERSION = 1
DEFAULT_BLOCK_ID = "default"
DEFAULT_BLOCK_NAME = "General"
DEFAULT_EMAIL_SERVICE = "tuamae"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_id(prefix):
    """
        Build a record id: <prefix>_<epoch ms>_<9 random base36 chars>
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


class Block:
    """
        Category partition owning passwords and notes
    """

    __slots__ = ('block_id', 'name')

    def __init__(self, block_id, name):
        self.block_id = block_id
        self.name = name

    @property
    def is_default(self):
        return self.block_id == DEFAULT_BLOCK_ID

    def to_dict(self):
        return {'id': self.block_id, 'name': self.name}

    def __repr__(self):
        return f"Block(block_id={self.block_id!r}, name={self.name!r})"

    def __eq__(self, other):
        if not isinstance(other, Block):
            return NotImplemented
        return self.to_dict() == other.to_dict()


class PasswordEntry:
    """
        Stored credential for one site
    """

    __slots__ = ('entry_id', 'block_id', 'site', 'username', 'secret')

    def __init__(self, entry_id, block_id, site, username, secret):
        self.entry_id = entry_id
        self.block_id = block_id
        self.site = site
        self.username = username
        self.secret = secret

    def to_dict(self):
        return {
            'id': self.entry_id,
            'block_id': self.block_id,
            'site': self.site,
            'username': self.username,
            'secret': self.secret,
        }

    def __repr__(self):
        # secret intentionally left out
        return f"PasswordEntry(entry_id={self.entry_id!r}, site={self.site!r})"

    def __eq__(self, other):
        if not isinstance(other, PasswordEntry):
            return NotImplemented
        return self.to_dict() == other.to_dict()


class Note:
    __slots__ = ('note_id', 'block_id', 'title', 'content')

    def __init__(self, note_id, block_id, title, content):
        self.note_id = note_id
        self.block_id = block_id
        self.title = title
        self.content = content

    def to_dict(self):
        return {
            'id': self.note_id,
            'block_id': self.block_id,
            'title': self.title,
            'content': self.content,
        }

    def __repr__(self):
        return f"Note(note_id={self.note_id!r}, title={self.title!r})"

    def __eq__(self, other):
        if not isinstance(other, Note):
            return NotImplemented
        return self.to_dict() == other.to_dict()


class PersonRecord:
    """
        Generated identity kept in the vault, independent of blocks
    """

    __slots__ = ('person_id', 'full_name', 'national_id', 'birthdate', 'email', 'email_redirect_link', 'address')

    def __init__(self, person_id=None, full_name="", national_id="", birthdate="", email="", email_redirect_link="", address=""):
        self.person_id = person_id if person_id is not None else new_id("prs")
        self.full_name = full_name
        self.national_id = national_id
        self.birthdate = birthdate
        self.email = email
        self.email_redirect_link = email_redirect_link
        self.address = address

    def to_dict(self):
        return {
            'id': self.person_id,
            'full_name': self.full_name,
            'national_id': self.national_id,
            'birthdate': self.birthdate,
            'email': self.email,
            'email_redirect_link': self.email_redirect_link,
            'address': self.address,
        }

    def __repr__(self):
        return f"PersonRecord(person_id={self.person_id!r}, full_name={self.full_name!r})"

    def __eq__(self, other):
        if not isinstance(other, PersonRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()


class Config:
    """
        Non-sensitive preferences, persisted in clear
    """

    __slots__ = ('email_service',)

    def __init__(self, email_service=DEFAULT_EMAIL_SERVICE):
        self.email_service = email_service

    def to_dict(self):
        return {'emailServiceChoice': self.email_service}

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            return cls()
        return cls(email_service=data.get('emailServiceChoice') or DEFAULT_EMAIL_SERVICE)


def create_block_from_dict(data):
    return Block(block_id=data['id'], name=data.get('name', ''))


def create_password_from_dict(data):
    return PasswordEntry(
        entry_id=data['id'],
        block_id=data.get('block_id', DEFAULT_BLOCK_ID),
        site=data.get('site', ''),
        username=data.get('username', ''),
        secret=data.get('secret', ''),
    )


def create_note_from_dict(data):
    return Note(
        note_id=data['id'],
        block_id=data.get('block_id', DEFAULT_BLOCK_ID),
        title=data.get('title', ''),
        content=data.get('content', ''),
    )


def create_person_from_dict(data):
    return PersonRecord(
        person_id=data['id'],
        full_name=data.get('full_name', ''),
        national_id=data.get('national_id', ''),
        birthdate=data.get('birthdate', ''),
        email=data.get('email', ''),
        email_redirect_link=data.get('email_redirect_link', ''),
        address=data.get('address', ''),
    )


class Vault:
    """
        Root aggregate of the decrypted record set

        Only ever lives in memory while the store is unlocked. Mutations happen
        in place; persisting them is the caller's job (``VaultStore.save``).
    """

    __slots__ = ('version', 'blocks', 'passwords', 'notes', 'persons')

    def __init__(self, version=VAULT_VERSION, blocks=None, passwords=None, notes=None, persons=None):
        self.version = version
        self.blocks = blocks if blocks is not None else [Block(DEFAULT_BLOCK_ID, DEFAULT_BLOCK_NAME)]
        self.passwords = passwords if passwords is not None else []
        self.notes = notes if notes is not None else []
        self.persons = persons if persons is not None else []

    def to_dict(self):
        return {
            'version': self.version,
            'blocks': [b.to_dict() for b in self.blocks],
            'passwords': [p.to_dict() for p in self.passwords],
            'notes': [n.to_dict() for n in self.notes],
            'persons': [p.to_dict() for p in self.persons],
        }

    @classmethod
    def from_dict(cls, data):
        """
            Rebuild a vault from its decrypted JSON form. Missing collections
            come back empty; the repair pass restores the default block.
        """
        return cls(
            version=data.get('version', VAULT_VERSION),
            blocks=[create_block_from_dict(b) for b in data.get('blocks') or []],
            passwords=[create_password_from_dict(p) for p in data.get('passwords') or []],
            notes=[create_note_from_dict(n) for n in data.get('notes') or []],
            persons=[create_person_from_dict(p) for p in data.get('persons') or []],
        )

    def __repr__(self):
        return (
            f"Vault(blocks={len(self.blocks)}, passwords={len(self.passwords)}, "
            f"notes={len(self.notes)}, persons={len(self.persons)})"
        )

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def get_block(self, block_id):
        for block in self.blocks:
            if block.block_id == block_id:
                return block
        return None

    def _require_block(self, block_id):
        block = self.get_block(block_id)
        if block is None:
            raise BlockNotFoundError(f"Block '{block_id}' not found.")
        return block

    def add_block(self, name):
        block = Block(new_id("blk"), name)
        self.blocks.append(block)
        return block

    def delete_block(self, block_id):
        """
            Delete a block and every password and note it owns
        """
        if block_id == DEFAULT_BLOCK_ID:
            raise ProtectedBlockError("The default block cannot be deleted.")
        self._require_block(block_id)
        self.blocks = [b for b in self.blocks if b.block_id != block_id]
        self.passwords = [p for p in self.passwords if p.block_id != block_id]
        self.notes = [n for n in self.notes if n.block_id != block_id]

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def passwords_in(self, block_id):
        return [p for p in self.passwords if p.block_id == block_id]

    def get_password(self, entry_id):
        for entry in self.passwords:
            if entry.entry_id == entry_id:
                return entry
        raise EntryNotFoundError(f"Password '{entry_id}' not found.")

    def add_password(self, block_id, site, username, secret):
        self._require_block(block_id)
        entry = PasswordEntry(new_id("pwd"), block_id, site, username, secret)
        self.passwords.append(entry)
        return entry

    def update_password(self, entry_id, block_id, site, username, secret):
        self._require_block(block_id)
        entry = self.get_password(entry_id)
        entry.block_id = block_id
        entry.site = site
        entry.username = username
        entry.secret = secret
        return entry

    def delete_password(self, entry_id):
        self.get_password(entry_id)
        self.passwords = [p for p in self.passwords if p.entry_id != entry_id]

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def notes_in(self, block_id):
        return [n for n in self.notes if n.block_id == block_id]

    def get_note(self, note_id):
        for note in self.notes:
            if note.note_id == note_id:
                return note
        raise EntryNotFoundError(f"Note '{note_id}' not found.")

    def add_note(self, block_id, title, content):
        self._require_block(block_id)
        note = Note(new_id("note"), block_id, title, content)
        self.notes.append(note)
        return note

    def update_note(self, note_id, block_id, title, content):
        self._require_block(block_id)
        note = self.get_note(note_id)
        note.block_id = block_id
        note.title = title
        note.content = content
        return note

    def delete_note(self, note_id):
        self.get_note(note_id)
        self.notes = [n for n in self.notes if n.note_id != note_id]

    # ------------------------------------------------------------------
    # Persons
    # ------------------------------------------------------------------

    def get_person(self, person_id):
        for person in self.persons:
            if person.person_id == person_id:
                return person
        raise EntryNotFoundError(f"Person '{person_id}' not found.")

    def add_person(self, person):
        self.persons.append(person)
        return person

    def delete_person(self, person_id):
        self.get_person(person_id)
        self.persons = [p for p in self.persons if p.person_id != person_id]
