"""
Command-line frontend for VaultBox.

Every invocation is its own short session: the master password is prompted,
the vault is opened, one action runs and is saved, and the vault is locked
again before the process exits. Nothing but the encrypted record, the
clear-text session hint and the config survive between runs.

    vaultbox init
    vaultbox blocks
    vaultbox add-password --block default --site example.org --username me
    vaultbox add-password --site example.org --username me --generate
    vaultbox copy-password pwd_1700000000000_abc123xyz --clear-after 30
    vaultbox generate --length 24 --no-symbols
"""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path
from typing import Callable, List, Optional

import pyperclip

from vaultbox.core.config import Settings
from vaultbox.core.exceptions import VaultBoxError
from vaultbox.core.models import DEFAULT_BLOCK_ID, PersonRecord
from vaultbox.security.generator import DEFAULT_LENGTH, generate_password, generate_quick_password
from .clipboard import clear_after, copy_to_clipboard
from .context import AppContext, build_context
from .logging_config import configure_logging, level_for


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultbox",
        description="Local encrypted vault for passwords, notes and identities.",
    )
    parser.add_argument(
        "--db-path",
        default=None,
        help="SQLite file holding the vault (default: $VAULTBOX_DB_PATH or ~/.vaultbox/vault.db)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Log errors only")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create a new vault")
    sub.add_parser("status", help="Show whether a vault exists and the session hint")

    sub.add_parser("blocks", help="List blocks")
    p = sub.add_parser("add-block", help="Create a block")
    p.add_argument("name")
    p = sub.add_parser("delete-block", help="Delete a block and everything in it")
    p.add_argument("block_id")

    p = sub.add_parser("passwords", help="List passwords (secrets hidden)")
    p.add_argument("--block", default=None)
    p = sub.add_parser("add-password", help="Store a password; the secret is prompted")
    p.add_argument("--block", default=DEFAULT_BLOCK_ID)
    p.add_argument("--site", required=True)
    p.add_argument("--username", required=True)
    p.add_argument("--generate", action="store_true", help="Generate the secret instead of prompting")
    p = sub.add_parser("edit-password", help="Change a stored password; omitted fields keep their value")
    p.add_argument("entry_id")
    p.add_argument("--block", default=None)
    p.add_argument("--site", default=None)
    p.add_argument("--username", default=None)
    secret = p.add_mutually_exclusive_group()
    secret.add_argument("--new-secret", action="store_true", help="Prompt for a new secret")
    secret.add_argument("--generate", action="store_true", help="Replace the secret with a generated one")
    p = sub.add_parser("delete-password", help="Delete a password")
    p.add_argument("entry_id")
    p = sub.add_parser("copy-password", help="Copy a secret to the clipboard")
    p.add_argument("entry_id")
    p.add_argument("--clear-after", type=float, default=0, metavar="SECONDS",
                   help="Wipe the clipboard after this many seconds if it still holds the secret")

    p = sub.add_parser("generate", help="Print a random password; no vault needed")
    p.add_argument("--length", type=int, default=DEFAULT_LENGTH)
    p.add_argument("--no-upper", action="store_true")
    p.add_argument("--no-lower", action="store_true")
    p.add_argument("--no-digits", action="store_true")
    p.add_argument("--no-symbols", action="store_true")
    p.add_argument("--quick", action="store_true", help="16 characters from letters, digits and !@#$%%^&*")
    p.add_argument("--copy", action="store_true", help="Copy to the clipboard instead of printing")

    p = sub.add_parser("notes", help="List notes")
    p.add_argument("--block", default=None)
    p = sub.add_parser("add-note", help="Create a note")
    p.add_argument("--block", default=DEFAULT_BLOCK_ID)
    p.add_argument("--title", required=True)
    p.add_argument("--content", required=True)
    p = sub.add_parser("edit-note", help="Change a note; omitted fields keep their value")
    p.add_argument("note_id")
    p.add_argument("--block", default=None)
    p.add_argument("--title", default=None)
    p.add_argument("--content", default=None)
    p = sub.add_parser("delete-note", help="Delete a note")
    p.add_argument("note_id")

    sub.add_parser("persons", help="List stored identities")
    p = sub.add_parser("add-person", help="Store an identity")
    p.add_argument("--name", required=True)
    p.add_argument("--national-id", default="")
    p.add_argument("--birthdate", default="")
    p.add_argument("--email", default="")
    p.add_argument("--link", default="")
    p.add_argument("--address", default="")
    p = sub.add_parser("delete-person", help="Delete an identity")
    p.add_argument("person_id")

    p = sub.add_parser("email-service", help="Choose the email service for generated identities")
    p.add_argument("choice")
    return parser


def _cmd_init(ctx: AppContext, prompt: Callable[[str], str]) -> int:
    if not ctx.first_run:
        print("A vault already exists.", file=sys.stderr)
        return 1
    password = prompt("New master password: ")
    confirm = prompt("Confirm master password: ")
    if not ctx.manager.authenticate(password, confirm=confirm):
        print("Could not create the vault.", file=sys.stderr)
        return 1
    print("Vault created.")
    return 0


def _cmd_status(ctx: AppContext) -> int:
    print(f"vault: {'present' if not ctx.first_run else 'not created'}")
    print(f"session hint: {'active' if ctx.store.has_persisted_session_hint() else 'none'}")
    print(f"email service: {ctx.store.storage.load_config().email_service}")
    return 0


def _cmd_generate(args: argparse.Namespace) -> int:
    if args.quick:
        password = generate_quick_password()
    else:
        password = generate_password(
            length=args.length,
            upper=not args.no_upper,
            lower=not args.no_lower,
            digits=not args.no_digits,
            symbols=not args.no_symbols,
        )
    if args.copy:
        copy_to_clipboard(password)
        print("Password copied.")
    else:
        print(password)
    return 0


def _unlock(ctx: AppContext, prompt: Callable[[str], str]) -> bool:
    if ctx.first_run:
        print("No vault yet; run 'vaultbox init' first.", file=sys.stderr)
        return False
    if not ctx.manager.authenticate(prompt("Master password: ")):
        print("Wrong password.", file=sys.stderr)
        return False
    return True


def _run_unlocked(ctx: AppContext, args: argparse.Namespace, prompt: Callable[[str], str]) -> int:
    manager = ctx.manager
    vault = manager.vault
    cmd = args.command

    if cmd == "blocks":
        for block in vault.blocks:
            print(
                f"{block.block_id}\t{block.name}\t"
                f"{len(vault.passwords_in(block.block_id))} passwords\t"
                f"{len(vault.notes_in(block.block_id))} notes"
            )
    elif cmd == "add-block":
        block = manager.add_block(args.name)
        print(block.block_id)
    elif cmd == "delete-block":
        manager.delete_block(args.block_id)
        print("Block deleted.")
    elif cmd == "passwords":
        entries = vault.passwords_in(args.block) if args.block else vault.passwords
        for entry in entries:
            print(f"{entry.entry_id}\t{entry.block_id}\t{entry.site}\t{entry.username}")
    elif cmd == "add-password":
        secret = generate_password() if args.generate else prompt("Secret: ")
        entry = manager.add_password(args.block, args.site, args.username, secret)
        print(entry.entry_id)
    elif cmd == "edit-password":
        current = vault.get_password(args.entry_id)
        if args.generate:
            secret = generate_password()
        elif args.new_secret:
            secret = prompt("New secret: ")
        else:
            secret = current.secret
        entry = manager.update_password(
            args.entry_id,
            _or(args.block, current.block_id),
            _or(args.site, current.site),
            _or(args.username, current.username),
            secret,
        )
        print(entry.entry_id)
    elif cmd == "delete-password":
        manager.delete_password(args.entry_id)
        print("Password deleted.")
    elif cmd == "copy-password":
        secret = manager.reveal_password(args.entry_id)
        # nothing else needs the vault; do not keep it open while waiting
        manager.logout()
        copy_to_clipboard(secret)
        print("Password copied.")
        if args.clear_after > 0:
            if clear_after(secret, args.clear_after):
                print("Clipboard cleared.")
    elif cmd == "notes":
        notes = vault.notes_in(args.block) if args.block else vault.notes
        for note in notes:
            print(f"{note.note_id}\t{note.block_id}\t{note.title}")
    elif cmd == "add-note":
        note = manager.save_note(args.block, args.title, args.content)
        print(note.note_id)
    elif cmd == "edit-note":
        current = vault.get_note(args.note_id)
        note = manager.save_note(
            _or(args.block, current.block_id),
            _or(args.title, current.title),
            _or(args.content, current.content),
            note_id=args.note_id,
        )
        print(note.note_id)
    elif cmd == "delete-note":
        manager.delete_note(args.note_id)
        print("Note deleted.")
    elif cmd == "persons":
        for person in vault.persons:
            print(f"{person.person_id}\t{person.full_name}\t{person.email}")
    elif cmd == "add-person":
        person = manager.save_person(
            PersonRecord(
                full_name=args.name,
                national_id=args.national_id,
                birthdate=args.birthdate,
                email=args.email,
                email_redirect_link=args.link,
                address=args.address,
            )
        )
        print(person.person_id)
    elif cmd == "delete-person":
        manager.delete_person(args.person_id)
        print("Person deleted.")
    return 0


def _or(value, fallback):
    return fallback if value is None else value


def main(argv: Optional[List[str]] = None, prompt: Callable[[str], str] = getpass.getpass) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
        if args.db_path:
            settings.db_path = Path(args.db_path).expanduser()
        configure_logging(level_for(args.verbose, args.quiet, settings.log_level))
        ctx = build_context(settings)
    except VaultBoxError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "init":
            return _cmd_init(ctx, prompt)
        if args.command == "status":
            return _cmd_status(ctx)
        if args.command == "generate":
            return _cmd_generate(args)
        if args.command == "email-service":
            if not ctx.manager.set_email_service(args.choice):
                return 1
            print(f"Email service set to {args.choice}.")
            return 0
        if not _unlock(ctx, prompt):
            return 1
        return _run_unlocked(ctx, args, prompt)
    except VaultBoxError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except pyperclip.PyperclipException as e:
        print(f"error: clipboard unavailable: {e}", file=sys.stderr)
        return 1
    finally:
        ctx.close()


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
