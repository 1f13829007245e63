"""
Command line front end for the hexseal codec.

Commands:
    encrypt [TEXT] [--file PATH] [--text] [--copy]
    -> prints the envelope; JSON input is sealed as an object unless --text is given

    decrypt [ENVELOPE] [--file PATH] [--copy]
    -> accepts a bare envelope or a {"data": "<envelope>"} wrapper; objects print as indented JSON

    check [CANDIDATE]
    -> exit status 0 if the input looks like an envelope, 1 otherwise

    selftest
    -> derives the key and round-trips a check string

Input is read from the positional argument, --file, or stdin, in that order.
Configuration comes from ENCRYPTION_KEY, ENCRYPTION_SALT, ENCRYPTION_IV,
ENCRYPTION_ALGORITHM and HEXSEAL_DEV_MODE.

Usage:
    python -m hexseal encrypt '{"user": "bob"}' --copy
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from hexseal.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    FormatError,
    HexSealError,
)
from hexseal.core.settings import load_settings
from hexseal.frontend.cli.clipboard import copy_to_clipboard
from hexseal.frontend.cli.logging_config import configure_logging
from hexseal.security.encryption import KIND_OBJECT, EnvelopeCodec
from hexseal.security.envelope import extract_envelope, looks_like_envelope
from hexseal.security.kdf import kdf_params_to_dict

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FORMAT = 1
EXIT_CONFIG = 2
EXIT_AUTH = 3

_EXIT_CODES = {
    FormatError: EXIT_FORMAT,
    ConfigurationError: EXIT_CONFIG,
    AuthenticationError: EXIT_AUTH,
}


def _read_input(args: argparse.Namespace) -> str:
    if args.value is not None:
        return args.value
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
    else:
        text = sys.stdin.read()
    # drop the newline editors and shells append
    if text.endswith("\n"):
        text = text[:-1]
        if text.endswith("\r"):
            text = text[:-1]
    return text


def _emit(text: str, copy: bool) -> None:
    print(text)
    if copy and copy_to_clipboard(text):
        print("Copied to clipboard!", file=sys.stderr)


def cmd_encrypt(codec: EnvelopeCodec, args: argparse.Namespace) -> int:
    data = _read_input(args)
    if not data.strip():
        raise FormatError("data is required")
    if args.text:
        envelope, kind = codec.encrypt_text(data), "text"
    else:
        sealed = codec.encrypt_auto(data)
        envelope, kind = sealed.envelope, sealed.kind
    logger.info("encrypted input as %s", kind)
    _emit(envelope, args.copy)
    return EXIT_OK


def cmd_decrypt(codec: EnvelopeCodec, args: argparse.Namespace) -> int:
    candidate = extract_envelope(_read_input(args))
    if not candidate:
        raise FormatError("data is required")
    if not looks_like_envelope(candidate):
        raise FormatError("the provided data is not encrypted")
    opened = codec.decrypt_auto(candidate)
    if opened.kind == KIND_OBJECT:
        output = json.dumps(opened.value, indent=2, ensure_ascii=False)
    else:
        output = opened.value
    _emit(output, args.copy)
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    candidate = extract_envelope(_read_input(args))
    if looks_like_envelope(candidate):
        print("envelope")
        return EXIT_OK
    print("not an envelope")
    return EXIT_FORMAT


def cmd_selftest(codec: EnvelopeCodec) -> int:
    codec.warm_up()
    params = kdf_params_to_dict(codec.settings.salt)
    print(
        f"kdf: {params['algo']}, {params['iterations']} iterations, "
        f"{params['length'] * 8}-bit key, salt {params['effective_salt']!r}"
    )
    print(f"algorithm: {codec.settings.algorithm}, IV: {'fixed' if codec.iv_policy.is_fixed else 'random'}")
    for reason in codec.settings.insecure_reasons():
        print(f"warning: {reason}")
    codec.self_check()
    print("self-check passed")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hexseal", description="AES-256-GCM hex envelopes")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encrypt", help="encrypt text or JSON")
    enc.add_argument("value", nargs="?", default=None)
    enc.add_argument("--file", default=None)
    enc.add_argument("--text", action="store_true", help="never treat input as JSON")
    enc.add_argument("--copy", action="store_true", help="copy the envelope to the clipboard")

    dec = sub.add_parser("decrypt", help="decrypt an envelope")
    dec.add_argument("value", nargs="?", default=None)
    dec.add_argument("--file", default=None)
    dec.add_argument("--copy", action="store_true", help="copy the plaintext to the clipboard")

    chk = sub.add_parser("check", help="check whether input looks like an envelope")
    chk.add_argument("value", nargs="?", default=None)
    chk.add_argument("--file", default=None)

    sub.add_parser("selftest", help="derive the key and round-trip a check string")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.command == "check":
            return cmd_check(args)
        codec = EnvelopeCodec(load_settings())
        if args.command == "encrypt":
            return cmd_encrypt(codec, args)
        if args.command == "decrypt":
            return cmd_decrypt(codec, args)
        return cmd_selftest(codec)
    except HexSealError as exc:
        print(f"error [{exc.kind}]: {exc.detail}", file=sys.stderr)
        return _EXIT_CODES.get(type(exc), EXIT_FORMAT)


if __name__ == "__main__":
    raise SystemExit(main())
