#!/usr/bin/env python3
"""Encrypt a file with AES-128 in ECB mode to produce visualizer input."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes

BLOCK_SIZE = 16


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Write <input>.ecb, the AES-128-ECB encryption of an input file."
    )
    parser.add_argument("input", type=Path, help="File to encrypt, e.g. a .bmp image")
    parser.add_argument(
        "--key",
        help="Hex-encoded 16-byte key (default: a fresh random key)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Destination path (default: <input>.ecb)",
    )
    return parser.parse_args()


def pkcs7_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    pad_len = block_size - (len(data) % block_size)
    return data + bytes([pad_len]) * pad_len


def encrypt_ecb(data: bytes, key: bytes) -> bytes:
    cipher = AES.new(key, AES.MODE_ECB)
    return cipher.encrypt(pkcs7_pad(data))


def parse_key(value: Optional[str]) -> bytes:
    if value is None:
        return get_random_bytes(BLOCK_SIZE)
    try:
        key = bytes.fromhex(value)
    except ValueError as exc:
        raise SystemExit(f"Key is not valid hex: {exc}") from exc
    if len(key) != BLOCK_SIZE:
        raise SystemExit(f"Key must be {BLOCK_SIZE} bytes, got {len(key)}")
    return key


def main() -> None:
    args = parse_args()
    key = parse_key(args.key)
    output = args.output or args.input.with_name(args.input.name + ".ecb")

    try:
        plaintext = args.input.read_bytes()
    except OSError as exc:
        raise SystemExit(f"Failed to read {args.input}: {exc}") from exc

    output.write_bytes(encrypt_ecb(plaintext, key))
    print(f"Key (hex): {key.hex()}")
    print(f"Ciphertext saved to {output}")


if __name__ == "__main__":
    main()
