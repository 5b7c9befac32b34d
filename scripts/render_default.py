#!/usr/bin/env python3
"""Render ``aes.bmp`` from the working directory with the default settings."""

from __future__ import annotations

from pathlib import Path

from ecb_visualize import RenderConfig, VisualizerError, process_image


def main() -> None:
    try:
        destination, _ = process_image(Path("aes.bmp"), RenderConfig())
    except VisualizerError as exc:
        raise SystemExit(f"error: {exc}") from exc
    print(f"Image saved to {destination}")


if __name__ == "__main__":
    main()
