"""Block-repetition visualizer for ECB-encrypted images.

This module splits a binary file into fixed-size cipher blocks, ranks the
distinct blocks by how often they occur, and paints every block occurrence with
a color chosen by its rank. Identical plaintext blocks encrypt to identical
ciphertext blocks under ECB, so the rendered PNG usually keeps the outline of
the source image. The most frequent block is white, the following ranks get
generated palette colors, and everything past the palette budget is black.

Blocks with the same count keep the order in which they first appear in the
input, so a given file and configuration always renders the same picture.
"""

from __future__ import annotations

import argparse
import io
import math
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from PIL import Image


BLOCK_SIZE = 16

Color = Tuple[int, int, int, int]
Ranking = List[Tuple[bytes, int]]

WHITE: Color = (255, 255, 255, 255)
BLACK: Color = (0, 0, 0, 255)
UNSET: Color = (0, 0, 0, 0)


class VisualizerError(Exception):
    pass


class InputReadError(VisualizerError):
    pass


class EmptyInputError(VisualizerError):
    pass


class InvalidConfigurationError(VisualizerError):
    pass


class OutputWriteError(VisualizerError):
    pass


@dataclass(frozen=True)
class RenderConfig:
    colors_needed: int = 254
    flip: bool = True
    pix_width: int = 16
    block_size: int = BLOCK_SIZE

    def validate(self) -> None:
        """Reject settings that would produce a malformed palette or canvas."""

        if self.colors_needed < 2:
            raise InvalidConfigurationError(
                f"colors must be at least 2 (got {self.colors_needed})"
            )
        if self.block_size < 1:
            raise InvalidConfigurationError(
                f"block size must be positive (got {self.block_size})"
            )
        if self.pix_width < 1 or self.pix_width > self.block_size:
            raise InvalidConfigurationError(
                f"pix width must be between 1 and {self.block_size} "
                f"(got {self.pix_width})"
            )
        if self.block_size % self.pix_width:
            raise InvalidConfigurationError(
                f"pix width {self.pix_width} does not divide block size "
                f"{self.block_size}"
            )

    @property
    def pixels_per_block(self) -> int:
        return self.block_size // self.pix_width


@dataclass(frozen=True)
class Canvas:
    """Row-major grid of RGBA cells; cells past the last pixel stay ``UNSET``."""

    width: int
    height: int
    cells: Tuple[Color, ...]

    def row(self, y: int) -> Tuple[Color, ...]:
        start = y * self.width
        return self.cells[start : start + self.width]

    def pixel(self, x: int, y: int) -> Color:
        return self.cells[y * self.width + x]


@dataclass(frozen=True)
class Rendering:
    block_count: int
    distinct_blocks: int
    canvas: Canvas


def split_blocks(data: bytes, block_size: int = BLOCK_SIZE) -> List[bytes]:
    """Cut ``data`` into whole blocks, silently dropping a trailing remainder."""

    usable = len(data) - len(data) % block_size
    if usable == 0:
        raise EmptyInputError(
            f"input holds {len(data)} bytes, fewer than one {block_size}-byte block"
        )
    view = memoryview(data)
    return [bytes(view[i : i + block_size]) for i in range(0, usable, block_size)]


def rank_blocks(blocks: Sequence[bytes]) -> Ranking:
    """Return ``(block, count)`` pairs, most frequent first.

    ``Counter`` remembers first-seen order and ``most_common`` sorts stably, so
    equal counts stay in the order the blocks first appear in the input.
    """

    return Counter(blocks).most_common()


def build_palette(colors_needed: int) -> List[Color]:
    """White first, black last, and a fixed formula over the index in between."""

    if colors_needed < 2:
        raise InvalidConfigurationError(
            f"colors must be at least 2 (got {colors_needed})"
        )
    palette = [WHITE]
    for i in range(1, colors_needed - 1):
        palette.append(((i * 50) % 255, (i * 80) % 255, (i * 110) % 255, 255))
    palette.append(BLACK)
    return palette


def assign_colors(ranking: Ranking, palette: Sequence[Color]) -> Dict[bytes, Color]:
    """Map every ranked block to its palette entry, or to black past the budget."""

    fallback = palette[-1]
    cutoff = len(palette) - 1
    return {
        block: palette[rank] if rank < cutoff else fallback
        for rank, (block, _) in enumerate(ranking)
    }


def expand_pixels(
    blocks: Sequence[bytes], assignment: Dict[bytes, Color], repeat: int
) -> List[Color]:
    """Replay the blocks in input order, emitting ``repeat`` pixels per block."""

    pixels: List[Color] = []
    for block in blocks:
        pixels.extend([assignment.get(block, BLACK)] * repeat)
    return pixels


def canvas_size(total_pixels: int) -> Tuple[int, int]:
    """Return the near-square ``(width, height)`` that fits ``total_pixels``."""

    if total_pixels < 1:
        raise EmptyInputError("nothing to draw: the pixel sequence is empty")
    width = math.isqrt(total_pixels)
    height = -(-total_pixels // width)
    return width, height


def layout_canvas(pixels: Sequence[Color], flip: bool) -> Canvas:
    width, height = canvas_size(len(pixels))
    cells = [UNSET] * (width * height)
    for index, color in enumerate(pixels):
        x = index % width
        y = index // width
        if flip:
            # Bitmaps store rows bottom-up.
            y = height - 1 - y
        if y >= height:
            break
        cells[y * width + x] = color
    return Canvas(width, height, tuple(cells))


def render(data: bytes, config: RenderConfig) -> Rendering:
    """Run every stage on ``data`` after validating ``config``."""

    config.validate()
    blocks = split_blocks(data, config.block_size)
    ranking = rank_blocks(blocks)
    palette = build_palette(config.colors_needed)
    assignment = assign_colors(ranking, palette)
    pixels = expand_pixels(blocks, assignment, config.pixels_per_block)
    canvas = layout_canvas(pixels, config.flip)
    return Rendering(len(blocks), len(ranking), canvas)


def encode_png(canvas: Canvas) -> bytes:
    """Encode the canvas as an RGBA PNG byte stream."""

    image = Image.new("RGBA", (canvas.width, canvas.height))
    image.putdata(canvas.cells)
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise OutputWriteError(f"PNG encoding failed: {exc}") from exc
    return buffer.getvalue()


def output_path_for(input_path: Path) -> Path:
    return Path(f"{input_path}_aes.png")


def process_image(
    input_path: Path, config: RenderConfig, output_path: Optional[Path] = None
) -> Tuple[Path, Rendering]:
    """Render ``input_path`` to a PNG and return where it was written."""

    config.validate()
    try:
        data = input_path.read_bytes()
    except OSError as exc:
        raise InputReadError(f"failed to read {input_path}: {exc}") from exc

    rendering = render(data, config)
    encoded = encode_png(rendering.canvas)

    destination = output_path or output_path_for(input_path)
    try:
        destination.write_bytes(encoded)
    except OSError as exc:
        raise OutputWriteError(f"failed to write {destination}: {exc}") from exc
    return destination, rendering


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Render the block-repetition pattern of an ECB-encrypted file as a "
            "PNG. Repeated cipher blocks share a color, so structure from the "
            "plaintext image shows through."
        )
    )
    parser.add_argument(
        "-i",
        "--image",
        type=Path,
        default=Path("aes.bmp"),
        help="Path to the encrypted input file (default: aes.bmp)",
    )
    parser.add_argument(
        "-c",
        "--colors",
        type=int,
        default=254,
        help="Palette size; blocks ranked past it are drawn black (default: 254)",
    )
    parser.add_argument(
        "-f",
        "--flip",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Flip rows vertically to match bottom-up bitmaps (default: on)",
    )
    parser.add_argument(
        "-w",
        "--pix-width",
        type=int,
        default=16,
        help="Bytes of a block covered by one pixel; must divide the block size",
    )
    parser.add_argument(
        "--block-size",
        type=int,
        default=BLOCK_SIZE,
        help="Cipher block size in bytes (default: 16 for AES)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Destination PNG (default: <image>_aes.png)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    config = RenderConfig(
        colors_needed=args.colors,
        flip=args.flip,
        pix_width=args.pix_width,
        block_size=args.block_size,
    )
    try:
        destination, rendering = process_image(args.image, config, args.output)
    except VisualizerError as exc:
        raise SystemExit(f"error: {exc}") from exc

    canvas = rendering.canvas
    print(
        f"{rendering.block_count} blocks, {rendering.distinct_blocks} distinct, "
        f"{canvas.width}x{canvas.height} pixels"
    )
    print(f"Image saved to {destination}")


if __name__ == "__main__":
    main()
