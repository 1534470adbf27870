"""
Shared fixtures for image pipeline tests.
Creates isolated temporary directories with generated images and broken files.
"""
import struct
import tempfile
import zlib
from pathlib import Path
from typing import Dict

import numpy
import pytest
from PIL import Image


def make_gradient(width: int = 128, height: int = 96, offset: int = 0) -> Image.Image:
    """Smooth diagonal gradient: every pixel is brighter than its left and upper neighbours."""
    xs = numpy.arange(width)[numpy.newaxis, :]
    ys = numpy.arange(height)[:, numpy.newaxis]
    values = (xs + 2 * ys) * 240.0 / ((width - 1) + 2 * (height - 1)) + offset
    return Image.fromarray(numpy.clip(values, 0, 255).astype(numpy.uint8), mode="L").convert("RGB")


def make_noise(width: int = 128, height: int = 96, seed: int = 42) -> Image.Image:
    """Random blocky noise, unrelated to any gradient."""
    rng = numpy.random.default_rng(seed)
    blocks = rng.integers(0, 256, size=(height // 8, width // 8), dtype=numpy.uint8)
    values = numpy.kron(blocks, numpy.ones((8, 8), dtype=numpy.uint8))
    return Image.fromarray(values, mode="L").convert("RGB")


def write_png_with_bad_chunk(path: Path, image: Image.Image) -> None:
    """
    Greyscale PNG whose pixel data is split over two chunks, the second with a
    chunk type that is not four letters. The header parses, decoding fails midway.
    """
    grey = image.convert("L")
    width, height = grey.size
    pixels = grey.tobytes()
    scanlines = b"".join(b"\x00" + pixels[y * width:(y + 1) * width] for y in range(height))
    data = zlib.compress(scanlines)
    half = len(data) // 2

    def chunk(kind: bytes, body: bytes) -> bytes:
        crc = zlib.crc32(kind + body) & 0xFFFFFFFF
        return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", crc)

    header = struct.pack(">IIBBBBB", width, height, 8, 0, 0, 0, 0)
    path.write_bytes(
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", data[:half])
        + chunk(b"IDA\xce", data[half:])
        + chunk(b"IEND", b"")
    )


@pytest.fixture
def temp_dir():
    """Creates isolated temporary directory, auto-cleanup after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def image_files(temp_dir) -> Dict[str, Path]:
    """
    Creates a controlled image directory:
    - a gradient PNG and a slightly brighter JPEG copy of it (near-duplicates)
    - an unrelated noise PNG
    - a .png file that is not an image (must be skipped)
    - a subdirectory holding another copy (must be ignored, loading is not recursive)
    """
    files = {}

    files["original"] = temp_dir / "a_gradient.png"
    make_gradient().save(files["original"])

    files["copy"] = temp_dir / "b_gradient_copy.jpg"
    make_gradient(offset=5).save(files["copy"], quality=95)

    files["unrelated"] = temp_dir / "c_noise.png"
    make_noise().save(files["unrelated"])

    files["broken"] = temp_dir / "broken.png"
    files["broken"].write_bytes(b"definitely not a PNG file")

    nested = temp_dir / "nested"
    nested.mkdir()
    files["nested"] = nested / "a_gradient.png"
    make_gradient().save(files["nested"])

    return files


@pytest.fixture
def image_dir(image_files) -> Path:
    return image_files["original"].parent


@pytest.fixture
def gradient_factory():
    return make_gradient


@pytest.fixture
def noise_factory():
    return make_noise


@pytest.fixture
def bad_chunk_png(image_dir) -> Path:
    """A PNG with a corrupt chunk type, added next to the regular image files."""
    path = image_dir / "d_bad_chunk.png"
    write_png_with_bad_chunk(path, make_gradient())
    return path
