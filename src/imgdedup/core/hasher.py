"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/hasher.py
Image decoding and perceptual fingerprinting on top of Pillow and imagehash.

Decoded images are reduced to a single greyscale band, which is all any
algorithm looks at. Square sizes of 2 and up go straight to the imagehash
functions. The mean, gradient and block algorithms also accept rectangular
sizes and sizes of 1; those are computed the same way imagehash does it
(resize, compare) and wrapped in imagehash.ImageHash so distances work
identically.
"""

from pathlib import Path
from typing import Tuple, Union

import imagehash
import numpy
from PIL import Image

from imgdedup.core.errors import ImageDecodeError
from imgdedup.core.models import Fingerprint, HashAlgorithm

_RESAMPLE = Image.Resampling.LANCZOS
_BLOCKHASH_BANDS = 4


def to_greyscale(image: Image.Image) -> Image.Image:
    """
    Single-band version of an image.

    Raises:
        ValueError: If Pillow has no conversion from the image's mode.
    """
    if image.mode == "L":
        return image
    if image.mode == "LAB":
        # Pillow cannot convert LAB, but its first band already is the lightness
        return image.getchannel("L")
    return image.convert("L")


def decode_image(path: Union[str, Path]) -> Image.Image:
    """
    Fully decode an image file into memory, release the file handle and
    return its greyscale raster.

    Raises:
        ImageDecodeError: If the file is missing, unreadable, corrupt, or in a
            mode that has no greyscale conversion.
    """
    try:
        with Image.open(path) as img:
            img.load()
            grey = to_greyscale(img)
            return grey.copy() if grey is img else grey
    except Exception as e:
        # Pillow plugins raise anything from OSError to SyntaxError on broken data
        raise ImageDecodeError(f"{type(e).__name__}: {e}") from e


def hamming_distance(a: Fingerprint, b: Fingerprint) -> int:
    """Number of differing bits between two compatible fingerprints."""
    return a.distance(b)


class ImageFingerprinter:
    """
    Computes fingerprints for one algorithm and size.
    Not shared between threads: each worker builds its own.
    """

    def __init__(self, algorithm: HashAlgorithm, hash_size: Tuple[int, int]):
        self.algorithm = algorithm
        self.width, self.height = hash_size

    @property
    def hash_size(self) -> Tuple[int, int]:
        return self.width, self.height

    def fingerprint(self, image: Image.Image) -> Fingerprint:
        """Deterministic: the same image, algorithm and size always give the same fingerprint."""
        bits = self._compute(to_greyscale(image))
        return Fingerprint(algorithm=self.algorithm, size=self.hash_size, value=bits)

    def _compute(self, image: Image.Image) -> imagehash.ImageHash:
        algo = self.algorithm
        n = self.width
        # imagehash refuses sizes below 2
        native = self.width == self.height and n >= 2

        if algo == HashAlgorithm.PERCEPTUAL:
            return imagehash.phash(image, hash_size=n)
        if algo == HashAlgorithm.WAVELET:
            return imagehash.whash(image, hash_size=n)
        if algo == HashAlgorithm.BLOCKHASH:
            return self._blockhash(image)

        if algo == HashAlgorithm.MEAN:
            return imagehash.average_hash(image, hash_size=n) if native else self._mean(image)
        if algo == HashAlgorithm.H_GRADIENT:
            return imagehash.dhash(image, hash_size=n) if native else self._h_gradient(image)
        if algo == HashAlgorithm.V_GRADIENT:
            return imagehash.dhash_vertical(image, hash_size=n) if native else self._v_gradient(image)
        if algo == HashAlgorithm.DOUBLE_GRADIENT:
            if native:
                h = imagehash.dhash(image, hash_size=n)
                v = imagehash.dhash_vertical(image, hash_size=n)
            else:
                h = self._h_gradient(image)
                v = self._v_gradient(image)
            return imagehash.ImageHash(numpy.concatenate([h.hash, v.hash]))

        raise ValueError(f"Unsupported hashing algorithm: {algo!r}")

    def _pixels(self, image: Image.Image, width: int, height: int,
                resample: Image.Resampling = _RESAMPLE) -> numpy.ndarray:
        small = image.convert("L").resize((width, height), resample)
        return numpy.asarray(small, dtype=numpy.float64)

    def _mean(self, image: Image.Image) -> imagehash.ImageHash:
        pixels = self._pixels(image, self.width, self.height)
        return imagehash.ImageHash(pixels > pixels.mean())

    def _h_gradient(self, image: Image.Image) -> imagehash.ImageHash:
        pixels = self._pixels(image, self.width + 1, self.height)
        return imagehash.ImageHash(pixels[:, 1:] > pixels[:, :-1])

    def _v_gradient(self, image: Image.Image) -> imagehash.ImageHash:
        pixels = self._pixels(image, self.width, self.height + 1)
        return imagehash.ImageHash(pixels[1:, :] > pixels[:-1, :])

    def _blockhash(self, image: Image.Image) -> imagehash.ImageHash:
        """
        Block mean hash: the image is cut into width x height blocks (BOX
        resampling gives the exact block averages, fractional edges included),
        the blocks are split into four horizontal bands in row-major order and
        each block is compared with the median of its band.
        """
        blocks = self._pixels(image, self.width, self.height, Image.Resampling.BOX).flatten()
        bits = numpy.concatenate([
            band > numpy.median(band)
            for band in numpy.array_split(blocks, _BLOCKHASH_BANDS)
            if band.size
        ])
        return imagehash.ImageHash(bits.reshape(self.height, self.width))
