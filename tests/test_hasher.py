"""
Tests for image decoding and perceptual fingerprinting.
"""
import base64

import pytest
from PIL import Image

from imgdedup.core.errors import FingerprintMismatchError, ImageDecodeError
from imgdedup.core.hasher import ImageFingerprinter, decode_image, hamming_distance, to_greyscale
from imgdedup.core.models import HashAlgorithm


class TestDecodeImage:
    def test_decodes_valid_image(self, image_files):
        image = decode_image(image_files["original"])
        assert image.size == (128, 96)

    def test_broken_file_raises_decode_error(self, image_files):
        with pytest.raises(ImageDecodeError):
            decode_image(image_files["broken"])

    def test_corrupt_chunk_raises_decode_error(self, bad_chunk_png):
        with pytest.raises(ImageDecodeError, match="SyntaxError"):
            decode_image(bad_chunk_png)

    def test_decoded_image_is_greyscale(self, image_files):
        assert decode_image(image_files["copy"]).mode == "L"

    def test_lab_image_keeps_its_lightness_band(self, gradient_factory):
        lightness = gradient_factory().convert("L")
        flat = Image.new("L", lightness.size, 128)
        lab = Image.merge("LAB", (lightness, flat, flat))

        grey = to_greyscale(lab)

        assert grey.mode == "L"
        assert grey.tobytes() == lightness.tobytes()

    def test_lab_image_can_be_fingerprinted(self, gradient_factory):
        lightness = gradient_factory().convert("L")
        flat = Image.new("L", lightness.size, 128)
        lab = Image.merge("LAB", (lightness, flat, flat))
        fingerprinter = ImageFingerprinter(HashAlgorithm.DOUBLE_GRADIENT, (8, 8))

        assert fingerprinter.fingerprint(lab) == fingerprinter.fingerprint(lightness)

    def test_missing_file_raises_decode_error(self, temp_dir):
        with pytest.raises(ImageDecodeError):
            decode_image(temp_dir / "missing.png")


class TestImageFingerprinter:
    @pytest.mark.parametrize("algorithm", list(HashAlgorithm))
    def test_same_image_gives_same_fingerprint(self, algorithm, gradient_factory):
        fingerprinter = ImageFingerprinter(algorithm, (8, 8))
        first = fingerprinter.fingerprint(gradient_factory())
        second = ImageFingerprinter(algorithm, (8, 8)).fingerprint(gradient_factory())

        assert first == second
        assert first.distance(second) == 0

    def test_distance_is_symmetric(self, gradient_factory, noise_factory):
        fingerprinter = ImageFingerprinter(HashAlgorithm.DOUBLE_GRADIENT, (12, 12))
        a = fingerprinter.fingerprint(gradient_factory())
        b = fingerprinter.fingerprint(noise_factory())

        assert a.distance(b) == b.distance(a) == hamming_distance(a, b)
        assert a.distance(b) > 0

    def test_near_duplicate_is_closer_than_unrelated(self, gradient_factory, noise_factory):
        fingerprinter = ImageFingerprinter(HashAlgorithm.DOUBLE_GRADIENT, (12, 12))
        original = fingerprinter.fingerprint(gradient_factory())
        brighter = fingerprinter.fingerprint(gradient_factory(offset=5))
        noise = fingerprinter.fingerprint(noise_factory())

        assert original.distance(brighter) <= 5
        assert original.distance(noise) > 40

    @pytest.mark.parametrize("algorithm, size, bits", [
        (HashAlgorithm.MEAN, (8, 8), 64),
        (HashAlgorithm.H_GRADIENT, (16, 8), 128),
        (HashAlgorithm.V_GRADIENT, (6, 10), 60),
        (HashAlgorithm.DOUBLE_GRADIENT, (12, 12), 288),
        (HashAlgorithm.DOUBLE_GRADIENT, (16, 8), 256),
        (HashAlgorithm.PERCEPTUAL, (8, 8), 64),
        (HashAlgorithm.WAVELET, (8, 8), 64),
        (HashAlgorithm.BLOCKHASH, (8, 8), 64),
        (HashAlgorithm.BLOCKHASH, (12, 6), 72),
        (HashAlgorithm.MEAN, (1, 1), 1),
        (HashAlgorithm.H_GRADIENT, (1, 1), 1),
        (HashAlgorithm.V_GRADIENT, (1, 1), 1),
        (HashAlgorithm.DOUBLE_GRADIENT, (1, 1), 2),
        (HashAlgorithm.BLOCKHASH, (1, 1), 1),
        (HashAlgorithm.MEAN, (1, 4), 4),
    ])
    def test_fingerprint_bit_count(self, algorithm, size, bits, gradient_factory):
        fp = ImageFingerprinter(algorithm, size).fingerprint(gradient_factory())

        assert fp.algorithm == algorithm
        assert fp.size == size
        assert fp.value.hash.size == bits
        assert len(fp.to_hex()) == (bits + 3) // 4

    def test_gradient_bits_follow_brightness(self, gradient_factory):
        """Pixels of the gradient get brighter to the right and downwards, so nearly every bit is set."""
        fp = ImageFingerprinter(HashAlgorithm.DOUBLE_GRADIENT, (12, 8)).fingerprint(gradient_factory())
        assert fp.value.hash.mean() > 0.9

    def test_mismatched_fingerprints_cannot_be_compared(self, gradient_factory):
        image = gradient_factory()
        a = ImageFingerprinter(HashAlgorithm.MEAN, (8, 8)).fingerprint(image)
        b = ImageFingerprinter(HashAlgorithm.MEAN, (16, 16)).fingerprint(image)
        c = ImageFingerprinter(HashAlgorithm.H_GRADIENT, (8, 8)).fingerprint(image)

        with pytest.raises(FingerprintMismatchError):
            a.distance(b)
        with pytest.raises(FingerprintMismatchError):
            hamming_distance(a, c)

    def test_blockhash_sets_half_of_each_band(self, gradient_factory):
        """Each quarter of the blocks is split at its own median, so a smooth gradient sets about half the bits."""
        fp = ImageFingerprinter(HashAlgorithm.BLOCKHASH, (8, 8)).fingerprint(gradient_factory())
        bands = fp.value.hash.reshape(4, 16)

        assert all(4 <= band.sum() <= 12 for band in bands)

    def test_blockhash_separates_near_duplicate_from_unrelated(self, gradient_factory, noise_factory):
        fingerprinter = ImageFingerprinter(HashAlgorithm.BLOCKHASH, (16, 16))
        original = fingerprinter.fingerprint(gradient_factory())
        brighter = fingerprinter.fingerprint(gradient_factory(offset=5))
        noise = fingerprinter.fingerprint(noise_factory())

        assert original.distance(brighter) < original.distance(noise)


class TestFingerprintRendering:
    def test_base64_of_64_bits(self, gradient_factory):
        fp = ImageFingerprinter(HashAlgorithm.MEAN, (8, 8)).fingerprint(gradient_factory())
        encoded = fp.to_base64()

        assert len(encoded) == 12
        assert base64.b64decode(encoded) == bytes.fromhex(fp.to_hex())

    def test_base64_pads_partial_bytes(self, gradient_factory):
        fp = ImageFingerprinter(HashAlgorithm.MEAN, (1, 1)).fingerprint(gradient_factory())

        assert len(base64.b64decode(fp.to_base64())) == 1
