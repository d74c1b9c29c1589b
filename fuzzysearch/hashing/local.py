"""Local perceptual hashing compatible with FuzzySearch.

FuzzySearch indexes images by an 8x8 gradient hash taken over DCT
coefficients. Computing the same hash locally lets callers use the cheaper
hash lookup instead of uploading the whole image.

Implementation notes
--------------------
1) Decode the bytes with Pillow and convert to 8-bit luma using the sRGB
   (Rec. 709) weights, truncating like the server's image library does
2) Resize to twice the gradient grid (18x16) with a separable Lanczos3
   filter: vertical pass first, float intermediate, rounded at the end
3) Run a 2D DCT-II and keep the top-left 8 rows by 9 columns
4) Compare horizontally adjacent coefficients: a bit is set when the left
   value is smaller than the right one, row by row
5) Pack the 64 bits into 8 bytes, least significant bit first, and read
   the bytes big-endian as a signed 64-bit integer, the representation the
   API uses for hashes

Requires the ``local-hash`` extra (Pillow, numpy, SciPy).
"""

from __future__ import annotations

import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError
from scipy import fft

from fuzzysearch.core.exceptions import DecodeError

logger = logging.getLogger(__name__)

HASH_SIZE = 8

# sRGB luma weights used by the server's grayscale conversion
_LUMA_WEIGHTS = (np.float32(0.2126), np.float32(0.7152), np.float32(0.0722))
_LANCZOS_SUPPORT = np.float32(3.0)


def to_luma(img: Image.Image) -> np.ndarray:
    """Convert a decoded image to a 2D uint8 luma array."""
    if img.mode in ("L", "LA"):
        return np.asarray(img.getchannel(0), dtype=np.uint8)
    # Alpha is dropped, not composited
    rgb = np.asarray(img.convert("RGB"), dtype=np.float32)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    luma = _LUMA_WEIGHTS[0] * r + _LUMA_WEIGHTS[1] * g + _LUMA_WEIGHTS[2] * b
    return np.clip(luma, 0, 255).astype(np.uint8)


def _lanczos3(x: np.ndarray) -> np.ndarray:
    x = x.astype(np.float32)
    return np.where(
        np.abs(x) < _LANCZOS_SUPPORT,
        np.sinc(x) * np.sinc(x / _LANCZOS_SUPPORT),
        np.float32(0.0),
    ).astype(np.float32)


def resize_weights(src: int, dst: int) -> np.ndarray:
    """Lanczos3 resampling matrix mapping ``src`` samples onto ``dst``.

    Row ``i`` holds the normalized weights of output sample ``i``.
    Downscaling widens the filter by the scale ratio.
    """
    ratio = np.float32(src) / np.float32(dst)
    sratio = max(ratio, np.float32(1.0))
    support = _LANCZOS_SUPPORT * sratio

    weights = np.zeros((dst, src), dtype=np.float32)
    for out in range(dst):
        center = (np.float32(out) + np.float32(0.5)) * ratio
        left = min(max(int(np.floor(center - support)), 0), src - 1)
        right = min(max(int(np.ceil(center + support)), left + 1), src)
        taps = np.arange(left, right, dtype=np.float32)
        w = _lanczos3((taps - (center - np.float32(0.5))) / sratio)
        weights[out, left:right] = w / w.sum(dtype=np.float32)
    return weights


def resize(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize a 2D uint8 array to ``height`` rows by ``width`` columns."""
    src_height, src_width = pixels.shape
    vertical = resize_weights(src_height, height) @ pixels.astype(np.float32)
    out = vertical @ resize_weights(src_width, width).T
    return np.floor(np.clip(out, 0, 255) + np.float32(0.5)).astype(np.uint8)


def dct_coefficients(pixels: np.ndarray, hash_size: int = HASH_SIZE) -> np.ndarray:
    """Low-frequency DCT block the gradient is taken over.

    Returns ``hash_size`` rows by ``hash_size + 1`` columns.
    """
    width, height = hash_size + 1, hash_size
    resized = resize(pixels, width * 2, height * 2).astype(np.float32)
    coeffs = fft.dctn(resized, type=2)
    return coeffs[:height, :width]


def gradient_bits(coeffs: np.ndarray) -> np.ndarray:
    """Row-major bits, set where a value is below its right neighbour."""
    return (coeffs[:, :-1] < coeffs[:, 1:]).ravel()


def pack_hash(bits: np.ndarray) -> int:
    """Pack hash bits LSB-first per byte and read them as a signed int."""
    data = np.packbits(bits.astype(np.uint8), bitorder="little").tobytes()
    return int.from_bytes(data, "big", signed=True)


class ImageHasher:
    """Computes FuzzySearch-compatible perceptual hashes from image bytes."""

    def __init__(self, hash_size: int = HASH_SIZE):
        self.hash_size = hash_size

    def hash_image(self, data: bytes) -> int:
        """Hash raw image bytes into a signed 64-bit integer.

        Args:
            data: Encoded image (PNG, JPEG, GIF, WebP, ...)

        Returns:
            Signed 64-bit perceptual hash

        Raises:
            DecodeError: If the bytes are not a supported image
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                luma = to_luma(img)
        except (
            UnidentifiedImageError,
            OSError,
            SyntaxError,
            EOFError,
            ValueError,
            Image.DecompressionBombError,
        ) as e:
            logger.debug(f"Could not decode image for hashing: {e}")
            raise DecodeError(
                f"Unsupported or corrupt image: {e}", details={"size": len(data)}
            ) from e

        coeffs = dct_coefficients(luma, self.hash_size)
        return pack_hash(gradient_bits(coeffs))


def get_hasher() -> ImageHasher:
    """Create a hasher with the same parameters FuzzySearch uses."""
    return ImageHasher(hash_size=HASH_SIZE)


def hash_bytes(data: bytes) -> int:
    """Hash an image into a 64 bit number that's compatible with FuzzySearch."""
    return get_hasher().hash_image(data)
