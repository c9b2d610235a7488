"""
Device Raster Conversion

Turns arbitrary source images into the fixed 512x512 monochrome bitmap
the engraver stores in its EEPROM. A set bit marks a pixel to burn.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Union

import numpy as np
from PIL import Image, ImageOps

from ..config import IMAGE_WIDTH, IMAGE_HEIGHT, IMAGE_BYTES
from ..errors import InvalidImage, InvalidLength

logger = logging.getLogger(__name__)

# Midpoint of the 8-bit luminance range
THRESHOLD = 128

ImageSource = Union[str, Path, BinaryIO, Image.Image, np.ndarray]


@dataclass(frozen=True)
class DeviceImage:
    """Packed 1-bit raster, row-major, most significant bit first."""
    data: bytes

    def __post_init__(self):
        if len(self.data) != IMAGE_BYTES:
            raise InvalidLength(len(self.data), IMAGE_BYTES)
        object.__setattr__(self, 'data', bytes(self.data))

    def __len__(self) -> int:
        return len(self.data)

    def to_bytes(self) -> bytes:
        return self.data

    def to_array(self) -> np.ndarray:
        """Unpack into a (height, width) bool array, True = engrave."""
        bits = np.unpackbits(np.frombuffer(self.data, dtype=np.uint8))
        return bits.reshape(IMAGE_HEIGHT, IMAGE_WIDTH).astype(bool)

    @classmethod
    def from_array(cls, bits: np.ndarray) -> 'DeviceImage':
        """Pack a (height, width) array where truthy pixels are engraved."""
        if bits.ndim != 2:
            raise InvalidImage(f"Raster must be 2-D, got {bits.ndim} dimensions")
        if bits.shape != (IMAGE_HEIGHT, IMAGE_WIDTH):
            raise InvalidImage(
                f"Raster must be {IMAGE_WIDTH}x{IMAGE_HEIGHT}, "
                f"got {bits.shape[1]}x{bits.shape[0]}"
            )
        packed = np.packbits(bits.astype(bool).astype(np.uint8), axis=None)
        return cls(packed.tobytes())


def mirror(raster: np.ndarray) -> np.ndarray:
    """Flip a raster top-to-bottom to match the device's scan direction."""
    return np.flipud(raster).copy()


def load_image(source: ImageSource) -> Image.Image:
    """
    Decode an image from a path, file object, PIL image or numpy array.

    Raises:
        InvalidImage: If the source cannot be decoded
    """
    if isinstance(source, Image.Image):
        return source

    if isinstance(source, np.ndarray):
        return _image_from_array(source)

    if not isinstance(source, (str, os.PathLike)) and not hasattr(source, 'read'):
        raise InvalidImage(f"Not an image source: {type(source).__name__}")

    try:
        img = Image.open(source)
        img.load()
    except (OSError, ValueError, TypeError, Image.DecompressionBombError) as e:
        raise InvalidImage(f"Cannot decode image {source!r}: {e}") from e
    return img


def _image_from_array(array: np.ndarray) -> Image.Image:
    if array.size == 0:
        raise InvalidImage("Image array is empty")

    if array.dtype == bool:
        array = array.astype(np.uint8) * 255
    elif array.dtype == np.uint16:
        array = (array // 257).astype(np.uint8)
    elif array.dtype != np.uint8:
        if array.dtype.kind == 'f' and array.max() <= 1.0:
            array = (array * 255).astype(np.uint8)
        else:
            array = np.clip(array, 0, 255).astype(np.uint8)

    if array.ndim == 3 and array.shape[2] == 1:
        array = array[:, :, 0]

    try:
        return Image.fromarray(array)
    except (TypeError, ValueError) as e:
        raise InvalidImage(f"Unsupported image array of shape {array.shape}") from e


class RasterConverter:
    """
    Convert images to the engraver's raster format.

    The pipeline is fixed: scale to 512x512, grayscale, invert, mirror,
    threshold and pack. Light areas of the source end up engraved.
    """

    def __init__(self, resample: Image.Resampling = Image.Resampling.BILINEAR):
        self.resample = resample

    def convert(self, source: ImageSource) -> DeviceImage:
        """
        Convert a source image to a DeviceImage.

        Args:
            source: Path, file object, PIL image or numpy array

        Returns:
            Packed raster of exactly IMAGE_BYTES bytes

        Raises:
            InvalidImage: If the source cannot be decoded
        """
        img = _flatten(load_image(source))
        logger.debug("Converting %dx%d %s image", img.width, img.height, img.mode)

        # Aspect ratio is not preserved, the device area is square
        scaled = img.resize((IMAGE_WIDTH, IMAGE_HEIGHT), self.resample)
        gray = scaled.convert('L')
        inverted = ImageOps.invert(gray)
        pixels = mirror(np.asarray(inverted, dtype=np.uint8))

        # After inversion, dark pixels are the ones that were light in the source
        return DeviceImage.from_array(pixels < THRESHOLD)

    def from_raw(self, buffer: Union[bytes, bytearray, memoryview]) -> DeviceImage:
        """
        Wrap an already prepared raster without touching its pixels.

        Raises:
            InvalidLength: If the buffer is not exactly IMAGE_BYTES long
        """
        return DeviceImage(bytes(buffer))


def _flatten(img: Image.Image) -> Image.Image:
    """Bring an image into a mode that resamples smoothly."""
    if img.width == 0 or img.height == 0:
        raise InvalidImage("Image has no pixels")

    if img.mode.startswith('I') or img.mode == 'F':
        img = _to_8bit(img)

    if img.mode in ('RGBA', 'LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info):
        # Transparent areas must not burn, so put them on black
        rgba = img.convert('RGBA')
        background = Image.new('RGBA', rgba.size, (0, 0, 0, 255))
        return Image.alpha_composite(background, rgba).convert('RGB')

    if img.mode not in ('L', 'RGB'):
        return img.convert('RGB')
    return img


def _to_8bit(img: Image.Image) -> Image.Image:
    """
    Rescale 16-bit, 32-bit integer and float images to 8-bit grayscale.

    Integer images are read as 16-bit (0-65535), which is what PNG and TIFF
    decoders produce. Float images in [0, 1] are scaled, others are clipped
    to 0-255.
    """
    pixels = np.asarray(img)
    if img.mode == 'F':
        if pixels.max() <= 1.0:
            pixels = pixels * 255
        scaled = np.clip(pixels, 0, 255)
    else:
        scaled = np.clip(pixels.astype(np.int64), 0, 65535) // 257
    return Image.fromarray(scaled.astype(np.uint8))
