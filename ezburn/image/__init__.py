"""
EzBurn Image Module

Converts source images into the engraver's packed monochrome raster.
"""

from .raster import DeviceImage, RasterConverter, load_image, mirror

__all__ = [
    'DeviceImage',
    'RasterConverter',
    'load_image',
    'mirror',
]
