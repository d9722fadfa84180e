"""Tools for HDR image data: float TIFF/DNG writing, cubemap conversion, tone mapping and a virtual trackball."""

__version__ = "0.1.0"
__all__ = ["tiff_tags", "dng", "fptiff", "trackball", "cubemap", "filters"]