[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hdrkit"
version = "0.1.0"
description = "Pure-Python helpers for HDR image data: float TIFF/DNG writing, cubemap to lat-long conversion, LDR tone mapping and a virtual trackball"
requires-python = ">=3.10"
dependencies = []
keywords = ["hdr", "tiff", "dng", "cubemap", "equirectangular", "rgbm", "tone-mapping", "trackball"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hdrkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
