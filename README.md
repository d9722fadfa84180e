# hdrkit

Small, dependency-free Python tools for high dynamic range image data held
in plain Python sequences of floats.

## Modules

- `hdrkit.tiff_tags`: TIFF building blocks. It has the `Tag` and `DataType`
  enums and `IfdEntry`, which has `byte_length()` and `encode()`. It also has
  `make_entry`, `tiff_header`, `type_size` and `double_to_rational`, which
  returns a float as a `(numerator, denominator)` pair. Fields that cannot be
  built raise `TiffError`.
- `hdrkit.dng`: `DNGImage` collects the tags and a single pixel strip for one
  image. Its setters include `set_image_width`, `set_samples_per_pixel`,
  `set_bits_per_sample`, `set_sample_format`, `set_x_resolution`,
  `set_image_description`, `set_black_level_rational`, `set_image_data` and
  others. `DNGWriter` puts one or more images into a file with `add_image`,
  `to_bytes` and `write`. The file holds the header first, then the data
  blocks, then the IFD tables. Invalid settings raise `DNGError`, a subclass
  of `TiffError`. Pixel data passed to `set_image_data` is in the host's byte
  order and is converted to the file's byte order on output. A new
  `DNGImage` is big-endian unless told otherwise.
- `hdrkit.fptiff`: `create_float_tiff` returns a `DNGImage` holding
  uncompressed 32-bit float samples. `write_float_tiff` writes one to a
  path. The input is interleaved with `in_channels` values per pixel. Output
  channel `c` takes input channel `min(c, in_channels - 1)`. From 1 to 4
  output channels are supported: one channel is stored as grayscale, more as
  RGB.
- `hdrkit.cubemap`: RGBM encoding and decoding (`rgbm_to_linear`,
  `linear_to_rgbm`). `xyz_to_cube_uv` maps a direction to
  `(face, u, v)`, with faces ordered +X, -X, +Y, -Y, +Z, -Z. It also has
  bilinear sampling with repeat wrapping (`sample_texture`,
  `sample_cubemap`), `file_extension` and `float_to_byte`.
  `cubemap_to_longlat` builds a Y-up equirectangular `Image` that is
  `width` by `width // 2`, with `phi_offset` in degrees.
- `hdrkit.filters`: `clip_rgb` clamps each RGB channel of RGBA pixels and
  drops alpha. It returns a `ClipResult` with `rgb`, `v_min` and `v_max`.
  `to_ldr` scales and gamma-encodes float RGBA into 8-bit RGBA `bytes`.
  Alpha is scaled too, unless `ignore_alpha` is set, in which case alpha is
  255. `float_to_ldr` converts a single value.
- `hdrkit.trackball`: a virtual trackball. `trackball` turns a drag between
  two points in (-1, 1) into a quaternion. The module also has
  `axis_to_quat`, `add_quats`, `normalize_quat` and `build_rotmatrix`, which
  returns a 4x4 matrix. `QuaternionAccumulator.add` composes two rotations.
  On every 98th call it also passes the result through `normalize_quat`,
  which divides each component by the sum of the squared components.

## Installation

```
pip install .
```

Install with the `test` extra to run the tests:

```
pip install ".[test]"
pytest
```

## Example: writing a floating point TIFF

```python
from hdrkit.fptiff import write_float_tiff

width, height = 2, 1
rgba = [
    0.0, 0.5, 1.0, 1.0,
    2.0, 4.0, 8.0, 1.0,
]
write_float_tiff("out.tiff", rgba, width, height, 4, 3, False)
```

## Example: cubemap to lat-long

```python
from hdrkit.cubemap import Image, cubemap_to_longlat

face = Image(width=1, height=1, data=[1.0, 1.0, 1.0])
longlat = cubemap_to_longlat([face] * 6, 0.0, 8)
print(longlat.width, longlat.height)  # 8 4
```

## What it does not do

- hdrkit does not read or write OpenEXR files.
- It does not read or write PNG, Radiance HDR or other image formats, apart
  from the float TIFF files above. `to_ldr` and `cubemap_to_longlat` return
  pixel data in memory, and saving it is up to you.
- It does not resize images.
- It has no command-line tools and no image viewer. The trackball functions
  only compute rotations.