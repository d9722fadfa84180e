import math

import pytest

from hdrkit.cubemap import (
    Image,
    cubemap_to_longlat,
    file_extension,
    float_to_byte,
    linear_to_rgbm,
    rgbm_to_linear,
    sample_cubemap,
    sample_texture,
    xyz_to_cube_uv,
)


def _constant_face(color, size=4):
    return Image(size, size, list(color) * (size * size))


@pytest.mark.parametrize(
    "name, ext",
    [("a.exr", "exr"), ("dir.v1/face.RGBM", "RGBM"), ("noext", ""), ("x.", "")],
)
def test_file_extension(name, ext):
    assert file_extension(name) == ext


@pytest.mark.parametrize(
    "direction, face",
    [
        ((1.0, 0.0, 0.0), 0),
        ((-1.0, 0.0, 0.0), 1),
        ((0.0, 1.0, 0.0), 2),
        ((0.0, -1.0, 0.0), 3),
        ((0.0, 0.0, 1.0), 4),
        ((0.0, 0.0, -1.0), 5),
    ],
)
def test_axis_directions_hit_face_centres(direction, face):
    index, u, v = xyz_to_cube_uv(*direction)
    assert index == face
    assert u == pytest.approx(v)
    assert u == pytest.approx(1.0 - u)


def test_uv_stays_in_unit_range():
    for x, y, z in [(0.3, -0.9, 0.2), (-0.7, 0.7, 0.1), (0.5, 0.5, -0.5)]:
        _, u, v = xyz_to_cube_uv(x, y, z)
        assert 0.0 <= u <= 1.0
        assert 0.0 <= v <= 1.0


def test_zero_direction_rejected():
    with pytest.raises(ValueError):
        xyz_to_cube_uv(0.0, 0.0, 0.0)


def test_sample_texture_constant():
    texels = [0.25, 0.5, 0.75] * 9
    result = sample_texture(0.37, 0.81, 3, 3, 3, texels)
    assert result == pytest.approx((0.25, 0.5, 0.75))


def test_sample_texture_corners_return_texels():
    texels = [1.0, 2.0, 3.0, 4.0]
    assert sample_texture(0.0, 0.0, 2, 2, 1, texels) == pytest.approx((1.0,))
    assert sample_texture(1.0, 1.0, 2, 2, 1, texels) == pytest.approx((1.0,))
    assert sample_texture(0.999999, 0.0, 2, 2, 1, texels)[0] == pytest.approx(
        2.0, abs=1e-4
    )


def test_sample_texture_result_between_texels():
    texels = [1.0, 2.0, 3.0, 4.0]
    (value,) = sample_texture(0.4, 0.6, 2, 2, 1, texels)
    assert min(texels) <= value <= max(texels)


def test_sample_texture_short_buffer():
    with pytest.raises(ValueError):
        sample_texture(0.5, 0.5, 2, 2, 3, [0.0] * 5)


def test_sample_cubemap_picks_face():
    faces = [_constant_face((float(i), 0.0, 0.0)) for i in range(6)]
    assert sample_cubemap(faces, (0.0, 0.0, -2.0))[0] == pytest.approx(5.0)
    assert sample_cubemap(faces, (0.0, 3.0, 0.1))[0] == pytest.approx(2.0)


def test_longlat_constant_cubemap():
    color = (0.2, 0.4, 0.6)
    faces = [_constant_face(color) for _ in range(6)]
    image = cubemap_to_longlat(faces, 0.0, 8)
    assert (image.width, image.height) == (8, 4)
    assert len(image.data) == 8 * 4 * 3
    for i in range(0, len(image.data), 3):
        assert image.data[i : i + 3] == pytest.approx(list(color))


def test_longlat_rows_show_top_and_bottom_faces():
    faces = [_constant_face((float(i), 0.0, 0.0), size=2) for i in range(6)]
    image = cubemap_to_longlat(faces, 30.0, 16)
    assert image.data[0] == pytest.approx(2.0)
    assert image.data[-3] == pytest.approx(3.0)


def test_longlat_needs_six_faces():
    with pytest.raises(ValueError):
        cubemap_to_longlat([_constant_face((0.0, 0.0, 0.0))] * 5, 0.0, 4)


def test_rgbm_zero_multiplier_is_black():
    assert rgbm_to_linear((0.7, 0.2, 1.0, 0.0)) == (0.0, 0.0, 0.0)


def test_rgbm_full_white():
    assert rgbm_to_linear((1.0, 1.0, 1.0, 1.0)) == pytest.approx((256.0,) * 3)


def test_linear_to_rgbm_ranges():
    for linear in [(0.0, 0.0, 0.0), (0.5, 1.0, 2.0), (10.0, 0.1, 3.0)]:
        r, g, b, m = linear_to_rgbm(linear)
        assert all(0.0 <= c <= 1.0 for c in (r, g, b, m))
        assert m >= 1.0 / 16.0
        assert m * 255.0 == pytest.approx(round(m * 255.0))


def test_float_to_byte():
    assert float_to_byte(1.0) == 255
    assert float_to_byte(0.0) == 0
    assert float_to_byte(7.5) == 255
    assert float_to_byte(-3.0) == 0
    assert float_to_byte(math.nan) == 0