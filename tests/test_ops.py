"""Tests for the buffer composition engine.

Tests for limage.ops:
    - hstack: shape composition, order preservation, consistency errors
    - vstack: defined by transpose(hstack(transpose(...))), width errors
    - transpose: correctness, involution, non-square, fresh allocation
    - crop_region: containment, bounds hardening
    - combine_channels / split_channels: interleaving and round trip
    - vectors_to_colors: [-1, 1] → [0, 1] remap
    - diff_images: normalization

End-to-end scenario:
    [0,1,2,3] 2x2 transposed → [0,2,1,3]; hstack with itself → first row [0,1,0,1]

Run:
    pytest tests/test_ops.py -v
"""

import numpy as np
import pytest

from limage.errors import (
    EmptyInputError,
    ImageOpsError,
    InconsistentShapeError,
    InvalidChannelCountError,
    OutOfRangeError,
)
from limage.image import LinearImage
from limage.ops import (
    combine_channels,
    crop_region,
    diff_images,
    extract_channel,
    hstack,
    split_channels,
    transpose,
    vectors_to_colors,
    vstack,
)


# ============================================================================
# END-TO-END
# ============================================================================

def test_end_to_end_scenario():
    img = LinearImage.from_flat([0, 1, 2, 3], width=2, height=2)
    np.testing.assert_array_equal(transpose(img).flat(), [0, 2, 1, 3])

    stacked = hstack([img, img])
    assert stacked.shape == (4, 2, 1)
    np.testing.assert_array_equal(stacked.data[0, :, 0], [0, 1, 0, 1])
    np.testing.assert_array_equal(stacked.data[1, :, 0], [2, 3, 2, 3])


def test_transpose_ascii_fixture(ascii_image):
    src = transpose(ascii_image("01 23 45"))
    ref = ascii_image("024 135")
    assert src.width == 3
    assert src.height == 2
    assert src == ref


# ============================================================================
# HSTACK
# ============================================================================

class TestHstack:
    def test_shape_composition(self, random_image):
        imgs = [random_image(w, 4, 3) for w in (1, 5, 2)]
        out = hstack(imgs)
        assert out.shape == (8, 4, 3)

    def test_pixels_come_from_origin(self, random_image):
        imgs = [random_image(w, 3, 2) for w in (2, 3, 1)]
        out = hstack(imgs)
        x0 = 0
        for img in imgs:
            for row in range(img.height):
                for col in range(img.width):
                    np.testing.assert_array_equal(out.get_pixel(x0 + col, row), img.get_pixel(col, row))
            x0 += img.width

    def test_single_image_is_copy(self, random_image):
        img = random_image(3, 2)
        out = hstack([img])
        assert out == img
        assert out is not img
        assert not np.shares_memory(out.data, img.data)

    def test_accepts_generator(self, random_image):
        imgs = [random_image(2, 2) for _ in range(3)]
        assert hstack(img for img in imgs).width == 6

    def test_inputs_untouched(self, random_image):
        imgs = [random_image(2, 2), random_image(3, 2)]
        before = [img.copy() for img in imgs]
        hstack(imgs)
        assert imgs == before

    def test_empty(self):
        with pytest.raises(EmptyInputError, match="hstack: must supply one or more images"):
            hstack([])

    def test_inconsistent_height(self):
        with pytest.raises(InconsistentShapeError, match="hstack: inconsistent heights"):
            hstack([LinearImage(2, 2), LinearImage(2, 3)])

    def test_inconsistent_channels(self):
        with pytest.raises(InconsistentShapeError, match="hstack: inconsistent channels"):
            hstack([LinearImage(2, 2, 1), LinearImage(2, 2, 3)])

    def test_rejects_non_image(self):
        with pytest.raises(TypeError):
            hstack([LinearImage(1, 1), np.zeros((1, 1))])

    def test_error_carries_op(self):
        with pytest.raises(ImageOpsError) as excinfo:
            hstack([])
        assert excinfo.value.op == "hstack"


# ============================================================================
# VSTACK
# ============================================================================

class TestVstack:
    def test_shape_and_order(self):
        top = LinearImage.from_flat([1, 2, 3], width=3, height=1)
        bottom = LinearImage.from_flat([4, 5, 6, 7, 8, 9], width=3, height=2)
        out = vstack([top, bottom])
        assert out.shape == (3, 3, 1)
        np.testing.assert_array_equal(out.flat(), [1, 2, 3, 4, 5, 6, 7, 8, 9])

    def test_duality_with_hstack(self, random_image):
        imgs = [random_image(4, h, 3) for h in (1, 3, 2)]
        expected = transpose(hstack([transpose(img) for img in imgs]))
        assert vstack(imgs) == expected

    def test_matches_numpy_concatenate(self, random_image):
        imgs = [random_image(3, h, 2) for h in (2, 5)]
        out = vstack(imgs)
        np.testing.assert_array_equal(out.data, np.concatenate([i.data for i in imgs], axis=0))
        assert out.data.flags.c_contiguous

    def test_empty(self):
        with pytest.raises(EmptyInputError, match="vstack"):
            vstack([])

    def test_inconsistent_width(self):
        with pytest.raises(InconsistentShapeError, match="vstack: inconsistent widths"):
            vstack([LinearImage(2, 2), LinearImage(3, 2)])

    def test_inconsistent_channels(self):
        with pytest.raises(InconsistentShapeError, match="vstack: inconsistent channels"):
            vstack([LinearImage(2, 2, 3), LinearImage(2, 2, 1)])

    def test_atlas_size(self):
        row = hstack([LinearImage(100, 100, 3) for _ in range(4)])
        atlas = vstack([row, row, row, row])
        assert atlas.shape == (400, 400, 3)


# ============================================================================
# TRANSPOSE
# ============================================================================

class TestTranspose:
    @pytest.mark.parametrize("channels", [1, 2, 3, 4])
    def test_correctness(self, random_image, channels):
        img = random_image(5, 3, channels)
        out = transpose(img)
        assert out.shape == (3, 5, channels)
        for i in range(img.height):
            for j in range(img.width):
                np.testing.assert_array_equal(out.data[j, i], img.data[i, j])

    @pytest.mark.parametrize("size", [(1, 1), (1, 7), (7, 1), (4, 4), (6, 3)])
    def test_involution(self, random_image, size):
        img = random_image(*size, channels=3)
        assert transpose(transpose(img)) == img

    @pytest.mark.parametrize("size", [(1, 5), (5, 1), (3, 3)])
    def test_fresh_contiguous_allocation(self, random_image, size):
        img = random_image(*size)
        out = transpose(img)
        assert out.data.flags.c_contiguous
        assert not np.shares_memory(out.data, img.data)

    def test_square(self):
        img = LinearImage.from_flat(range(9), 3, 3)
        np.testing.assert_array_equal(transpose(img).flat(), [0, 3, 6, 1, 4, 7, 2, 5, 8])


# ============================================================================
# CROP
# ============================================================================

class TestCropRegion:
    def test_containment(self, random_image):
        img = random_image(6, 5, 3)
        left, top, right, bottom = 1, 2, 5, 4
        out = crop_region(img, left, top, right, bottom)
        assert out.shape == (4, 2, 3)
        for row in range(bottom - top):
            for col in range(right - left):
                np.testing.assert_array_equal(out.get_pixel(col, row), img.get_pixel(col + left, row + top))

    def test_full_extent(self, random_image):
        img = random_image(4, 3, 2)
        assert crop_region(img, 0, 0, 4, 3) == img

    def test_single_pixel(self):
        img = LinearImage.from_flat(range(6), 3, 2)
        out = crop_region(img, 2, 1, 3, 2)
        assert out.shape == (1, 1, 1)
        assert out.flat()[0] == 5

    def test_fresh_allocation(self, random_image):
        img = random_image(4, 4)
        out = crop_region(img, 1, 1, 3, 3)
        out.data[...] = -1.0
        assert (img.data >= 0).all()

    @pytest.mark.parametrize("bounds", [
        (0, 0, 5, 2),    # right past width
        (0, 0, 2, 4),    # bottom past height
        (-1, 0, 2, 2),   # negative left
        (0, -1, 2, 2),   # negative top
        (2, 0, 2, 2),    # empty width
        (0, 1, 2, 1),    # empty height
        (3, 0, 1, 2),    # inverted columns
    ])
    def test_out_of_range(self, bounds):
        img = LinearImage(4, 3)
        with pytest.raises(OutOfRangeError, match="crop_region"):
            crop_region(img, *bounds)


# ============================================================================
# CHANNELS
# ============================================================================

class TestCombineChannels:
    def test_interleaving(self, ascii_image):
        red = ascii_image("10")
        green = ascii_image("01")
        blue = ascii_image("00")
        color = combine_channels([red, green, blue])
        assert color.shape == (2, 1, 3)
        np.testing.assert_array_equal(color.flat(), [1, 0, 0, 0, 1, 0])

    def test_round_robin_order(self):
        planes = [LinearImage.from_flat([k, k + 10, k + 20, k + 30], 2, 2) for k in range(4)]
        out = combine_channels(planes)
        expected = [v for px in range(4) for v in (px * 10, px * 10 + 1, px * 10 + 2, px * 10 + 3)]
        np.testing.assert_array_equal(out.flat(), expected)

    def test_round_trip(self, random_image):
        img = random_image(5, 4, 3, lo=-1.0, hi=1.0)
        planes = split_channels(img)
        assert all(p.channels == 1 for p in planes)
        assert combine_channels(planes) == img

    def test_single_plane(self, random_image):
        plane = random_image(3, 3)
        assert combine_channels([plane]) == plane

    def test_empty(self):
        with pytest.raises(EmptyInputError, match="combine_channels: must supply one or more image planes"):
            combine_channels([])

    def test_multi_channel_plane(self):
        with pytest.raises(InvalidChannelCountError, match="single channel"):
            combine_channels([LinearImage(2, 2), LinearImage(2, 2, 3)])

    def test_inconsistent_width(self):
        with pytest.raises(InconsistentShapeError, match="widths"):
            combine_channels([LinearImage(2, 2), LinearImage(3, 2)])

    def test_inconsistent_height(self):
        with pytest.raises(InconsistentShapeError, match="heights"):
            combine_channels([LinearImage(2, 2), LinearImage(2, 3)])


class TestExtractChannel:
    def test_extract(self):
        img = LinearImage.from_flat(range(12), 2, 2, 3)
        np.testing.assert_array_equal(extract_channel(img, 1).flat(), [1, 4, 7, 10])

    @pytest.mark.parametrize("channel", [-1, 3])
    def test_out_of_range(self, channel):
        with pytest.raises(InvalidChannelCountError, match="extract_channel"):
            extract_channel(LinearImage(2, 2, 3), channel)


# ============================================================================
# ELEMENTWISE
# ============================================================================

class TestVectorsToColors:
    def test_exact_points(self):
        img = LinearImage.from_flat([-1, 0, 1, 1, 0, -1], 2, 1, 3)
        out = vectors_to_colors(img)
        np.testing.assert_array_equal(out.flat(), [0.0, 0.5, 1.0, 1.0, 0.5, 0.0])

    def test_range(self, random_image):
        out = vectors_to_colors(random_image(8, 8, 3, lo=-1.0, hi=1.0))
        assert out.data.min() >= 0.0
        assert out.data.max() <= 1.0
        assert out.data.dtype == np.float32

    def test_input_untouched(self, random_image):
        img = random_image(3, 3, 3, lo=-1.0, hi=1.0)
        before = img.copy()
        vectors_to_colors(img)
        assert img == before

    @pytest.mark.parametrize("channels", [1, 2, 4])
    def test_wrong_channels(self, channels):
        with pytest.raises(InvalidChannelCountError, match="vectors_to_colors: must be a 3-channel image"):
            vectors_to_colors(LinearImage(2, 2, channels))


class TestDiffImages:
    def test_normalized(self):
        a = LinearImage.from_flat([0, 0, 0, 0], 2, 2)
        b = LinearImage.from_flat([1, 2, 3, 5], 2, 2)
        out = diff_images(a, b)
        np.testing.assert_allclose(out.flat(), [0.0, 0.25, 0.5, 1.0])

    def test_identical_is_zero(self, random_image):
        img = random_image(3, 3, 3)
        assert not diff_images(img, img.copy()).data.any()

    def test_shape_mismatch(self):
        with pytest.raises(InconsistentShapeError, match="diff_images"):
            diff_images(LinearImage(2, 2), LinearImage(2, 2, 3))
