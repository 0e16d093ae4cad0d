"""Tests for the normalization, polarity, threshold and binarization stages."""

from unittest.mock import patch

import cv2
import numpy as np
import pytest

from numcaptcha.errors import EncodingFailure, InvalidImage
from numcaptcha.preprocessing.binarize import apply_threshold, encode_png, invert
from numcaptcha.preprocessing.captcha_pipeline import (
    binarize_captcha,
    normalize_captcha,
    preprocess_captcha,
)
from numcaptcha.preprocessing.common import (
    TARGET_WIDTH,
    flatten_alpha,
    from_centered,
    sharpen,
    to_centered,
    to_grayscale,
)
from numcaptcha.preprocessing.polarity import (
    NEUTRAL_MEAN,
    numbers_are_lighter,
    roi_bounds,
    roi_mean,
)
from numcaptcha.preprocessing.threshold import (
    histogram,
    otsu_threshold,
    otsu_threshold_from_histogram,
)
from helpers import make_block_image


def _between_class_variance(hist, t):
    """Reference two-pass computation; None when one class is empty."""
    hist = np.asarray(hist, dtype=np.float64)
    levels = np.arange(256, dtype=np.float64)
    w_b = hist[: t + 1].sum()
    w_f = hist[t + 1 :].sum()
    if w_b == 0 or w_f == 0:
        return None
    m_b = (hist[: t + 1] * levels[: t + 1]).sum() / w_b
    m_f = (hist[t + 1 :] * levels[t + 1 :]).sum() / w_f
    return w_b * w_f * (m_b - m_f) ** 2


class TestNormalizer:
    def test_resizes_to_target_width(self):
        image = np.full((30, 90, 3), 200, dtype=np.uint8)
        gray = normalize_captcha(image)
        assert gray.shape == (60, TARGET_WIDTH)
        assert gray.dtype == np.uint8

    def test_height_rounds_to_nearest(self):
        # 121 * 180 / 360 = 60.5
        image = np.full((121, 360, 3), 90, dtype=np.uint8)
        assert normalize_captcha(image).shape == (61, TARGET_WIDTH)
        # 50 * 180 / 400 = 22.5 -> 23, 49 * 180 / 400 = 22.05 -> 22
        assert normalize_captcha(np.zeros((50, 400), np.uint8)).shape == (23, TARGET_WIDTH)
        assert normalize_captcha(np.zeros((49, 400), np.uint8)).shape == (22, TARGET_WIDTH)

    def test_output_is_single_channel(self):
        bgr = np.zeros((40, 120, 3), dtype=np.uint8)
        bgr[:, :, 2] = 255
        assert normalize_captcha(bgr).ndim == 2

    def test_uniform_image_stays_uniform(self):
        image = np.full((60, 180), 77, dtype=np.uint8)
        gray = normalize_captcha(image)
        assert set(np.unique(gray)) == {77}

    def test_zero_size_raises(self):
        with pytest.raises(InvalidImage):
            normalize_captcha(np.zeros((0, 10, 3), dtype=np.uint8))
        with pytest.raises(InvalidImage):
            normalize_captcha(np.zeros((10, 0), dtype=np.uint8))

    def test_flatten_alpha_onto_white(self):
        bgra = np.zeros((4, 4, 4), dtype=np.uint8)
        bgra[:2, :, 3] = 255  # top half opaque black, bottom half transparent
        flat = flatten_alpha(bgra)
        assert flat.shape == (4, 4, 3)
        assert (flat[:2] == 0).all()
        assert (flat[2:] == 255).all()

    def test_to_grayscale_handles_all_layouts(self):
        assert to_grayscale(np.zeros((5, 6), np.uint8)).shape == (5, 6)
        assert to_grayscale(np.zeros((5, 6, 1), np.uint8)).shape == (5, 6)
        assert to_grayscale(np.zeros((5, 6, 3), np.uint8)).shape == (5, 6)
        assert to_grayscale(np.zeros((5, 6, 4), np.uint8)).shape == (5, 6)

    def test_median_removes_isolated_speckle(self):
        image = np.full((60, 180), 200, dtype=np.uint8)
        image[30, 90] = 0
        gray = normalize_captcha(image)
        assert gray[30, 90] > 150

    def test_centered_roundtrip_is_exact(self):
        levels = np.arange(256, dtype=np.uint8).reshape(16, 16)
        assert np.array_equal(from_centered(to_centered(levels)), levels)

    def test_from_centered_ties_round_away_from_mid_gray(self):
        # 128.5 and 126.5 are both ties.
        values = np.array([1.0, -1.0, 0.3, -0.3, 200.0, -200.0], dtype=np.float32)
        assert from_centered(values).tolist() == [129, 126, 128, 127, 255, 0]

    def test_from_centered_is_odd(self):
        rng = np.random.default_rng(5)
        values = rng.uniform(-140, 140, size=1000).astype(np.float32)
        values[:10] = np.arange(1, 11, dtype=np.float32)
        assert np.array_equal(from_centered(-values), 255 - from_centered(values))

    @pytest.mark.parametrize("seed", range(5))
    def test_sharpen_commutes_with_inversion(self, seed):
        rng = np.random.default_rng(seed)
        gray = rng.integers(0, 256, size=(60, 180), dtype=np.uint8)
        sharpened = from_centered(sharpen(to_centered(gray)))
        inverted = from_centered(sharpen(to_centered(invert(gray))))
        assert np.array_equal(inverted, invert(sharpened))


class TestPolarityDetector:
    def test_roi_bounds_use_floor(self):
        assert roi_bounds(180, 60) == (45, 135, 15, 45)
        assert roi_bounds(10, 7) == (2, 7, 1, 5)

    def test_roi_mean_of_central_block(self, block_image):
        assert roi_mean(block_image) == 230.0

    def test_roi_mean_ignores_surround(self):
        gray = make_block_image(background=0, block=100)
        gray[0, :] = 255
        assert roi_mean(gray) == 100.0

    def test_lighter_digits_detected(self, block_image):
        assert numbers_are_lighter(block_image) is True

    def test_darker_digits_detected(self):
        gray = make_block_image(background=230, block=20)
        assert numbers_are_lighter(gray) is False

    def test_exact_midpoint_is_not_lighter(self):
        gray = np.full((40, 40), 128, dtype=np.uint8)
        assert numbers_are_lighter(gray) is False

    @pytest.mark.parametrize("shape", [(1, 50), (50, 1), (1, 1)])
    def test_empty_roi_returns_neutral_default(self, shape):
        gray = np.full(shape, 255, dtype=np.uint8)
        assert roi_mean(gray) == NEUTRAL_MEAN
        assert numbers_are_lighter(gray) is False

    def test_inversion_flips_decision(self, block_image):
        assert numbers_are_lighter(block_image) != numbers_are_lighter(invert(block_image))


class TestThresholdSelector:
    def test_histogram_sums_to_pixel_count(self, block_image):
        hist = histogram(block_image)
        assert len(hist) == 256
        assert sum(hist) == block_image.size
        assert hist[20] + hist[230] == block_image.size

    def test_uniform_image_gives_zero(self):
        assert otsu_threshold(np.full((10, 10), 200, dtype=np.uint8)) == 0

    def test_empty_histogram_gives_zero(self):
        assert otsu_threshold_from_histogram([0] * 256) == 0

    def test_two_populations(self, block_image):
        # Every t in [20, 229] yields the same split; the lowest wins.
        assert otsu_threshold(block_image) == 20
        assert otsu_threshold(invert(block_image)) == 25

    def test_tie_keeps_lowest(self):
        # Splits {10}|{14,18} and {10,14}|{18} have identical variance.
        hist = [0] * 256
        hist[10] = hist[14] = hist[18] = 1
        assert otsu_threshold_from_histogram(hist) == 10

    def test_separates_unequal_populations(self):
        gray = np.concatenate(
            [np.full(300, 40, np.uint8), np.full(100, 180, np.uint8), np.full(5, 120, np.uint8)]
        )
        t = otsu_threshold(gray)
        assert 40 <= t < 180

    @pytest.mark.parametrize("seed", range(25))
    def test_matches_brute_force_maximum(self, seed):
        rng = np.random.default_rng(seed)
        hist = [0] * 256
        for level in rng.integers(0, 256, size=rng.integers(2, 12)):
            hist[int(level)] += int(rng.integers(1, 500))

        chosen = otsu_threshold_from_histogram(hist)
        variances = [_between_class_variance(hist, t) for t in range(256)]
        valid = [v for v in variances if v is not None]
        if not valid:
            assert chosen == 0
            return

        best = max(valid)
        assert variances[chosen] is not None
        assert variances[chosen] >= best * (1 - 1e-9)


class TestBinarizer:
    def test_threshold_is_strictly_greater(self):
        gray = np.array([[99, 100, 101]], dtype=np.uint8)
        assert apply_threshold(gray, 100).tolist() == [[0, 0, 255]]

    def test_invert(self):
        gray = np.array([[0, 1, 128, 255]], dtype=np.uint8)
        assert invert(gray).tolist() == [[255, 254, 127, 0]]

    def test_output_is_strictly_binary(self):
        rng = np.random.default_rng(7)
        gray = rng.integers(0, 256, size=(60, 180), dtype=np.uint8)
        result = binarize_captcha(gray)
        assert set(np.unique(result.binary)) <= {0, 255}

    def test_png_is_lossless_single_channel(self):
        rng = np.random.default_rng(3)
        binary = (rng.integers(0, 2, size=(20, 30)) * 255).astype(np.uint8)
        decoded = cv2.imdecode(np.frombuffer(encode_png(binary), np.uint8), cv2.IMREAD_UNCHANGED)
        assert decoded.ndim == 2
        assert np.array_equal(decoded, binary)

    def test_encoder_failure(self):
        with patch(
            "numcaptcha.preprocessing.binarize.cv2.imencode",
            return_value=(False, None),
        ):
            with pytest.raises(EncodingFailure):
                encode_png(np.zeros((4, 4), np.uint8))


class TestCaptchaPipeline:
    def test_block_scenario_stages(self, block_image):
        assert numbers_are_lighter(block_image) is True

        result = binarize_captcha(block_image)
        assert result.numbers_are_lighter is True
        assert 20 <= result.threshold < 230
        assert (result.binary[15:45, 45:135] == 0).all()
        assert (result.binary[:15, :] == 255).all()
        assert (result.binary[:, :45] == 255).all()

    def test_block_scenario_end_to_end(self, block_image):
        result = preprocess_captcha(block_image)
        assert result.width == 180
        assert result.height == 60
        assert result.numbers_are_lighter is True
        assert (result.binary[20:40, 50:130] == 0).all()
        assert (result.binary[:10, :] == 255).all()
        assert (result.binary[50:, :] == 255).all()

    def test_dark_digits_are_not_inverted(self):
        gray = make_block_image(background=230, block=20)
        result = preprocess_captcha(gray)
        assert result.numbers_are_lighter is False
        assert (result.binary[20:40, 50:130] == 0).all()
        assert (result.binary[:10, :] == 255).all()

    def test_deterministic(self):
        rng = np.random.default_rng(11)
        image = rng.integers(0, 256, size=(45, 150, 3), dtype=np.uint8)
        first = preprocess_captcha(image)
        second = preprocess_captcha(image.copy())
        assert first.png == second.png
        assert np.array_equal(first.gray, second.gray)
        assert first.threshold == second.threshold

    @pytest.mark.parametrize("seed", range(10))
    def test_polarity_symmetry_on_normalized_image(self, seed):
        rng = np.random.default_rng(seed)
        gray = rng.integers(0, 120, size=(60, 180), dtype=np.uint8)
        gray[15:45, 45:135] = rng.integers(150, 256, size=(30, 90), dtype=np.uint8)

        original = binarize_captcha(gray)
        inverted = binarize_captcha(invert(gray))

        assert original.numbers_are_lighter is True
        assert inverted.numbers_are_lighter is False
        assert np.array_equal(original.binary, inverted.binary)
        assert original.png == inverted.png

    def test_polarity_symmetry_end_to_end(self, block_image):
        original = preprocess_captcha(block_image)
        inverted = preprocess_captcha(invert(block_image))
        assert original.numbers_are_lighter != inverted.numbers_are_lighter
        assert np.array_equal(original.binary, inverted.binary)

    @pytest.mark.parametrize("seed", range(20))
    @pytest.mark.parametrize("shape", [(50, 150), (50, 150, 3), (60, 180), (90, 400, 3)])
    def test_polarity_symmetry_on_raw_noisy_image(self, seed, shape):
        # Covers resize in both directions, colour conversion and the
        # 180 px passthrough.
        rng = np.random.default_rng(seed)
        h, w = shape[:2]
        image = rng.integers(0, 100, size=shape, dtype=np.uint8)
        block = image[h // 4 : 3 * h // 4, w // 4 : 3 * w // 4]
        block[...] = rng.integers(160, 256, size=block.shape, dtype=np.uint8)

        original = preprocess_captcha(image)
        inverted = preprocess_captcha(invert(image))

        assert original.numbers_are_lighter is True
        assert inverted.numbers_are_lighter is False
        assert np.array_equal(invert(original.gray), inverted.gray)
        assert original.threshold == inverted.threshold
        assert np.array_equal(original.binary, inverted.binary)

    def test_binary_matches_normalized_size(self):
        image = np.zeros((33, 97, 3), dtype=np.uint8)
        result = preprocess_captcha(image)
        assert result.binary.shape == result.gray.shape == (61, 180)

    def test_to_dict(self, block_image):
        d = preprocess_captcha(block_image).to_dict()
        assert d["width"] == 180
        assert d["height"] == 60
        assert d["numbers_are_lighter"] is True
        assert isinstance(d["threshold"], int)
        assert d["png_bytes"] > 0
