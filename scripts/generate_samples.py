#!/usr/bin/env python3
"""
Generate synthetic numeric captcha samples.

Each sample is a short digit string drawn with OpenCV's Hershey fonts on a
noisy background, in both polarities (dark digits on light background and
light digits on dark background), so the preprocessing pipeline can be
tried by hand.

The Hershey strokes are thin and cover well under half of the central ROI,
so the ROI mean follows the background rather than the digits. The
`dark_on_light` samples are therefore reported as `numbers_are_lighter:
true` and the `light_on_dark` ones as false. This is the thin-stroke failure
mode of the ROI heuristic: both polarities are still binarized the same way,
but with light digits on a dark background.

Usage:
    python scripts/generate_samples.py
    numcaptcha samples/light_on_dark_0_4821.png --preprocess-only -v
"""

import argparse
from pathlib import Path

import cv2
import numpy as np

SAMPLES_DIR = Path(__file__).parent.parent / "samples"

CANVAS_WIDTH = 240
CANVAS_HEIGHT = 80


def render_captcha(
    digits: str,
    foreground: int,
    background: int,
    rng: np.random.Generator,
    noise: float = 12.0,
) -> np.ndarray:
    """Draw `digits` centered on a BGR canvas with speckle noise and a strike line."""
    canvas = np.full((CANVAS_HEIGHT, CANVAS_WIDTH), background, dtype=np.float32)
    canvas += rng.normal(0.0, noise, canvas.shape)

    font = cv2.FONT_HERSHEY_SIMPLEX
    scale, thickness = 1.6, 3
    (tw, th), _ = cv2.getTextSize(digits, font, scale, thickness)
    origin = ((CANVAS_WIDTH - tw) // 2, (CANVAS_HEIGHT + th) // 2)

    layer = np.clip(canvas, 0, 255).astype(np.uint8)
    cv2.putText(layer, digits, origin, font, scale, int(foreground), thickness, cv2.LINE_AA)

    # Thin distractor line across the text
    y0, y1 = rng.integers(10, CANVAS_HEIGHT - 10, size=2)
    cv2.line(layer, (0, int(y0)), (CANVAS_WIDTH - 1, int(y1)), int(foreground), 1, cv2.LINE_AA)

    return cv2.cvtColor(layer, cv2.COLOR_GRAY2BGR)


def generate_samples(count: int, length: int, seed: int) -> dict[str, np.ndarray]:
    """Generate `count` samples per polarity. Keys are file stems."""
    rng = np.random.default_rng(seed)
    samples = {}
    for i in range(count):
        digits = "".join(str(d) for d in rng.integers(0, 10, size=length))
        samples[f"dark_on_light_{i}_{digits}"] = render_captcha(digits, 40, 215, rng)
        samples[f"light_on_dark_{i}_{digits}"] = render_captcha(digits, 225, 35, rng)
    return samples


def save_samples(output_dir: Path | None = None, count: int = 5, length: int = 4, seed: int = 0):
    """Generate and save samples to disk."""
    if output_dir is None:
        output_dir = SAMPLES_DIR

    output_dir.mkdir(parents=True, exist_ok=True)

    samples = generate_samples(count, length, seed)
    for name, image in samples.items():
        filepath = output_dir / f"{name}.png"
        cv2.imwrite(str(filepath), image)
        print(f"Saved: {filepath}")

    print(f"\nGenerated {len(samples)} samples in {output_dir}")
    return samples


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument("--count", type=int, default=5)
    parser.add_argument("--length", type=int, default=4)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()
    save_samples(args.output_dir, args.count, args.length, args.seed)
