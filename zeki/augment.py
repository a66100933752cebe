"""Image augmentation for ``(channels, height, width)`` arrays."""

from __future__ import annotations

import math

import numpy as np


def _image(img):
    img = np.asarray(img, dtype=np.float32)
    if img.ndim != 3:
        raise ValueError("expected a (channels, height, width) image")
    return img


def rotate(img, angle_deg):
    """Rotate about the image centre with bilinear sampling; outside pixels read as 0."""
    img = _image(img)
    c, h, w = img.shape
    angle = np.float32(angle_deg * math.pi / 180.0)
    cos_a, sin_a = np.cos(angle), np.sin(angle)
    cx, cy = np.float32(w / 2.0), np.float32(h / 2.0)

    ys, xs = np.meshgrid(np.arange(h, dtype=np.float32), np.arange(w, dtype=np.float32), indexing="ij")
    nx = cos_a * (xs - cx) - sin_a * (ys - cy) + cx
    ny = sin_a * (xs - cx) + cos_a * (ys - cy) + cy
    x0 = np.floor(nx).astype(np.int64)
    y0 = np.floor(ny).astype(np.int64)
    dx = (nx - x0).astype(np.float32)
    dy = (ny - y0).astype(np.float32)

    result = np.zeros_like(img)
    corners = (
        (x0, y0, (1 - dx) * (1 - dy)),
        (x0 + 1, y0, dx * (1 - dy)),
        (x0, y0 + 1, (1 - dx) * dy),
        (x0 + 1, y0 + 1, dx * dy),
    )
    for cx_idx, cy_idx, weight in corners:
        inside = (cx_idx >= 0) & (cx_idx < w) & (cy_idx >= 0) & (cy_idx < h)
        sample = img[:, np.clip(cy_idx, 0, h - 1), np.clip(cx_idx, 0, w - 1)]
        result += np.where(inside, weight, np.float32(0.0)) * sample
    return result.astype(np.float32)


def flip(img, horizontal):
    """Mirror left-right when ``horizontal`` is true, otherwise top-bottom."""
    img = _image(img)
    return (img[:, :, ::-1] if horizontal else img[:, ::-1, :]).copy()


def brightness(img, factor):
    """Scale every value by ``factor`` and clip to [0, 1]."""
    img = _image(img)
    return np.clip(img * np.float32(factor), 0.0, 1.0).astype(np.float32)


def crop(img, scale):
    """Take a centred crop of ``scale`` times the size, placed at the top-left of a zero image."""
    img = _image(img)
    if scale > 1:
        raise ValueError("crop scale must not exceed 1")
    c, h, w = img.shape
    new_h = max(int(h * scale), 0)
    new_w = max(int(w * scale), 0)
    start_y = int((h - new_h) / 2)
    start_x = int((w - new_w) / 2)
    result = np.zeros_like(img)
    result[:, :new_h, :new_w] = img[:, start_y : start_y + new_h, start_x : start_x + new_w]
    return result


def noise(img, noise_level, rng=None):
    """Add uniform noise in ``[-noise_level / 2, noise_level / 2]`` and clip to [0, 1]."""
    img = _image(img)
    rng = rng if rng is not None else np.random.default_rng()
    level = np.float32(noise_level)
    jitter = (rng.random(img.shape) * level - level / 2).astype(np.float32)
    return np.clip(img + jitter, 0.0, 1.0).astype(np.float32)