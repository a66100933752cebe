"""Inverted dropout layer."""

from __future__ import annotations

import numpy as np

from zeki.layers.base import Layer, LayerType


class Dropout(Layer):
    """Zeroes inputs with probability ``rate`` while training and rescales the rest."""

    def __init__(self, rate, name="", rng=None):
        super().__init__(LayerType.DROPOUT, name)
        self.rate = float(rate)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.mask: np.ndarray | None = None
        self.training = True

    def _scale(self):
        with np.errstate(divide="ignore"):
            return np.float32(1.0) / np.float32(1.0 - self.rate)

    def forward(self, x):
        x = np.array(x, dtype=np.float32)
        if self.training:
            self.mask = self.rng.random(x.shape) >= self.rate
            x = np.where(self.mask, x * self._scale(), np.float32(0.0)).astype(np.float32)
        self.output = x
        return x

    def backward(self, grad_output):
        grad = np.array(grad_output, dtype=np.float32)
        if self.training and self.mask is not None:
            grad = np.where(self.mask, grad * self._scale(), np.float32(0.0)).astype(np.float32)
        self.grad_input = grad
        return grad