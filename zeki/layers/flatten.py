"""Layer that flattens everything after the batch axis."""

from __future__ import annotations

import numpy as np

from zeki.layers.base import Layer, LayerType


class Flatten(Layer):
    """Reshapes ``(batch, ...)`` input to ``(batch, features)`` and back."""

    def __init__(self, name=""):
        super().__init__(LayerType.FLATTEN, name)
        self.original_shape: tuple[int, ...] | None = None

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        self.original_shape = x.shape
        self.output = x.reshape(x.shape[0], -1).copy()
        return self.output

    def backward(self, grad_output):
        if self.original_shape is None:
            raise RuntimeError("backward called before forward")
        grad = np.asarray(grad_output, dtype=np.float32)
        self.grad_input = grad.reshape(self.original_shape).copy()
        return self.grad_input