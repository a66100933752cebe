"""Element-wise activation layers and row-wise softmax."""

from __future__ import annotations

import enum

import numpy as np

from zeki.layers.base import Layer, LayerType

_FLOOR = np.float32(1e-10)
_CEIL = np.float32(1.0) - _FLOOR


class ActivationType(enum.IntEnum):
    """Activation functions."""

    RELU = 0
    SIGMOID = 1
    TANH = 2
    SOFTMAX = 3


def _rows(arr):
    """View of the leading ``shape[0] * shape[1]`` elements as a 2-D block."""
    batch, dim = arr.shape[0], arr.shape[1]
    return arr.reshape(-1)[: batch * dim].reshape(batch, dim)


class Activation(Layer):
    """Applies an activation function; softmax works along the second axis."""

    def __init__(self, kind, name=""):
        super().__init__(LayerType.ACTIVATION, name)
        self.activation = ActivationType(kind)
        self.input_cache: np.ndarray | None = None

    def forward(self, x):
        x = np.array(x, dtype=np.float32)
        self.input_cache = x.copy()
        if self.activation is ActivationType.SOFTMAX:
            out = x.copy()
            rows = _rows(out)
            exp = np.exp(rows - rows.max(axis=1, keepdims=True))
            total = np.maximum(exp.sum(axis=1, keepdims=True), _FLOOR)
            rows[...] = np.clip(exp / total, _FLOOR, _CEIL)
        elif self.activation is ActivationType.RELU:
            out = np.maximum(x, np.float32(0.0))
        elif self.activation is ActivationType.SIGMOID:
            out = (np.float32(1.0) / (np.float32(1.0) + np.exp(-x))).astype(np.float32)
        else:
            out = np.tanh(x)
        self.output = out
        return out

    def backward(self, grad_output):
        if self.output is None:
            raise RuntimeError("backward called before forward")
        grad = np.array(grad_output, dtype=np.float32)
        y = self.output
        if self.activation is ActivationType.SOFTMAX:
            s = _rows(y)
            g = _rows(grad).copy()
            _rows(grad)[...] = s * (g - (g * s).sum(axis=1, keepdims=True))
        elif self.activation is ActivationType.RELU:
            grad = grad * (self.input_cache > 0)
        elif self.activation is ActivationType.SIGMOID:
            grad = grad * y * (1 - y)
        else:
            grad = grad * (1 - y * y)
        self.grad_input = grad.astype(np.float32)
        return self.grad_input