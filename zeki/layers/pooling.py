"""Max and average pooling over 2-D feature maps."""

from __future__ import annotations

import enum

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from zeki.layers.base import Layer, LayerType


class PoolType(enum.IntEnum):
    """Pooling reductions."""

    MAX = 0
    AVG = 1


class Pool2D(Layer):
    """Pools ``(batch, channels, height, width)`` input with a square window."""

    def __init__(self, kind, kernel_size, stride, name=""):
        super().__init__(LayerType.ACTIVATION, name)
        self.pool = PoolType(kind)
        self.kernel_size = int(kernel_size)
        self.stride = int(stride)
        self.input_c = 0
        self.input_h = 0
        self.input_w = 0
        self.indices_cache: np.ndarray | None = None

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        if x.ndim != 4:
            raise ValueError("pooling expects (batch, channels, height, width) input")
        batch, channels, in_h, in_w = x.shape
        self.input_c, self.input_h, self.input_w = channels, in_h, in_w
        k, s = self.kernel_size, self.stride
        out_h = (in_h - k) // s + 1
        out_w = (in_w - k) // s + 1
        if out_h <= 0 or out_w <= 0:
            raise ValueError("pooling window does not fit the input")

        view = sliding_window_view(x, (k, k), axis=(2, 3))[:, :, ::s, ::s][:, :, :out_h, :out_w]
        windows = view.reshape(batch, channels, out_h, out_w, k * k)
        if self.pool is PoolType.MAX:
            self.indices_cache = windows.argmax(axis=-1)
            out = np.take_along_axis(windows, self.indices_cache[..., None], axis=-1)[..., 0]
        else:
            out = windows.sum(axis=-1) / np.float32(k * k)
        self.output = out.astype(np.float32)
        return self.output

    def backward(self, grad_output):
        if self.pool is PoolType.MAX and self.indices_cache is None:
            raise RuntimeError("backward called before forward")
        grad = np.asarray(grad_output, dtype=np.float32)
        batch = grad.shape[0]
        out_h, out_w = grad.shape[2], grad.shape[3]
        grad = grad.reshape(batch, self.input_c, out_h, out_w)
        k, s = self.kernel_size, self.stride
        grad_input = np.zeros((batch, self.input_c, self.input_h, self.input_w), dtype=np.float32)

        if self.pool is PoolType.MAX:
            b, c, oh, ow = np.indices(grad.shape)
            idx = self.indices_cache
            rows = oh * s + idx // k
            cols = ow * s + idx % k
            np.add.at(grad_input, (b, c, rows, cols), grad)
        else:
            share = grad / np.float32(k * k)
            for kh in range(k):
                for kw in range(k):
                    grad_input[
                        :, :, kh : kh + s * (out_h - 1) + 1 : s, kw : kw + s * (out_w - 1) + 1 : s
                    ] += share
        self.grad_input = grad_input
        return grad_input


def maxpool2d(kernel_size, stride, name=""):
    """Create a max-pooling layer."""
    return Pool2D(PoolType.MAX, kernel_size, stride, name)