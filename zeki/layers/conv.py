"""Two-dimensional convolution layer."""

from __future__ import annotations

import math

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from zeki.layers.base import Layer, LayerType


class Conv2D(Layer):
    """Convolution over ``(batch, channels, height, width)`` input.

    Kernels are shaped ``(out_channels, in_channels, k, k)``. Input that is
    not four-dimensional is reshaped with the configured ``input_h`` and
    ``input_w``.
    """

    def __init__(self, in_channels, out_channels, kernel_size, stride=1, padding=0, name="", rng=None):
        super().__init__(LayerType.CONV2D, name)
        self.in_channels = int(in_channels)
        self.out_channels = int(out_channels)
        self.kernel_size = int(kernel_size)
        self.stride = int(stride)
        self.padding = int(padding)
        self.input_h = 0
        self.input_w = 0
        self.rng = rng if rng is not None else np.random.default_rng()
        self.input_cache: np.ndarray | None = None
        self.kernel_grad: np.ndarray | None = None
        self.bias_grad: np.ndarray | None = None

        k = self.kernel_size
        scale = math.sqrt(2.0 / (self.in_channels * k * k))
        draws = self.rng.random((self.out_channels, self.in_channels, k, k))
        self.weights = ((draws - 0.5) * scale).astype(np.float32)
        self.biases = np.zeros(self.out_channels, dtype=np.float32)

    def _shape_input(self, x):
        x = np.asarray(x, dtype=np.float32)
        if x.ndim == 4:
            self.input_h, self.input_w = x.shape[2], x.shape[3]
        elif not (self.input_h and self.input_w):
            raise ValueError("input_h and input_w must be set for input that is not 4-D")
        return x.reshape(x.shape[0], self.in_channels, self.input_h, self.input_w)

    def _padded(self, x):
        p = self.padding
        return np.pad(x, ((0, 0), (0, 0), (p, p), (p, p)))

    def _windows(self, padded, out_h, out_w):
        k, s = self.kernel_size, self.stride
        view = sliding_window_view(padded, (k, k), axis=(2, 3))
        return view[:, :, ::s, ::s][:, :, :out_h, :out_w]

    def forward(self, x):
        x = self._shape_input(x)
        k, s, p = self.kernel_size, self.stride, self.padding
        out_h = (self.input_h + 2 * p - k) // s + 1
        out_w = (self.input_w + 2 * p - k) // s + 1
        if out_h <= 0 or out_w <= 0:
            raise ValueError("kernel does not fit the padded input")
        self.input_cache = x.copy()
        windows = self._windows(self._padded(x), out_h, out_w)
        out = np.einsum("bchwij,ocij->bohw", windows, self.weights, optimize=True)
        out = out + self.biases[None, :, None, None]
        self.output = out.astype(np.float32)
        return self.output

    def backward(self, grad_output):
        if self.input_cache is None:
            raise RuntimeError("backward called before forward")
        grad = np.asarray(grad_output, dtype=np.float32)
        batch = grad.shape[0]
        out_h, out_w = grad.shape[2], grad.shape[3]
        grad = grad.reshape(batch, self.out_channels, out_h, out_w)
        k, s, p = self.kernel_size, self.stride, self.padding

        windows = self._windows(self._padded(self.input_cache), out_h, out_w)
        self.kernel_grad = np.einsum("bohw,bchwij->ocij", grad, windows, optimize=True).astype(np.float32)
        self.bias_grad = grad.sum(axis=(0, 2, 3)).astype(np.float32)

        padded_grad = np.zeros(
            (batch, self.in_channels, self.input_h + 2 * p, self.input_w + 2 * p), dtype=np.float32
        )
        for kh in range(k):
            for kw in range(k):
                contrib = np.einsum("bohw,oc->bchw", grad, self.weights[:, :, kh, kw], optimize=True)
                padded_grad[
                    :, :, kh : kh + s * (out_h - 1) + 1 : s, kw : kw + s * (out_w - 1) + 1 : s
                ] += contrib
        self.grad_input = padded_grad[:, :, p : p + self.input_h, p : p + self.input_w].copy()
        return self.grad_input