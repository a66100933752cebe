"""Batch normalisation over the channel axis."""

from __future__ import annotations

import numpy as np

from zeki.layers.base import Layer, LayerType

_STEP = np.float32(0.01)


class BatchNorm(Layer):
    """Normalises axis 1 of ``(batch, dim, ...)`` input.

    While training, batch statistics are used and folded into running
    averages; otherwise the running averages are used. The backward pass
    applies a fixed-step update to ``gamma`` and ``beta``.
    """

    def __init__(self, dim, name=""):
        if int(dim) <= 0:
            raise ValueError("dim must be positive")
        super().__init__(LayerType.BATCHNORM, name)
        self.dim = int(dim)
        self.momentum = np.float32(0.9)
        self.epsilon = np.float32(1e-5)
        self.gamma = np.ones(self.dim, dtype=np.float32)
        self.beta = np.zeros(self.dim, dtype=np.float32)
        self.running_mean = np.zeros(self.dim, dtype=np.float32)
        self.running_var = np.zeros(self.dim, dtype=np.float32)
        self.input_cache: np.ndarray | None = None
        self.normalized_cache: np.ndarray | None = None
        self.std_cache: np.ndarray | None = None
        self.training = True

    def _blocks(self, arr):
        return arr.reshape(arr.shape[0], self.dim, -1)

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        self.input_cache = x.copy()
        blocks = self._blocks(x)
        if self.training:
            mean = blocks.mean(axis=(0, 2), dtype=np.float32)
            var = ((blocks - mean[None, :, None]) ** 2).mean(axis=(0, 2), dtype=np.float32)
            keep = self.momentum
            self.running_mean = (keep * self.running_mean + (1 - keep) * mean).astype(np.float32)
            self.running_var = (keep * self.running_var + (1 - keep) * var).astype(np.float32)
        else:
            mean, var = self.running_mean, self.running_var
        self.std_cache = np.sqrt(var + self.epsilon).astype(np.float32)
        norm = (blocks - mean[None, :, None]) / self.std_cache[None, :, None]
        self.normalized_cache = norm.reshape(x.shape).astype(np.float32)
        out = self.gamma[None, :, None] * norm + self.beta[None, :, None]
        self.output = out.reshape(x.shape).astype(np.float32)
        return self.output

    def backward(self, grad_output):
        if self.normalized_cache is None:
            raise RuntimeError("backward called before forward")
        grad = np.asarray(grad_output, dtype=np.float32)
        blocks = self._blocks(grad)
        norm = self._blocks(self.normalized_cache)
        dgamma = (blocks * norm).sum(axis=(0, 2))
        dbeta = blocks.sum(axis=(0, 2))
        self.gamma = (self.gamma - _STEP * dgamma).astype(np.float32)
        self.beta = (self.beta - _STEP * dbeta).astype(np.float32)
        scaled = blocks * (self.gamma / self.std_cache)[None, :, None]
        self.grad_input = scaled.reshape(grad.shape).astype(np.float32)
        return self.grad_input