"""Fully connected layer."""

from __future__ import annotations

import math

import numpy as np

from zeki.layers.base import Layer, LayerType


class Dense(Layer):
    """Affine map ``x @ W.T + b`` with weights shaped ``(output_dim, input_dim)``."""

    def __init__(self, input_dim, output_dim, name="", rng=None):
        super().__init__(LayerType.DENSE, name)
        self.input_dim = int(input_dim)
        self.output_dim = int(output_dim)
        self.learning_rate = 0.01
        self.rng = rng if rng is not None else np.random.default_rng()
        self.input_cache: np.ndarray | None = None
        self.weight_grad: np.ndarray | None = None
        self.bias_grad: np.ndarray | None = None
        self.weights = np.zeros((self.output_dim, self.input_dim), dtype=np.float32)
        self.biases = np.zeros(self.output_dim, dtype=np.float32)
        self.init_weights()

    def init_weights(self):
        """Draw weights uniformly from a He-scaled range and zero the biases."""
        scale = math.sqrt(2.0 / self.input_dim)
        draws = self.rng.random(self.weights.shape)
        self.weights = ((draws - 0.5) * scale).astype(np.float32)
        self.biases = np.zeros(self.output_dim, dtype=np.float32)

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        if self.weights is None or self.biases is None:
            self.output = x.copy()
            return self.output
        batch = x.shape[0]
        flat = x.reshape(batch, self.input_dim)
        self.input_cache = flat.copy()
        self.output = (flat @ self.weights.T + self.biases).astype(np.float32)
        return self.output

    def backward(self, grad_output):
        if self.input_cache is None:
            raise RuntimeError("backward called before forward")
        grad = np.asarray(grad_output, dtype=np.float32)
        grad = grad.reshape(grad.shape[0], self.output_dim)
        self.grad_input = (grad @ self.weights).astype(np.float32)
        self.weight_grad = (grad.T @ self.input_cache).astype(np.float32)
        self.bias_grad = grad.sum(axis=0).astype(np.float32)
        return self.grad_input