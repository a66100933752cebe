"""Single-head self-attention layer."""

from __future__ import annotations

import math

import numpy as np

from zeki.layers.base import Layer, LayerType

_EPS = np.float32(1e-10)


class Attention(Layer):
    """Self-attention over ``(batch, seq_len, embed_dim)`` input.

    Queries, keys and values are linear maps of the input. The scaled
    dot-product scores of each row are divided by their sum (plus a small
    epsilon) rather than passed through a softmax.
    """

    def __init__(self, embed_dim, name="", rng=None):
        if int(embed_dim) <= 0:
            raise ValueError("embed_dim must be positive")
        super().__init__(LayerType.ATTENTION, name)
        self.embed_dim = int(embed_dim)
        self.rng = rng if rng is not None else np.random.default_rng()

        e = self.embed_dim
        scale = math.sqrt(2.0 / e)
        draws = ((self.rng.random((4, e, e)) - 0.5) * scale).astype(np.float32)
        self.Wq, self.Wk, self.Wv, self.Wo = (w.copy() for w in draws)
        self.weights = self.Wq

        self.input_cache: np.ndarray | None = None
        self.q_cache: np.ndarray | None = None
        self.k_cache: np.ndarray | None = None
        self.v_cache: np.ndarray | None = None
        self.attn_weights: np.ndarray | None = None
        self.seq_len = 0

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        if x.ndim != 3 or x.shape[2] != self.embed_dim:
            raise ValueError("attention expects (batch, seq_len, embed_dim) input")
        self.seq_len = x.shape[1]
        self.input_cache = x.copy()

        q = (x @ self.Wq.T).astype(np.float32)
        k = (x @ self.Wk.T).astype(np.float32)
        v = (x @ self.Wv.T).astype(np.float32)
        self.q_cache, self.k_cache, self.v_cache = q, k, v

        scores = (q @ k.transpose(0, 2, 1)) / np.float32(math.sqrt(self.embed_dim))
        totals = scores.sum(axis=2, keepdims=True) + _EPS
        self.attn_weights = (scores / totals).astype(np.float32)

        self.output = (self.attn_weights @ v).astype(np.float32)
        return self.output

    def backward(self, grad_output):
        if self.input_cache is None:
            raise RuntimeError("backward called before forward")
        self.grad_input = np.zeros_like(self.input_cache)
        return self.grad_input