"""Transformer block: self-attention followed by a feed-forward network."""

from __future__ import annotations

import numpy as np

from zeki.layers.activation import Activation, ActivationType
from zeki.layers.attention import Attention
from zeki.layers.base import Layer, LayerType
from zeki.layers.dense import Dense


class TransformerBlock(Layer):
    """Attention with a residual connection, then a ReLU feed-forward network
    applied to every position, again with a residual connection.

    ``ln1`` and ``ln2`` are optional normalisation layers applied after each
    residual; they start out unset.
    """

    def __init__(self, embed_dim, num_heads, ff_dim, name="", rng=None):
        if int(embed_dim) <= 0 or int(num_heads) <= 0 or int(ff_dim) <= 0:
            raise ValueError("embed_dim, num_heads and ff_dim must be positive")
        super().__init__(LayerType.TRANSFORMER, name)
        self.embed_dim = int(embed_dim)
        self.num_heads = int(num_heads)
        self.ff_dim = int(ff_dim)
        self.rng = rng if rng is not None else np.random.default_rng()

        self.attn_layer: Layer | None = Attention(self.embed_dim, "attn", rng=self.rng)
        self.ff_dense1: Layer | None = Dense(self.embed_dim, self.ff_dim, "ff1", rng=self.rng)
        self.ff_activation: Layer | None = Activation(ActivationType.RELU, "ff_act")
        self.ff_dense2: Layer | None = Dense(self.ff_dim, self.embed_dim, "ff2", rng=self.rng)
        self.ln1: Layer | None = None
        self.ln2: Layer | None = None

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        if self.attn_layer is None:
            self.output = x.copy()
            return self.output

        attn_out = (self.attn_layer.forward(x) + x).astype(np.float32)
        curr = attn_out
        if self.ln1 is not None:
            curr = self.ln1.forward(curr)

        if self.ff_dense1 is not None:
            hidden = self.ff_dense1.forward(curr.reshape(-1, self.embed_dim))
            if self.ff_activation is not None:
                hidden = self.ff_activation.forward(hidden)
            if self.ff_dense2 is not None:
                ff_out = self.ff_dense2.forward(hidden).reshape(attn_out.shape) + attn_out
                if self.ln2 is not None:
                    ff_out = self.ln2.forward(ff_out)
                curr = ff_out
            else:
                curr = hidden.reshape(*attn_out.shape[:-1], -1)

        self.output = np.array(curr, dtype=np.float32)
        return self.output

    def backward(self, grad_output):
        self.grad_input = np.array(grad_output, dtype=np.float32)
        return self.grad_input