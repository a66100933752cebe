"""Single-step GRU cell that carries its hidden state between calls."""

from __future__ import annotations

import math

import numpy as np

from zeki.layers.base import Layer, LayerType


def _sigmoid(x):
    with np.errstate(over="ignore"):
        return (np.float32(1.0) / (np.float32(1.0) + np.exp(-x))).astype(np.float32)


class GRUCell(Layer):
    """GRU cell with gate weights shaped ``(hidden_dim, input_dim + hidden_dim)``.

    The update and reset gates use the weight in column ``hidden_dim`` and
    their bias; the candidate state also sees the reset previous state
    through the first column of ``Uh``.
    """

    def __init__(self, input_dim, hidden_dim, name="", rng=None):
        super().__init__(LayerType.GRU, name)
        self.input_dim = int(input_dim)
        self.hidden_dim = int(hidden_dim)
        self.rng = rng if rng is not None else np.random.default_rng()

        h = self.hidden_dim
        total = self.input_dim + h
        scale = math.sqrt(2.0 / total)
        draws = ((self.rng.random((3, h, total)) - 0.5) * scale).astype(np.float32)
        self.Wz, self.Wr, self.Wh = (w.copy() for w in draws)
        scale = math.sqrt(2.0 / h)
        draws = ((self.rng.random((3, h, h)) - 0.5) * scale).astype(np.float32)
        self.Uz, self.Ur, self.Uh = (u.copy() for u in draws)
        self.bz, self.br, self.bh = (np.zeros(h, dtype=np.float32) for _ in range(3))
        self.weights = self.Wz
        self.biases = self.bz

        self.Wz_grad: np.ndarray | None = None
        self.Wr_grad: np.ndarray | None = None
        self.Wh_grad: np.ndarray | None = None
        self.Uz_grad: np.ndarray | None = None
        self.Ur_grad: np.ndarray | None = None
        self.Uh_grad: np.ndarray | None = None
        self.bz_grad: np.ndarray | None = None
        self.br_grad: np.ndarray | None = None
        self.bh_grad: np.ndarray | None = None

        self.h_prev: np.ndarray | None = None
        self.input_cache: np.ndarray | None = None
        self.z_cache: np.ndarray | None = None
        self.r_cache: np.ndarray | None = None
        self.h_hat_cache: np.ndarray | None = None

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        batch = x.shape[0]
        h = self.hidden_dim
        if self.h_prev is None:
            self.h_prev = np.zeros((batch, h), dtype=np.float32)
        self.input_cache = x.copy()

        z = np.broadcast_to(_sigmoid(self.Wz[:, h] + self.bz), (batch, h)).copy()
        r = np.broadcast_to(_sigmoid(self.Wr[:, h] + self.br), (batch, h)).copy()
        h_hat = np.tanh(self.Wh[:, h] + self.Uh[:, 0] * r * self.h_prev + self.bh).astype(np.float32)

        self.z_cache, self.r_cache, self.h_hat_cache = z, r, h_hat
        self.output = ((1 - z) * self.h_prev + z * h_hat).astype(np.float32)
        self.h_prev = self.output.copy()
        return self.output

    def backward(self, grad_output):
        if self.z_cache is None:
            raise RuntimeError("backward called before forward")
        dh = np.asarray(grad_output, dtype=np.float32)
        batch = dh.shape[0]
        h = self.hidden_dim
        total = self.input_dim + h
        dh = dh.reshape(batch, h)
        h_prev = self.h_prev
        z, r, h_hat = self.z_cache, self.r_cache, self.h_hat_cache

        dz = dh * (h_hat - h_prev) * z * (1 - z)
        dh_hat = dh * z * (1 - h_hat * h_hat)
        dr = dh_hat * self.Uh[:, 0] * h_prev * r * (1 - r)

        self.grad_input = np.zeros((batch, self.input_dim), dtype=np.float32)
        self.Wz_grad = np.zeros((h, total), dtype=np.float32)
        self.Wr_grad = np.zeros((h, total), dtype=np.float32)
        self.Wh_grad = np.zeros((h, total), dtype=np.float32)
        self.Uz_grad = np.zeros((h, h), dtype=np.float32)
        self.Ur_grad = np.zeros((h, h), dtype=np.float32)
        self.Uh_grad = np.zeros((h, h), dtype=np.float32)

        self.Wz_grad[:, h] = dz.sum(axis=0)
        self.Wr_grad[:, h] = dr.sum(axis=0)
        self.Wh_grad[:, h] = dh_hat.sum(axis=0)
        self.Uh_grad[:, 0] = (dh_hat * r * h_prev).sum(axis=0)
        self.bz_grad = dz.sum(axis=0).astype(np.float32)
        self.br_grad = dr.sum(axis=0).astype(np.float32)
        self.bh_grad = dh_hat.sum(axis=0).astype(np.float32)
        return self.grad_input