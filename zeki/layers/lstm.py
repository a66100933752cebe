"""Single-step LSTM cell that carries its state between calls."""

from __future__ import annotations

import math

import numpy as np

from zeki.layers.base import Layer, LayerType


def _sigmoid(x):
    with np.errstate(over="ignore"):
        return (np.float32(1.0) / (np.float32(1.0) + np.exp(-x))).astype(np.float32)


class LSTMCell(Layer):
    """LSTM cell with gate weights shaped ``(hidden_dim, input_dim + hidden_dim)``.

    Each gate is driven by the weight in column ``hidden_dim`` and the gate
    bias; hidden and cell state persist from one forward call to the next.
    """

    def __init__(self, input_dim, hidden_dim, name="", rng=None):
        super().__init__(LayerType.LSTM, name)
        self.input_dim = int(input_dim)
        self.hidden_dim = int(hidden_dim)
        self.learning_rate = 0.01
        self.rng = rng if rng is not None else np.random.default_rng()

        total = self.input_dim + self.hidden_dim
        scale = math.sqrt(2.0 / total)
        draws = ((self.rng.random((4, self.hidden_dim, total)) - 0.5) * scale).astype(np.float32)
        self.Wf, self.Wi, self.Wc, self.Wo = (w.copy() for w in draws)
        self.bf, self.bi, self.bc, self.bo = (
            np.zeros(self.hidden_dim, dtype=np.float32) for _ in range(4)
        )
        self.weights = self.Wf
        self.biases = self.bf

        self.Wf_grad: np.ndarray | None = None
        self.Wi_grad: np.ndarray | None = None
        self.Wc_grad: np.ndarray | None = None
        self.Wo_grad: np.ndarray | None = None
        self.bf_grad: np.ndarray | None = None
        self.bi_grad: np.ndarray | None = None
        self.bc_grad: np.ndarray | None = None
        self.bo_grad: np.ndarray | None = None

        self.h_prev: np.ndarray | None = None
        self.c_prev: np.ndarray | None = None
        self.h_next: np.ndarray | None = None
        self.c_next: np.ndarray | None = None
        self.input_cache: np.ndarray | None = None
        self.f_cache: np.ndarray | None = None
        self.i_cache: np.ndarray | None = None
        self.c_hat_cache: np.ndarray | None = None
        self.o_cache: np.ndarray | None = None

    def _gate(self, weights, bias, squash, batch):
        value = squash(weights[:, self.hidden_dim] + bias).astype(np.float32)
        return np.broadcast_to(value, (batch, self.hidden_dim)).copy()

    def forward(self, x):
        x = np.asarray(x, dtype=np.float32)
        batch = x.shape[0]
        if self.h_prev is None:
            self.h_prev = np.zeros((batch, self.hidden_dim), dtype=np.float32)
            self.c_prev = np.zeros((batch, self.hidden_dim), dtype=np.float32)
        self.input_cache = x.reshape(batch, self.input_dim).copy()

        f = self._gate(self.Wf, self.bf, _sigmoid, batch)
        i = self._gate(self.Wi, self.bi, _sigmoid, batch)
        c_hat = self._gate(self.Wc, self.bc, np.tanh, batch)
        o = self._gate(self.Wo, self.bo, _sigmoid, batch)
        self.f_cache, self.i_cache, self.c_hat_cache, self.o_cache = f, i, c_hat, o

        c_next = (f * self.c_prev + i * c_hat).astype(np.float32)
        h_next = (o * np.tanh(c_next)).astype(np.float32)
        self.output = h_next.copy()

        self.h_next, self.c_next = self.h_prev, self.c_prev
        self.h_prev, self.c_prev = h_next, c_next
        return self.output

    def _weight_grad(self, dg, x, h_prev):
        grad = np.empty((self.hidden_dim, self.input_dim + self.hidden_dim), dtype=np.float32)
        grad[:, : self.input_dim] = dg.T @ x
        grad[:, self.input_dim :] = (dg * h_prev).sum(axis=0)[:, None]
        return grad

    def backward(self, grad_output):
        if self.input_cache is None or self.f_cache is None:
            raise RuntimeError("backward called before forward")
        dh = np.asarray(grad_output, dtype=np.float32)
        dh = dh.reshape(dh.shape[0], self.hidden_dim)
        h_prev, c_prev = self.h_prev, self.c_prev
        f, i, c_hat, o = self.f_cache, self.i_cache, self.c_hat_cache, self.o_cache

        tanh_c = np.tanh(self.c_next)
        dg_c = dh * o * (1 - tanh_c * tanh_c)
        dg_f = dg_c * c_prev * f * (1 - f)
        dg_i = dg_c * c_hat * i * (1 - i)
        dg_c_hat = dg_c * i * (1 - c_hat * c_hat)
        dg_o = dh * tanh_c * o * (1 - o)

        x = self.input_cache
        self.Wf_grad = self._weight_grad(dg_f, x, h_prev)
        self.Wi_grad = self._weight_grad(dg_i, x, h_prev)
        self.Wc_grad = self._weight_grad(dg_c_hat, x, h_prev)
        self.Wo_grad = self._weight_grad(dg_o, x, h_prev)
        self.bf_grad = dg_f.sum(axis=0).astype(np.float32)
        self.bi_grad = dg_i.sum(axis=0).astype(np.float32)
        self.bc_grad = dg_c_hat.sum(axis=0).astype(np.float32)
        self.bo_grad = dg_o.sum(axis=0).astype(np.float32)

        n = self.input_dim
        grad_input = (
            dg_f @ self.Wf[:, :n]
            + dg_i @ self.Wi[:, :n]
            + dg_c_hat @ self.Wc[:, :n]
            + dg_o @ self.Wo[:, :n]
        )
        self.grad_input = grad_input.astype(np.float32)
        return self.grad_input