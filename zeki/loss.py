"""Loss functions and their gradients."""

from __future__ import annotations

import enum

import numpy as np

_BCE_LOW = np.float32(0.0001)
_BCE_HIGH = np.float32(0.9999)
_CCE_LOW = np.float32(1e-10)
_CCE_HIGH = np.float32(1.0) - _CCE_LOW


class LossType(enum.IntEnum):
    """Loss functions a model can train against."""

    MSE = 0
    CROSSENTROPY = 1
    BINARY_CROSSENTROPY = 2
    HUBER = 3


def _pair(pred, target):
    p = np.asarray(pred, dtype=np.float32)
    t = np.asarray(target, dtype=np.float32).reshape(p.shape)
    return p, t


def mse_loss(pred, target):
    """Mean squared error over every element."""
    p, t = _pair(pred, target)
    diff = p - t
    return float(np.sum(diff * diff) / p.size)


def mse_loss_grad(pred, target):
    """Gradient of the mean squared error with respect to ``pred``."""
    p, t = _pair(pred, target)
    return (np.float32(2.0) * (p - t) / np.float32(p.size)).astype(np.float32)


def binary_crossentropy(pred, target):
    """Mean binary cross-entropy, with predictions clipped away from 0 and 1."""
    p, t = _pair(pred, target)
    q = np.clip(p, _BCE_LOW, _BCE_HIGH)
    terms = t * np.log(q) + (1 - t) * np.log(1 - q)
    return float(-np.sum(terms) / p.size)


def binary_crossentropy_grad(pred, target):
    """Gradient of the binary cross-entropy with respect to ``pred``."""
    p, t = _pair(pred, target)
    q = np.clip(p, _BCE_LOW, _BCE_HIGH)
    return ((q - t) / (q * (1 - q) * np.float32(p.size))).astype(np.float32)


def _rows(p, t):
    batch, classes = p.shape[0], p.shape[1]
    count = batch * classes
    return (
        p.reshape(-1)[:count].reshape(batch, classes),
        t.reshape(-1)[:count].reshape(batch, classes),
    )


def categorical_crossentropy(pred, target):
    """Categorical cross-entropy averaged over the batch (first axis)."""
    p, t = _pair(pred, target)
    rows, labels = _rows(p, t)
    q = np.clip(rows, _CCE_LOW, _CCE_HIGH)
    return float(-np.sum(labels * np.log(q)) / rows.shape[0])


def categorical_crossentropy_grad(pred, target):
    """Gradient of the categorical cross-entropy with respect to ``pred``."""
    p, t = _pair(pred, target)
    rows, labels = _rows(p, t)
    q = np.clip(rows, _CCE_LOW, _CCE_HIGH)
    grad = np.zeros_like(p)
    grad.reshape(-1)[: rows.size] = (-labels / q / np.float32(rows.shape[0])).reshape(-1)
    return grad


def huber_loss(pred, target, delta=1.0):
    """Mean Huber loss: quadratic within ``delta``, linear beyond it."""
    p, t = _pair(pred, target)
    diff = p - t
    size = np.abs(diff)
    delta = np.float32(delta)
    terms = np.where(size <= delta, 0.5 * diff * diff, delta * (size - 0.5 * delta))
    return float(np.sum(terms) / p.size)


def huber_loss_grad(pred, target, delta=1.0):
    """Gradient of the Huber loss with respect to ``pred``."""
    p, t = _pair(pred, target)
    diff = p - t
    delta = np.float32(delta)
    clipped = np.where(np.abs(diff) <= delta, diff, np.where(diff > 0, delta, -delta))
    return (clipped / np.float32(p.size)).astype(np.float32)


def _huber(pred, target):
    return huber_loss(pred, target, 1.0)


def _huber_grad(pred, target):
    return huber_loss_grad(pred, target, 1.0)


_LOSSES = {
    LossType.MSE: (mse_loss, mse_loss_grad),
    LossType.CROSSENTROPY: (categorical_crossentropy, categorical_crossentropy_grad),
    LossType.BINARY_CROSSENTROPY: (binary_crossentropy, binary_crossentropy_grad),
    LossType.HUBER: (_huber, _huber_grad),
}


def _lookup(kind):
    try:
        return _LOSSES[LossType(kind)]
    except ValueError:
        return _LOSSES[LossType.MSE]


def loss_compute(pred, target, kind):
    """Loss of the given kind; unknown kinds fall back to mean squared error."""
    return _lookup(kind)[0](pred, target)


def loss_gradient(pred, target, kind):
    """Gradient of the given loss kind; unknown kinds fall back to mean squared error."""
    return _lookup(kind)[1](pred, target)