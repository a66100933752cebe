import math

import numpy as np
import pytest

from zeki.layers.base import LayerType
from zeki.layers.dense import Dense


def _numeric_grad(loss, arr, eps=1e-2):
    grad = np.zeros(arr.shape, dtype=np.float64)
    for idx in np.ndindex(arr.shape):
        old = arr[idx]
        arr[idx] = old + eps
        up = loss()
        arr[idx] = old - eps
        down = loss()
        arr[idx] = old
        grad[idx] = (up - down) / (2 * eps)
    return grad


def _layer(seed=0):
    return Dense(4, 3, "d", rng=np.random.default_rng(seed))


def test_shapes_and_initial_ranges():
    layer = _layer()
    assert layer.kind is LayerType.DENSE
    assert layer.weights.shape == (3, 4)
    assert layer.biases.shape == (3,)
    assert np.all(layer.biases == 0)
    assert np.all(np.abs(layer.weights) <= 0.5 * math.sqrt(2.0 / 4))


def test_same_seed_gives_same_weights():
    np.testing.assert_array_equal(_layer(7).weights, _layer(7).weights)


def test_init_weights_resets_biases():
    layer = _layer()
    layer.biases[:] = 5.0
    layer.init_weights()
    out = layer.forward(np.zeros((1, 4), dtype=np.float32))
    np.testing.assert_array_equal(out, np.zeros((1, 3), dtype=np.float32))


def test_identity_weights_add_bias():
    layer = Dense(3, 3, "id", rng=np.random.default_rng(1))
    layer.weights = np.eye(3, dtype=np.float32)
    layer.biases = np.array([1.0, 2.0, 3.0], dtype=np.float32)
    x = np.array([[0.5, -0.5, 2.0]], dtype=np.float32)
    np.testing.assert_allclose(layer.forward(x), x + layer.biases)


def test_batch_rows_are_independent():
    layer = _layer()
    x = np.random.default_rng(3).random((2, 4)).astype(np.float32)
    both = layer.forward(x).copy()
    np.testing.assert_allclose(layer.forward(x[:1]), both[:1], rtol=1e-6)
    np.testing.assert_allclose(layer.forward(x[1:]), both[1:], rtol=1e-6)


def test_missing_weights_pass_input_through():
    layer = _layer()
    layer.weights = None
    x = np.array([[1.0, 2.0]], dtype=np.float32)
    out = layer.forward(x)
    np.testing.assert_array_equal(out, x)
    assert out is not x


def test_gradients_match_numeric():
    layer = _layer()
    x = np.random.default_rng(4).random((2, 4)).astype(np.float32)
    g = np.random.default_rng(5).random((2, 3)).astype(np.float32)
    layer.forward(x)
    grad_x = layer.backward(g).copy()
    grad_w = layer.weight_grad.copy()
    grad_b = layer.bias_grad.copy()

    def loss():
        return float(np.sum(g * layer.forward(x)))

    np.testing.assert_allclose(grad_x, _numeric_grad(loss, x), atol=1e-3)
    np.testing.assert_allclose(grad_w, _numeric_grad(loss, layer.weights), atol=1e-3)
    np.testing.assert_allclose(grad_b, _numeric_grad(loss, layer.biases), atol=1e-3)


def test_backward_before_forward_raises():
    with pytest.raises(RuntimeError):
        _layer().backward(np.ones((1, 3)))