import numpy as np
import pytest

from zeki.layers.base import LayerType
from zeki.layers.batchnorm import BatchNorm


def _data(shape, seed=3):
    rng = np.random.default_rng(seed)
    return (rng.random(shape) * 4 + 2).astype(np.float32)


def test_initial_state():
    bn = BatchNorm(4, "bn")
    assert bn.kind is LayerType.BATCHNORM
    np.testing.assert_array_equal(bn.gamma, np.ones(4))
    np.testing.assert_array_equal(bn.beta, np.zeros(4))
    assert bn.training is True


@pytest.mark.parametrize("dim", [0, -3])
def test_nonpositive_dim_raises(dim):
    with pytest.raises(ValueError):
        BatchNorm(dim)


def test_training_output_is_normalised_per_channel():
    bn = BatchNorm(3)
    x = _data((5, 3, 4, 4))
    out = bn.forward(x)
    assert out.shape == x.shape
    np.testing.assert_allclose(out.mean(axis=(0, 2, 3)), np.zeros(3), atol=1e-5)
    np.testing.assert_allclose(out.var(axis=(0, 2, 3)), np.ones(3), atol=1e-3)


def test_running_statistics_update():
    bn = BatchNorm(2)
    x = _data((6, 2))
    bn.forward(x)
    np.testing.assert_allclose(bn.running_mean, 0.1 * x.mean(axis=0), rtol=1e-5)
    np.testing.assert_allclose(bn.running_var, 0.1 * x.var(axis=0), rtol=1e-4)


def test_gamma_and_beta_apply_in_training():
    bn = BatchNorm(2)
    bn.gamma[...] = [2.0, 3.0]
    bn.beta[...] = [1.0, -1.0]
    out = bn.forward(_data((8, 2, 3)))
    np.testing.assert_allclose(out.mean(axis=(0, 2)), bn.beta, atol=1e-5)
    np.testing.assert_allclose(out.std(axis=(0, 2)), bn.gamma, rtol=1e-3)


def test_inference_uses_running_statistics():
    bn = BatchNorm(2)
    bn.training = False
    bn.running_mean[...] = [1.0, 2.0]
    bn.running_var[...] = [4.0, 9.0]
    x = _data((3, 2))
    out = bn.forward(x)
    expected = (x - bn.running_mean) / np.sqrt(bn.running_var + bn.epsilon)
    np.testing.assert_allclose(out, expected, rtol=1e-5)
    np.testing.assert_array_equal(bn.running_mean, [1.0, 2.0])


def test_backward_updates_parameters_and_scales_gradient():
    bn = BatchNorm(3)
    x = _data((4, 3, 5))
    bn.forward(x)
    grad = np.ones_like(x)
    gi = bn.backward(grad)
    assert gi.shape == x.shape
    np.testing.assert_allclose(bn.beta, np.full(3, -0.01 * 4 * 5), rtol=1e-5)
    np.testing.assert_allclose(bn.gamma, np.ones(3), atol=1e-4)
    expected = np.broadcast_to((bn.gamma / bn.std_cache)[None, :, None], x.shape)
    np.testing.assert_allclose(gi, expected, rtol=1e-5)


def test_backward_gamma_step_follows_normalised_input():
    bn = BatchNorm(2)
    x = _data((6, 2))
    bn.forward(x)
    norm = bn.normalized_cache.copy()
    grad = norm.copy()
    bn.backward(grad)
    np.testing.assert_allclose(bn.gamma, 1.0 - 0.01 * (norm * norm).sum(axis=0), rtol=1e-5)


def test_backward_before_forward_raises():
    with pytest.raises(RuntimeError):
        BatchNorm(2).backward(np.ones((1, 2), dtype=np.float32))