import math

import numpy as np
import pytest

from csrkit.layers import L2NormLayer, SigmoidLossLayer, SoftmaxLossLayer


def test_l2norm_rows_have_unit_length():
    feats = np.array([[3.0, 4.0], [1.0, -2.0], [0.5, 0.0]])
    out = L2NormLayer().forward(feats)
    assert np.allclose(np.linalg.norm(out, axis=1), 1.0)
    assert np.allclose(out[0] * 5.0, feats[0])


def test_l2norm_zero_row_stays_zero():
    out = L2NormLayer().forward(np.zeros((2, 3)))
    assert np.all(out == 0)


def test_l2norm_gradient_is_orthogonal_to_input():
    rng = np.random.default_rng(1)
    x = rng.normal(size=(4, 5))
    g = rng.normal(size=(4, 5))
    grad = L2NormLayer().backward(x, g)
    assert np.allclose(np.sum(grad * x, axis=1), 0.0)


def test_l2norm_gradient_matches_finite_difference():
    layer = L2NormLayer()
    rng = np.random.default_rng(2)
    x = rng.normal(size=(1, 3))
    g = rng.normal(size=(1, 3))
    grad = layer.backward(x, g)
    h = 1e-6
    for j in range(3):
        xp, xm = x.copy(), x.copy()
        xp[0, j] += h
        xm[0, j] -= h
        numeric = (np.sum(layer.forward(xp) * g) - np.sum(layer.forward(xm) * g)) / (2 * h)
        assert grad[0, j] == pytest.approx(numeric, rel=1e-4, abs=1e-6)


def test_l2norm_backward_shape_mismatch():
    with pytest.raises(ValueError):
        L2NormLayer().backward(np.ones((2, 2)), np.ones((2, 3)))


def test_sigmoid_forward_at_zero():
    layer = SigmoidLossLayer(3, [1, 0, 1, 0, 0, 0])
    out = layer.forward(np.zeros((2, 3)), 0, 2)
    assert np.allclose(out, 0.5)
    assert layer.prediction_loss(0, 2, 2) == pytest.approx(3 * math.log(2))


def test_sigmoid_loss_drops_towards_labels():
    labels = [1, 0]
    worse = SigmoidLossLayer(2, labels)
    better = SigmoidLossLayer(2, labels)
    worse.forward(np.array([[-1.0, 1.0]]), 0, 1)
    better.forward(np.array([[2.0, -2.0]]), 0, 1)
    assert better.prediction_loss(0, 1, 1) < worse.prediction_loss(0, 1, 1)
    assert better.prediction_loss(0, 1, 1) > 0


def test_sigmoid_backward_relates_prediction_and_label():
    labels = np.array([[1, 0], [0, 1], [1, 1]])
    layer = SigmoidLossLayer(2, labels)
    out = layer.forward(np.array([[0.3, -0.7], [1.2, 0.1], [-2.0, 0.5]]), 0, 3)
    grad = layer.backward(0, 3)
    assert np.allclose(grad * 3 + labels, out)


def test_sigmoid_masked_rows_untouched():
    layer = SigmoidLossLayer(2, [1, 0, 0, 1, 1, 1])
    masks = [1, 0, 1]
    out = layer.forward(np.ones((3, 2)), 0, 3, masks)
    assert np.all(out[1] == 0)
    assert np.all(layer.backward(0, 3, masks)[1] == 0)
    assert layer.prediction_loss(0, 3, 2, masks) > 0


def test_sigmoid_count_mismatch_raises():
    layer = SigmoidLossLayer(2, [1, 0, 0, 1])
    layer.forward(np.zeros((2, 2)), 0, 2)
    with pytest.raises(ValueError):
        layer.prediction_loss(0, 2, 3)


def test_sigmoid_bad_label_count():
    with pytest.raises(ValueError):
        SigmoidLossLayer(3, [1, 0, 1, 0])


def test_softmax_rows_sum_to_one_and_loss_is_cross_entropy():
    layer = SoftmaxLossLayer(3, [0, 2])
    out = layer.forward(np.array([[1.0, 2.0, 3.0], [0.5, -1.0, 0.0]]), 0, 2)
    assert np.allclose(out.sum(axis=1), 1.0)
    expected = (-math.log(out[0, 0]) - math.log(out[1, 2])) / 2
    assert layer.prediction_loss(0, 2, 2) == pytest.approx(expected)


def test_softmax_uniform_logits():
    layer = SoftmaxLossLayer(4, [1])
    layer.forward(np.zeros((1, 4)), 0, 1)
    assert layer.prediction_loss(0, 1, 1) == pytest.approx(math.log(4))


def test_softmax_gradient_rows_sum_to_zero():
    layer = SoftmaxLossLayer(3, [0, 1, 2])
    layer.forward(np.random.default_rng(0).normal(size=(3, 3)), 0, 3)
    grad = layer.backward(0, 3)
    assert np.allclose(grad.sum(axis=1), 0.0)
    assert grad[0, 0] < 0 and grad[1, 1] < 0 and grad[2, 2] < 0


def test_softmax_empty_selection_gives_zero_loss():
    layer = SoftmaxLossLayer(2, [0, 1])
    layer.forward(np.ones((2, 2)), 0, 2, [0, 0])
    assert layer.prediction_loss(0, 2, 0, [0, 0]) == 0.0


def test_softmax_rejects_out_of_range_label():
    with pytest.raises(ValueError):
        SoftmaxLossLayer(2, [0, 2])


def test_range_outside_samples_raises():
    layer = SoftmaxLossLayer(2, [0, 1])
    with pytest.raises(ValueError):
        layer.forward(np.ones((2, 2)), 0, 3)