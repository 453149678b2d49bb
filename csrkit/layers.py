"""L2 normalisation and sigmoid / softmax loss layers."""

from __future__ import annotations

from typing import Sequence

import numpy as np

_MIN_SQUARED_NORM = 1.0e-12
_MIN_PROBABILITY = 1e-10


class L2NormLayer:
    """Scales every row of a feature matrix to unit Euclidean length."""

    @staticmethod
    def _squared(feat: np.ndarray) -> np.ndarray:
        return np.maximum(np.sum(feat * feat, axis=1), _MIN_SQUARED_NORM)

    def forward(self, feat_in) -> np.ndarray:
        """Return feat_in with each row divided by its norm."""
        feat = np.asarray(feat_in, dtype=np.float64)
        if feat.ndim != 2:
            raise ValueError("features must be a 2-D array")
        return feat / np.sqrt(self._squared(feat))[:, None]

    def backward(self, feat_in, grad_in) -> np.ndarray:
        """Gradient with respect to feat_in, given the gradient of the output."""
        feat = np.asarray(feat_in, dtype=np.float64)
        grad = np.asarray(grad_in, dtype=np.float64)
        if feat.ndim != 2 or feat.shape != grad.shape:
            raise ValueError("features and gradients must be 2-D arrays of one shape")
        sum_x2 = self._squared(feat)
        coef0 = -np.sum(feat * grad, axis=1)
        coef1 = sum_x2 ** -1.5
        return feat * (coef0 * coef1)[:, None] + grad * (sum_x2 * coef1)[:, None]


def _check_classes(num_classes: int) -> None:
    if num_classes <= 0:
        raise ValueError("number of classes must be positive")


class _LossLayer:
    """Shared bookkeeping of the loss layers: per-sample losses over a masked range."""

    def __init__(self, num_classes: int, labels: np.ndarray):
        self.num_classes = num_classes
        self.labels = labels
        self.feat_in = np.zeros((0, num_classes))
        self.feat_out = np.zeros((0, num_classes))
        self.losses = np.zeros(0)

    def _load(self, feat_in) -> np.ndarray:
        feat = np.asarray(feat_in, dtype=np.float64)
        if feat.ndim != 2 or feat.shape[1] != self.num_classes:
            raise ValueError(f"features must have shape (n, {self.num_classes})")
        if feat.shape[0] > len(self.labels):
            raise ValueError("there are more samples than labels")
        if feat.shape[0] != self.feat_out.shape[0]:
            self.feat_out = np.zeros_like(feat)
            self.losses = np.zeros(feat.shape[0])
        self.feat_in = feat.copy()
        return self.feat_in

    def _rows(self, begin: int, end: int, masks: Sequence[int] | None) -> np.ndarray:
        if not 0 <= begin <= end <= len(self.losses):
            raise ValueError(f"range [{begin}, {end}) is outside the samples")
        rows = np.arange(begin, end)
        if masks is not None:
            masks = np.asarray(masks)
            if len(masks) < end:
                raise ValueError("masks are shorter than the sample range")
            rows = rows[masks[begin:end] == 1]
        return rows

    def _gradient(self, rows: np.ndarray, targets: np.ndarray, span: int) -> np.ndarray:
        grad = np.zeros_like(self.feat_out)
        if len(rows):
            grad[rows] = (self.feat_out[rows] - targets) / span
        return grad

    def _mean_loss(self, begin: int, end: int, count: int, masks) -> float:
        rows = self._rows(begin, end, masks)
        if len(rows) != count:
            raise ValueError(f"{len(rows)} valid samples, expected {count}")
        if count == 0:
            return 0.0
        return float(self.losses[rows].sum() / count)


class SigmoidLossLayer(_LossLayer):
    """Independent sigmoid per class with multi-hot labels."""

    def __init__(self, num_classes: int, labels):
        _check_classes(num_classes)
        arr = np.asarray(labels, dtype=np.float64)
        if arr.size % num_classes:
            raise ValueError("label count is not a multiple of the number of classes")
        super().__init__(num_classes, arr.reshape(-1, num_classes))

    def forward(self, feat_in, begin: int, end: int, masks=None) -> np.ndarray:
        """Apply the sigmoid to the selected rows and record their losses."""
        feat = self._load(feat_in)
        rows = self._rows(begin, end, masks)
        x = feat[rows]
        y = self.labels[rows]
        self.feat_out[rows] = 0.5 * (1.0 + np.tanh(0.5 * x))
        self.losses[rows] = np.sum(
            np.maximum(x, 0.0) - x * y + np.log1p(np.exp(-np.abs(x))), axis=1
        )
        return self.feat_out

    def backward(self, begin: int, end: int, masks=None) -> np.ndarray:
        """Gradient of the loss with respect to the input features.

        Rows outside the range or mask are zero; the rest are
        (prediction - label) / (end - begin).
        """
        rows = self._rows(begin, end, masks)
        return self._gradient(rows, self.labels[rows], end - begin)

    def prediction_loss(self, begin: int, end: int, count: int, masks=None) -> float:
        """Mean loss over the selected samples, whose number must equal `count`."""
        return self._mean_loss(begin, end, count, masks)


class SoftmaxLossLayer(_LossLayer):
    """Softmax over classes with one class index per sample."""

    def __init__(self, num_classes: int, labels):
        _check_classes(num_classes)
        arr = np.asarray(labels, dtype=np.int64).reshape(-1)
        if len(arr) and (arr.min() < 0 or arr.max() >= num_classes):
            raise ValueError("labels must lie in [0, num_classes)")
        super().__init__(num_classes, arr)

    def _one_hot(self, rows: np.ndarray) -> np.ndarray:
        targets = np.zeros((len(rows), self.num_classes))
        targets[np.arange(len(rows)), self.labels[rows]] = 1.0
        return targets

    def forward(self, feat_in, begin: int, end: int, masks=None) -> np.ndarray:
        """Apply the softmax to the selected rows and record their cross-entropy."""
        feat = self._load(feat_in)
        rows = self._rows(begin, end, masks)
        x = feat[rows]
        e = np.exp(x - x.max(axis=1, keepdims=True)) if len(rows) else x
        probs = e / e.sum(axis=1, keepdims=True) if len(rows) else x
        self.feat_out[rows] = probs
        picked = probs[np.arange(len(rows)), self.labels[rows]]
        self.losses[rows] = -np.log(np.where(picked == 0.0, _MIN_PROBABILITY, picked))
        return self.feat_out

    def backward(self, begin: int, end: int, masks=None) -> np.ndarray:
        """Gradient of the loss with respect to the input features.

        Rows outside the range or mask are zero; the rest are
        (prediction - one_hot(label)) / (end - begin).
        """
        rows = self._rows(begin, end, masks)
        return self._gradient(rows, self._one_hot(rows), end - begin)

    def prediction_loss(self, begin: int, end: int, count: int, masks=None) -> float:
        """Mean loss over the selected samples, whose number must equal `count`."""
        return self._mean_loss(begin, end, count, masks)