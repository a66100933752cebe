"""Layer base class and helpers for chaining layers together."""

from __future__ import annotations

import enum

import numpy as np

NAME_LIMIT = 63


class LayerType(enum.IntEnum):
    """Kinds of layer a network can hold."""

    DENSE = 0
    ACTIVATION = 1
    DROPOUT = 2
    INPUT = 3
    OUTPUT = 4
    CONV2D = 5
    LSTM = 6
    GRU = 7
    FLATTEN = 8
    BATCHNORM = 100
    ATTENTION = 101
    TRANSFORMER = 102


class Layer:
    """A node in a doubly linked chain of layers.

    The base layer passes its input through untouched, which is what an
    input layer does; subclasses compute and keep ``output`` on the way
    forward and ``grad_input`` on the way back.
    """

    def __init__(self, kind, name=""):
        self.kind = LayerType(kind)
        self.name = str(name)[:NAME_LIMIT]
        self.weights: np.ndarray | None = None
        self.biases: np.ndarray | None = None
        self.output: np.ndarray | None = None
        self.grad_input: np.ndarray | None = None
        self.prev: Layer | None = None
        self.next: Layer | None = None

    def forward(self, x):
        """Return the input unchanged; subclasses return their output."""
        return x

    def backward(self, grad_output):
        """Return the stored input gradient; subclasses compute it first."""
        return self.grad_input

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.name}, name={self.name!r})"


def connect(prev, next):
    """Link ``prev`` to ``next`` in both directions."""
    prev.next = next
    next.prev = prev


def forward_pass(input_layer, x):
    """Run ``x`` through the chain starting at ``input_layer``; return the last output."""
    layer = input_layer
    while layer is not None:
        x = layer.forward(x)
        layer = layer.next
    return x


def backward_pass(output_layer, grad_output):
    """Send ``grad_output`` back through the chain ending at ``output_layer``."""
    layer = output_layer
    grad = grad_output
    while layer is not None:
        grad = layer.backward(grad)
        layer = layer.prev
    return grad