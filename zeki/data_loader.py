"""Loading numeric data and labels from text files."""

from __future__ import annotations

import re

import numpy as np

_SEPARATORS = re.compile(r"[\s,;]+")


def _tokens(filename):
    with open(filename, encoding="utf-8") as handle:
        text = handle.read().strip()
    return [tok for tok in _SEPARATORS.split(text) if tok]


def load_csv(filename, rows, cols):
    """Read ``rows * cols`` numbers in row order into a ``(rows, cols)`` array.

    Values may be separated by commas, semicolons or whitespace. Missing
    trailing values are zero and extra values are ignored.
    """
    if rows < 0 or cols < 0:
        raise ValueError("rows and cols must not be negative")
    count = rows * cols
    values = np.zeros(count, dtype=np.float32)
    for index, token in enumerate(_tokens(filename)[:count]):
        try:
            values[index] = float(token)
        except ValueError as exc:
            raise ValueError(f"not a number: {token!r}") from exc
    return values.reshape(rows, cols)


def load_labels(filename, num_classes):
    """Read integer class labels, one-hot encoded as ``(count, num_classes)``.

    Labels outside ``[0, num_classes)`` leave their row all zero.
    """
    labels = []
    for token in _tokens(filename):
        try:
            labels.append(int(float(token)))
        except ValueError as exc:
            raise ValueError(f"not a label: {token!r}") from exc
    encoded = np.zeros((len(labels), num_classes), dtype=np.float32)
    for row, label in enumerate(labels):
        if 0 <= label < num_classes:
            encoded[row, label] = 1.0
    return encoded