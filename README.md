# zeki

Neural-network building blocks on numpy. Every layer keeps its own state
(weights, caches, gradients) and exposes `forward` and `backward`; networks
are put together by linking layers into a chain. Alongside the layers are
loss functions, image augmentation, plain-text data loading, a small JSON
codec and an HTTP server that carries messages over server-sent events.

Requires Python 3.10 or later and numpy.

## Layers (`zeki.layers`)

| Module | Contents |
| --- | --- |
| `base` | `Layer`, `LayerType`, and the chain helpers `connect`, `forward_pass`, `backward_pass` |
| `dense` | `Dense` – weights shaped `(output_dim, input_dim)`, `init_weights()` |
| `activation` | `Activation` with `ActivationType.RELU`, `SIGMOID`, `TANH`, `SOFTMAX` (softmax along axis 1) |
| `dropout` | `Dropout` – inverted dropout while `training` is true |
| `flatten` | `Flatten` – `(batch, ...)` to `(batch, features)` and back |
| `conv` | `Conv2D` – convolution over `(batch, channels, height, width)` with stride and zero padding |
| `pooling` | `Pool2D` with `PoolType.MAX` / `PoolType.AVG`, and the `maxpool2d` shortcut |
| `batchnorm` | `BatchNorm` – normalises axis 1, keeps running mean and variance |
| `lstm` | `LSTMCell` – single-step cell that carries hidden and cell state between calls |
| `gru` | `GRUCell` – single-step cell that carries its hidden state between calls |
| `attention` | `Attention` – single-head self-attention over `(batch, seq_len, embed_dim)` |
| `transformer` | `TransformerBlock` – attention and a ReLU feed-forward network, each with a residual |

`forward(x)` stores and returns `output`; `backward(grad)` stores and
returns `grad_input`. Layers that take random initial weights or masks accept
an optional `rng` (a `numpy.random.Generator`) so results can be repeated.

A few layers behave in ways worth knowing:

- `Dense`, `Conv2D`, `LSTMCell` and `GRUCell` compute weight and bias
  gradients in `backward` (`weight_grad`, `kernel_grad`, `Wf_grad`, ...) but
  do not change their weights.
- `BatchNorm.backward` updates `gamma` and `beta` itself with a fixed step
  of 0.01.
- `Attention` divides each row of scaled dot-product scores by its sum
  instead of applying a softmax, and its `backward` returns zeros.
- `TransformerBlock.backward` passes the gradient through unchanged.

### Building a chain

```python
import numpy as np

from zeki.layers.base import connect, forward_pass, backward_pass
from zeki.layers.dense import Dense
from zeki.layers.activation import Activation, ActivationType
from zeki.loss import LossType, loss_compute, loss_gradient

rng = np.random.default_rng(0)
hidden = Dense(5, 10, "Dense-1", rng)
relu = Activation(ActivationType.RELU, "ReLU-1")
out = Dense(10, 3, "Output", rng)
softmax = Activation(ActivationType.SOFTMAX, "Softmax")

connect(hidden, relu)
connect(relu, out)
connect(out, softmax)

x = rng.random((1, 5))
target = np.array([[0.0, 1.0, 0.0]])

pred = forward_pass(hidden, x)
loss = loss_compute(pred, target, LossType.CROSSENTROPY)
backward_pass(softmax, loss_gradient(pred, target, LossType.CROSSENTROPY))
print(loss, out.weight_grad.shape)
```

## Losses (`zeki.loss`)

`mse_loss`, `binary_crossentropy`, `categorical_crossentropy` and
`huber_loss` (with `delta`), each with a `*_grad` partner.
`loss_compute(pred, target, kind)` and `loss_gradient(pred, target, kind)`
dispatch on `LossType` (`MSE`, `CROSSENTROPY`, `BINARY_CROSSENTROPY`,
`HUBER`; Huber uses `delta=1.0`). Unknown kinds fall back to mean squared
error.

```python
import numpy as np
from zeki.loss import LossType, loss_compute

pred = np.array([[0.9, 0.1, 0.0], [0.2, 0.7, 0.1]])
target = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
loss_compute(pred, target, LossType.MSE)
```

## Image augmentation (`zeki.augment`)

Functions on `(channels, height, width)` arrays, each returning a new array:

- `rotate(img, angle_deg)` – about the centre, bilinear sampling, zeros outside
- `flip(img, horizontal)` – left-right if `horizontal` is true, else top-bottom
- `brightness(img, factor)` – scale and clip to [0, 1]
- `crop(img, scale)` – centred crop placed at the top-left of a zero image of the
  original size; `scale` above 1 raises `ValueError`
- `noise(img, noise_level, rng=None)` – uniform noise, clipped to [0, 1]

## Data loading (`zeki.data_loader`)

- `load_csv(filename, rows, cols)` reads `rows * cols` numbers separated by
  commas, semicolons or whitespace into a float32 array; missing values are
  zero, extra values are ignored.
- `load_labels(filename, num_classes)` reads integer labels and returns them
  one-hot encoded; labels outside `[0, num_classes)` leave their row zero.

## JSON (`zeki.jsonvalue`)

`parse(text)` reads the first JSON value in a `str` or `bytes` into plain
Python values and raises `JsonParseError` (a `ValueError` with a `position`)
on malformed input; text after the value is ignored. `serialize(value)`
writes compact JSON; whole floats below 1e15 are written without a fraction.

```python
from zeki.jsonvalue import parse, serialize

value = parse('{"a": [1, 2.5, true, null]}')
serialize(value)  # '{"a":[1,2.5,true,null]}'
```

## Event-stream server (`zeki.sse_server`)

`SseServer(port, handler=None, host="")` is a threaded HTTP server:

- `GET /sse` opens an event stream. The first event is `endpoint` with
  `/messages?sessionId=...`; a `keepalive` event follows every 30 idle
  seconds. Only one stream is live at a time; a new one replaces the old.
- `POST /messages` calls `handler(body, send_event)` and answers
  `202 Accepted`.
- `GET /health` answers `{"status":"ok","server":"zeki-mcp"}`.
- `OPTIONS` answers `204`; anything else `404`.

`start()` and `stop()` control it, and it works as a context manager. Port 0
picks a free port; `port` holds the real one after `start()`.
`send_event(event_name, data)` pushes an event to the open stream.

```python
from zeki.sse_server import SseServer

def handle(body, send_event):
    send_event("message", body)

with SseServer(0, handle, "127.0.0.1") as server:
    print(server.port)
```

## What the package does not do

There is no model object, optimizer, training loop, early stopping, metric
calculation or saving and loading of weights: layers are chained and driven
by hand, and weight updates are left to the caller (apart from `BatchNorm`).
The event-stream server only moves messages; what a request means is up to
the handler you pass in. The package installs no command-line program.

## Running the tests

Install the `test` extra, then run `pytest` from the project root.