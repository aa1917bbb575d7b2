# anira

anira schedules neural network inference on audio so that the audio thread
never waits for the model. The host pushes audio blocks in. The work is cut
into model-sized inference requests, which a pool of worker threads (or the
host's own threads) runs in the background. Processed audio comes back after
a fixed latency that is known in advance.

## Installation

```
pip install anira
```

With the test dependencies:

```
pip install "anira[test]"
```

## Concepts

- `InferenceConfig` (`anira.inference_config`) describes one model. It holds
  the model files (`ModelData`: a path string or binary bytes per backend),
  the tensor shapes (`TensorShape`, for one backend or, without a backend,
  for all of them), the worst-case inference time in milliseconds, the
  model's internal latency, the number of warm-up runs, which tensor carries
  the audio (`index_audio_data`) and the number of audio channels in and out.
  It derives `input_sizes` and `output_sizes` from the first tensor shape.
- `PrePostProcessor` (`anira.pre_post_processor`) moves samples between the
  ring buffers and the model tensors. Subclass it and override `pre_process`
  or `post_process` to change how audio is windowed. `pop_samples_from_buffer`
  can build a window of already-read samples followed by new ones. Tensors
  that do not carry audio are kept here: use `set_input`, `get_input`,
  `set_output` and `get_output` to reach them.
- `BackendBase` (`anira.backend_base`) is the processor that runs a block of
  model input. On its own it copies input to output when their shapes match
  and zeroes the output otherwise. Subclass it and override `process`
  (and `prepare`) to run your own model.
- `InferenceBackend` (`anira.backend`) lists the backends: `LIBTORCH`, `ONNX`,
  `TFLITE` and `CUSTOM`. A session starts on `CUSTOM`, which runs the custom
  processor passed to the handler.
- `HostAudioConfig` (`anira.host_config`) gives the host's buffer size and
  sample rate. It can also take `submit_task_to_host_thread`, a callable that
  hands tasks to the host's threads.
- `ContextConfig` (`anira.context_config`) sets up the shared scheduler: the
  number of worker threads and whether host threads are used. The first
  handler created decides these settings for the process. A later handler
  can only shrink the thread pool or switch host threads off.
- `InferenceHandler` (`anira.inference_handler`) ties all of these together.
  It is the object an audio callback talks to.

## Example

```python
import numpy as np

from anira.backend_base import BackendBase
from anira.host_config import HostAudioConfig
from anira.inference_config import InferenceConfig, TensorShape
from anira.inference_handler import InferenceHandler
from anira.pre_post_processor import PrePostProcessor


class Gain(BackendBase):
    def process(self, source, target, session=None):
        target.array[...] = source.array * 0.5


config = InferenceConfig(
    model_data=[],
    tensor_shape=[TensorShape([[1, 1, 512]], [[1, 1, 512]])],
    max_inference_time=5.0,
)
pp = PrePostProcessor(config)

with InferenceHandler(pp, config, Gain(config)) as handler:
    handler.prepare(HostAudioConfig(512, 48000.0))
    print("latency in samples:", handler.latency)

    block_in = [np.random.uniform(-1, 1, 512).astype(np.float32)]
    block_out = [np.zeros(512, dtype=np.float32)]
    handler.process(block_in, block_out, 512)
```

`process` takes blocks indexed as `[channel][sample]`. If `output_data` is
left out, the result overwrites the input. If `num_samples` is left out, the
length of the first input channel is used. When a result is not ready in
time, the output block is zeroed, and the missed block is caught up on later.
`handler.inference_manager.missing_blocks` counts these blocks.

Closing the handler, or leaving the `with` block, releases its session. When
the last session is released, the worker threads stop and the shared
scheduler is discarded.

## Running inference on host threads

Create the first handler with `ContextConfig(use_host_threads=True)` and pass
a `submit_task_to_host_thread` callable in the `HostAudioConfig`. For each
inference request the scheduler calls it with the number of tasks. The host
then calls `handler.exec_inference()` on one of its threads once per task.
If the callable returns `False`, the scheduler falls back to its own worker
threads. `exec_inference` raises `RuntimeError` when host threads are not
in use.

## Latency

The reported latency is the sum of three parts:

- the delay needed to line host buffers up with model output blocks;
- enough whole host buffers to cover the worst-case inference time of the
  largest number of inferences one buffer can trigger;
- the model's internal latency.

The first two parts are computed by `calculate_buffer_adaptation` and
`max_num_inferences` in `anira.inference_manager`. After `prepare`, the
receive buffer is primed with that many zero samples.

## Helpers

`anira.helpers` has small utilities:

- `random_sample` returns a random sample.
- `fill_buffer` and `push_buffer_to_ringbuffer` work on the first channel of
  a buffer.
- `calculate_percentile`, `calculate_min` and `calculate_max` summarise
  timings.

`AudioBuffer` (`anira.audio_buffer`) and `RingBuffer` (`anira.ring_buffer`)
are the numpy-backed sample buffers used throughout.

## What this package does not do

- It does not load or run model files. No LibTorch, ONNX Runtime or
  TensorFlow Lite processor is included. A session whose backend is set to
  `LIBTORCH`, `ONNX` or `TFLITE` runs the pass-through `BackendBase` and logs
  an error, unless a processor for that backend is placed in the session's
  `processors` mapping. To run a model, use the `CUSTOM` backend with your
  own `BackendBase` subclass.
- It ships no ready-made model configurations. The `anira.models`
  sub-package is empty.
- It has no command-line program and no benchmarking harness.