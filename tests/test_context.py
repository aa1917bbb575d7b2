import time

import pytest

from anira.backend_base import BackendBase
from anira.context import Context
from anira.context_config import ContextConfig
from anira.host_config import HostAudioConfig
from anira.inference_config import InferenceConfig, TensorShape
from anira.pre_post_processor import PrePostProcessor

BLOCK = 4


def make_config(**kwargs):
    return InferenceConfig(
        [],
        [TensorShape([[1, 1, BLOCK]], [[1, 1, BLOCK]])],
        1.0,
        **kwargs,
    )


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.001)
    return False


def push_block(session, values):
    for value in values:
        session.send_buffer.push_sample(0, value)


def pop_all(session):
    count = session.receive_buffer.get_available_samples(0)
    return [session.receive_buffer.pop_sample(0) for _ in range(count)]


@pytest.fixture(autouse=True)
def fresh_context():
    Context.release_instance()
    yield
    context = Context.get_instance(ContextConfig(num_threads=1))
    for session in list(context.sessions):
        context.release_session(session)
    context.release_thread_pool()
    Context.release_instance()


def new_session(context, config=None, custom=None):
    config = config or make_config()
    return context.create_session(PrePostProcessor(config), config, custom)


class Doubler(BackendBase):
    def __init__(self, inference_config):
        super().__init__(inference_config)
        self.prepared = 0

    def prepare(self):
        self.prepared += 1

    def process(self, source, target, session=None):
        target.array[...] = source.array * 2


def test_get_instance_returns_same_context():
    first = Context.get_instance(ContextConfig(num_threads=1))
    second = Context.get_instance(ContextConfig(num_threads=1))
    assert first is second
    assert first.num_threads == 1


def test_thread_pool_shrinks_but_does_not_grow():
    context = Context.get_instance(ContextConfig(num_threads=2))
    assert context.num_threads == 2
    Context.get_instance(ContextConfig(num_threads=1))
    assert context.num_threads == 1
    Context.get_instance(ContextConfig(num_threads=3))
    assert context.num_threads == 1


def test_host_threads_switched_off_by_later_config():
    context = Context.get_instance(ContextConfig(num_threads=1, use_host_threads=True))
    assert context.config.use_host_threads is True
    Context.get_instance(ContextConfig(num_threads=1, use_host_threads=False))
    assert context.config.use_host_threads is False


def test_session_ids_count_up_from_zero():
    context = Context.get_instance(ContextConfig(num_threads=1))
    first = new_session(context)
    second = new_session(context)
    assert first.session_id == 0
    assert second.session_id == first.session_id + 1
    assert context.num_sessions == 2
    assert context.sessions == (first, second)


def test_parallel_processors_limited_to_threads():
    context = Context.get_instance(ContextConfig(num_threads=1))
    config = make_config(num_parallel_processors=4)
    new_session(context, config)
    assert config.num_parallel_processors == context.num_threads


def test_round_trip_through_thread_pool():
    context = Context.get_instance(ContextConfig(num_threads=1))
    session = new_session(context)
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0))
    block = [0.5, -0.25, 0.125, 1.0]
    push_block(session, block)
    context.new_data_submitted(session)

    def collected():
        context.new_data_request(session, 0.0)
        return session.receive_buffer.get_available_samples(0) >= BLOCK

    assert wait_for(collected)
    assert pop_all(session) == block
    assert session.time_stamps == []


def test_custom_processor_is_prepared_and_used():
    context = Context.get_instance(ContextConfig(num_threads=1))
    config = make_config()
    doubler = Doubler(config)
    session = new_session(context, config, doubler)
    assert doubler.prepared == 1
    assert session.custom_processor is doubler
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0))
    block = [0.5, 0.25, -0.5, 0.0]
    push_block(session, block)
    context.new_data_submitted(session)

    def collected():
        context.new_data_request(session, 0.0)
        return session.receive_buffer.get_available_samples(0) >= BLOCK

    assert wait_for(collected)
    assert pop_all(session) == [value * 2 for value in block]


def test_host_threads_run_inference_on_request():
    context = Context.get_instance(ContextConfig(num_threads=1, use_host_threads=True))
    session = new_session(context)
    submitted = []

    def submit(count):
        submitted.append(count)
        return True

    context.prepare(session, HostAudioConfig(BLOCK, 48000.0, submit))
    block = [0.5, 0.5, 0.25, 0.25]
    push_block(session, block)
    context.new_data_submitted(session)
    assert submitted == [1]

    context.new_data_request(session, 0.0)
    assert session.receive_buffer.get_available_samples(0) == 0

    context.exec_inference()
    context.new_data_request(session, 0.0)
    assert pop_all(session) == block


def test_failing_host_submitter_falls_back_to_pool():
    context = Context.get_instance(ContextConfig(num_threads=1, use_host_threads=True))
    session = new_session(context)
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0, lambda count: False))
    block = [0.25, 0.5, 0.75, 1.0]
    push_block(session, block)
    context.new_data_submitted(session)
    assert context.config.use_host_threads is False

    def collected():
        context.new_data_request(session, 0.0)
        return session.receive_buffer.get_available_samples(0) >= BLOCK

    assert wait_for(collected)
    assert pop_all(session) == block
    with pytest.raises(RuntimeError):
        context.exec_inference()


def test_no_free_slot_pushes_silence():
    context = Context.get_instance(ContextConfig(num_threads=1, use_host_threads=True))
    session = new_session(context)
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0, lambda count: True))
    slots = len(session.inference_queue)
    push_block(session, [0.5] * (BLOCK * (slots + 1)))
    context.new_data_submitted(session)
    assert len(session.time_stamps) == slots
    assert session.send_buffer.get_available_samples(0) == 0
    assert pop_all(session) == [0.0] * BLOCK


def test_exec_inference_requires_host_threads():
    context = Context.get_instance(ContextConfig(num_threads=1))
    session = new_session(context)
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0))
    with pytest.raises(RuntimeError):
        context.exec_inference()


def test_prepare_without_submitter_disables_host_threads():
    context = Context.get_instance(ContextConfig(num_threads=1, use_host_threads=True))
    session = new_session(context)
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0))
    assert context.config.use_host_threads is False
    assert session.initialized.is_set()


def test_queue_stamp_wraps_at_maximum():
    context = Context.get_instance(ContextConfig(num_threads=1, use_host_threads=True))
    session = new_session(context)
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0, lambda count: True))
    session.current_queue = 65535
    push_block(session, [0.5] * BLOCK)
    context.new_data_submitted(session)
    assert session.current_queue == 0
    assert session.time_stamps == [65535]
    assert session.inference_queue[0].time_stamp == 65535


def test_controlled_blocking_waits_for_result():
    context = Context.get_instance(
        ContextConfig(num_threads=1, use_controlled_blocking=True)
    )
    session = new_session(context, make_config(wait_in_process_block=1.0))
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0))
    block = [0.5, 0.25, 0.125, 0.0625]
    push_block(session, block)
    context.new_data_submitted(session)
    context.new_data_request(session, 5.0)
    assert pop_all(session) == block


def test_release_session_keeps_others():
    context = Context.get_instance(ContextConfig(num_threads=1))
    first = new_session(context)
    second = new_session(context)
    context.release_session(first)
    assert context.sessions == (second,)
    assert context.num_sessions == 1
    assert Context.get_instance(ContextConfig(num_threads=1)) is context


def test_release_last_session_releases_instance():
    context = Context.get_instance(ContextConfig(num_threads=1))
    session = new_session(context)
    context.prepare(session, HostAudioConfig(BLOCK, 48000.0))
    context.release_session(session)
    assert context.num_sessions == 0
    assert context.num_threads == 0
    replacement = Context.get_instance(ContextConfig(num_threads=1))
    assert replacement is not context
    assert replacement.num_threads == 1