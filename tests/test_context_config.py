from anira.backend import InferenceBackend
from anira.context_config import ANIRA_VERSION, ContextConfig


def test_defaults():
    config = ContextConfig()
    assert config.num_threads >= 1
    assert config.use_host_threads is False
    assert config.use_controlled_blocking is False
    assert config.anira_version == ANIRA_VERSION


def test_enabled_backends_exclude_custom():
    backends = ContextConfig().enabled_backends
    assert InferenceBackend.CUSTOM not in backends
    assert InferenceBackend.ONNX in backends


def test_enabled_backends_are_independent_lists():
    first = ContextConfig()
    second = ContextConfig()
    first.enabled_backends.clear()
    assert len(second.enabled_backends) == 3


def test_equality():
    assert ContextConfig(num_threads=2) == ContextConfig(num_threads=2)
    assert ContextConfig(num_threads=2) != ContextConfig(num_threads=3)
    assert ContextConfig(num_threads=2) != ContextConfig(num_threads=2, use_host_threads=True)
    assert ContextConfig(num_threads=2) != ContextConfig(num_threads=2, anira_version="other")
    assert ContextConfig(num_threads=2) != ContextConfig(num_threads=2, enabled_backends=[])