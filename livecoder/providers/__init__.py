"""Backend layer.

All generation requests go through a GenerationBackend; build_backend()
picks the implementation named by the configuration.
"""

from livecoder.config_loader import BackendConfig
from livecoder.providers.base import GenerationBackend
from livecoder.providers.http_provider import HttpBackend
from livecoder.providers.litellm_provider import LiteLLMBackend


def build_backend(config: BackendConfig) -> GenerationBackend:
    """Create the backend selected by ``config.kind``.

    Raises:
        ValueError: If the kind is not recognised.
    """
    if config.kind == "litellm":
        return LiteLLMBackend(config)
    if config.kind == "http":
        return HttpBackend(config)
    raise ValueError(f"Unknown backend kind: {config.kind!r}")


__all__ = ["GenerationBackend", "HttpBackend", "LiteLLMBackend", "build_backend"]
