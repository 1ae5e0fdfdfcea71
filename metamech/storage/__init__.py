from .channels import AdminConfig, PrefillChannel, resolve_submission_endpoint
from .stores import InMemoryStore, JsonFileStore, KeyValueStore

__all__ = [
    "AdminConfig",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "PrefillChannel",
    "resolve_submission_endpoint",
]
