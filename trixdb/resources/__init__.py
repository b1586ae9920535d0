from trixdb.resources.base import BaseResource, build_query_params
from trixdb.resources.jobs import JobsResource
from trixdb.resources.memories import MemoriesResource
from trixdb.resources.spaces import SpacesResource


__all__ = [
    "BaseResource",
    "JobsResource",
    "MemoriesResource",
    "SpacesResource",
    "build_query_params",
]
