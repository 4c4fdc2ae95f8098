from .payload import PayloadMixin
from .publish import PublishMixin
from .topology import TopologyMixin

__all__ = ["PayloadMixin", "PublishMixin", "TopologyMixin"]
