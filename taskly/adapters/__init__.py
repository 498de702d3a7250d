from .memory import InMemoryGateway
from .local import LocalFileGateway
from .rest import RestGateway

__all__ = ["InMemoryGateway", "LocalFileGateway", "RestGateway"]
