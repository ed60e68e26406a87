from housekeeper.application.ports.hosting_client import HostingClient
from housekeeper.application.ports.keep import Keep
from housekeeper.application.ports.version_control import VersionControl

__all__ = [
    "HostingClient",
    "Keep",
    "VersionControl",
]
