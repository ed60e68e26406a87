KEEP_ERROR_PREFIX = "Keep generation failed"
VERSION_CONTROL_ERROR_PREFIX = "Version control operation failed"
HOSTING_API_ERROR_PREFIX = "Hosting API request failed"
CONFIGURATION_ERROR_PREFIX = "Invalid housekeeper configuration"


class HousekeeperError(RuntimeError):
    """Base class for every failure raised by the housekeeper."""


class KeepGenerationError(HousekeeperError):
    """Raised when a keep fails while scanning for its next change."""


class VersionControlError(HousekeeperError):
    """Raised when a checkout, commit, diff or push fails."""


class HostingApiError(HousekeeperError):
    """Raised when a remote query or merge request write fails."""


class ConfigurationError(HousekeeperError):
    """Raised when run parameters are missing or invalid."""


def keep_error(keep_name: str, details: str) -> KeepGenerationError:
    return KeepGenerationError(f"{KEEP_ERROR_PREFIX} ({keep_name}): {details}")


def version_control_error(details: str) -> VersionControlError:
    return VersionControlError(f"{VERSION_CONTROL_ERROR_PREFIX}: {details}")


def hosting_api_error(details: str) -> HostingApiError:
    return HostingApiError(f"{HOSTING_API_ERROR_PREFIX}: {details}")


def configuration_error(details: str) -> ConfigurationError:
    return ConfigurationError(f"{CONFIGURATION_ERROR_PREFIX}: {details}")
