import importlib

from housekeeper.application.ports import Keep
from housekeeper.domain.errors import configuration_error


def _split_import_path(import_path: str) -> tuple[str, str]:
    if ":" in import_path:
        module_name, _, attribute = import_path.partition(":")
    else:
        module_name, _, attribute = import_path.rpartition(".")
    if not module_name or not attribute:
        raise configuration_error(
            f"keep '{import_path}' must be written as 'package.module:ClassName'"
        )
    return module_name, attribute


def load_keep(import_path: str) -> Keep:
    module_name, attribute = _split_import_path(import_path)
    try:
        module = importlib.import_module(module_name)
    except ImportError as error:
        raise configuration_error(f"keep module '{module_name}' could not be imported: {error}") from error

    keep_class = getattr(module, attribute, None)
    if keep_class is None:
        raise configuration_error(f"keep '{attribute}' not found in module '{module_name}'")

    try:
        keep = keep_class()
    except Exception as error:
        raise configuration_error(f"keep '{import_path}' could not be created: {error}") from error
    if not callable(getattr(keep, "each_change", None)):
        raise configuration_error(f"keep '{import_path}' does not define each_change()")
    return keep


def load_keeps(import_paths: list[str]) -> list[Keep]:
    return [load_keep(import_path) for import_path in import_paths]
