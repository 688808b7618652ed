"""Dialect registry backed by a pluggy plugin manager."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from functools import lru_cache

import pluggy

from ..formatting.annotations import Dialect
from ._markers import ENTRY_POINT_GROUP, PLUGIN_NAMESPACE
from .spec import ZotnotesHookSpec
from .types import ExportContribution

logger = logging.getLogger(__name__)


class PluginRegistrationError(RuntimeError):
    """Raised when a plugin fails validation or registration."""


@lru_cache(maxsize=1)
def _builtin_plugin_modules() -> tuple[object, ...]:
    from . import markdown, org

    return (org, markdown)


def build_plugin_manager(
    modules: Sequence[object] = (),
    *,
    load_entry_points: bool = True,
) -> pluggy.PluginManager:
    """Create a manager with ``modules`` and, optionally, installed plugins."""

    manager = pluggy.PluginManager(PLUGIN_NAMESPACE)
    manager.add_hookspecs(ZotnotesHookSpec)

    for module in modules:
        try:
            manager.register(module)
        except (pluggy.PluginValidationError, ValueError) as exc:
            raise PluginRegistrationError(str(exc)) from exc

    if load_entry_points:
        loaded = manager.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        if loaded:
            logger.debug("Loaded %d plugin(s) from %s", loaded, ENTRY_POINT_GROUP)

    return manager


@lru_cache(maxsize=1)
def get_plugin_manager() -> pluggy.PluginManager:
    """Return the process-wide manager with built-in and installed dialects."""

    return build_plugin_manager(_builtin_plugin_modules())


def reset_plugin_manager_cache() -> None:
    """Forget the cached manager so the next lookup rediscovers plugins."""

    get_plugin_manager.cache_clear()


def iter_export_contributions(
    manager: pluggy.PluginManager,
) -> Iterator[tuple[str, ExportContribution]]:
    """Yield ``(plugin_name, contribution)`` for every dialect on offer.

    Hook implementations are called one by one so a faulty plugin can be
    named in the error.
    """

    for impl in reversed(manager.hook.export_formats.get_hookimpls()):
        result = impl.function()
        if result is None:
            continue
        for contribution in _as_contributions(result, impl.plugin_name):
            yield impl.plugin_name, contribution


def load_export_contributions(
    manager: pluggy.PluginManager | None = None,
) -> dict[str, ExportContribution]:
    """Return dialect contributions keyed by lower-cased format id."""

    manager = manager or get_plugin_manager()

    contributions: dict[str, ExportContribution] = {}
    owners: dict[str, str] = {}
    for plugin_name, contribution in iter_export_contributions(manager):
        key = contribution.format_id.strip().lower()
        if key in contributions:
            raise PluginRegistrationError(
                f"Duplicate export format detected: '{contribution.format_id}' "
                f"from {plugin_name} is already provided by {owners[key]}."
            )
        contributions[key] = contribution
        owners[key] = plugin_name

    return contributions


def _as_contributions(
    result: object, plugin_name: str
) -> tuple[ExportContribution, ...]:
    if isinstance(result, ExportContribution):
        items: Iterable[object] = (result,)
    elif isinstance(result, Iterable) and not isinstance(result, (str, bytes)):
        items = result
    else:
        raise PluginRegistrationError(
            f"Plugin {plugin_name} did not return an iterable of contributions."
        )

    validated: list[ExportContribution] = []
    for item in items:
        if not isinstance(item, ExportContribution):
            raise PluginRegistrationError(
                f"Plugin {plugin_name} returned {type(item).__name__}; "
                "export contributions must be ExportContribution instances."
            )
        if not item.format_id.strip():
            raise PluginRegistrationError(
                f"Plugin {plugin_name} has an empty format id."
            )
        if not isinstance(item.dialect, Dialect):
            raise PluginRegistrationError(
                f"Format '{item.format_id}' from {plugin_name} carries no Dialect."
            )
        validated.append(item)
    return tuple(validated)


__all__ = [
    "PluginRegistrationError",
    "build_plugin_manager",
    "get_plugin_manager",
    "iter_export_contributions",
    "load_export_contributions",
    "reset_plugin_manager_cache",
]
