from __future__ import annotations

import importlib
import pkgutil
from types import ModuleType
from typing import Iterator

from ..services import Services

LISTENER_PACKAGES = ("gemification.slack.events", "gemification.slack.actions")


def _listener_modules(package_name: str) -> Iterator[ModuleType]:
    """Top-level submodules of `package_name` that expose a `register` hook."""
    package = importlib.import_module(package_name)
    for info in pkgutil.iter_modules(package.__path__, f"{package_name}."):  # type: ignore[attr-defined]
        if info.ispkg:
            continue
        try:
            module = importlib.import_module(info.name)
        except Exception as e:
            print(f"[slack] skipping {info.name}: import failed ({type(e).__name__} {e})")
            continue
        if callable(getattr(module, "register", None)):
            yield module


def register_all(slack_app, services: Services) -> list[str]:  # noqa: ANN001
    """
    Hooks every listener module into `slack_app`.

    A module that fails to import or register is logged and skipped so the
    remaining listeners still come up. Returns the names that registered.
    """
    registered: list[str] = []
    for package_name in LISTENER_PACKAGES:
        for module in _listener_modules(package_name):
            try:
                module.register(slack_app, services)
            except Exception as e:
                print(f"[slack] skipping {module.__name__}: register failed ({type(e).__name__} {e})")
                continue
            registered.append(module.__name__)
    print(f"[slack] listeners registered: {', '.join(registered) or 'none'}")
    return registered
