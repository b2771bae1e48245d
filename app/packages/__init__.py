"""业务包注册中心：``app.main`` 通过 ``APP_ACTIVE_PACKAGE`` 选择要装配的业务包。"""

from __future__ import annotations

import os
from typing import Dict, Iterable

from . import drive
from .types import AppPackage

DEFAULT_PACKAGE = drive.package.name


def _index(packages: Iterable[AppPackage]) -> Dict[str, AppPackage]:
    registry: Dict[str, AppPackage] = {}
    for package in packages:
        if package.name in registry:
            raise RuntimeError(f"业务包名称重复: {package.name}")
        registry[package.name] = package
    return registry


PACKAGE_REGISTRY = _index([drive.package])


def get_active_package(name: str | None = None) -> AppPackage:
    """优先使用显式传入的名称，其次读取环境变量，最后回落到网盘业务包。"""
    package_name = (name or os.getenv("APP_ACTIVE_PACKAGE") or DEFAULT_PACKAGE).strip()
    package = PACKAGE_REGISTRY.get(package_name)
    if package is None:
        raise RuntimeError(
            f"未找到名为 '{package_name}' 的业务包，可用选项：{', '.join(sorted(PACKAGE_REGISTRY))}"
        )
    return package


__all__ = ["DEFAULT_PACKAGE", "PACKAGE_REGISTRY", "get_active_package"]
