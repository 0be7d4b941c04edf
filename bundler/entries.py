"""Entry point selection."""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping
import logging

from .environment import BuildEnvironment


logger = logging.getLogger(__name__)

BUNDLE_ENTRY = "bundle"
VENDOR_ENTRY = "vendor"
ROOT_STYLESHEET = "app.css"

EntryMap = Mapping[str, str]


def build_entries(env: BuildEnvironment) -> EntryMap:
    """Map bundle names to their entry modules.

    Insertion order is the order the bundler emits the bundles in.
    """

    entries = {
        BUNDLE_ENTRY: "./main.ts" if env.skip_code_generation else "./main.aot.ts",
        VENDOR_ENTRY: f"./{VENDOR_ENTRY}",
        ROOT_STYLESHEET: f"./{ROOT_STYLESHEET}",
    }
    logger.debug("Selected entries %s", entries)
    return MappingProxyType(entries)


__all__ = ["BUNDLE_ENTRY", "ROOT_STYLESHEET", "VENDOR_ENTRY", "EntryMap", "build_entries"]
