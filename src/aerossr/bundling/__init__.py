"""Bundling: dependency resolution, bundle assembly, and the bundle cache.

    resolver   -- walks import/require specifiers from an entry module
    transform  -- best-effort ES module syntax to loader calls
    minify     -- comment and whitespace stripping
    generator  -- assembles a bundle with its module-loader runtime
    cache      -- keyed bundle store with a stampede guard
"""

from aerossr.bundling.cache import BundleCache, CacheStats
from aerossr.bundling.filesystem import FileSystem, LocalFileSystem
from aerossr.bundling.generator import BundleGenerator, bootstrap_script
from aerossr.bundling.options import BundleOptions, BundleResult, cache_key, fingerprint
from aerossr.bundling.resolver import DependencyResolver, Module, scan_specifiers

__all__ = [
    "BundleCache",
    "BundleGenerator",
    "BundleOptions",
    "BundleResult",
    "CacheStats",
    "DependencyResolver",
    "FileSystem",
    "LocalFileSystem",
    "Module",
    "bootstrap_script",
    "cache_key",
    "fingerprint",
    "scan_specifiers",
]
