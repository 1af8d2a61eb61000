"""Bundle assembly.

A bundle is one self-contained script::

    (function () {
      <loader runtime>
      define("util.js", function (require, module, exports) { ... }, {});
      define("main.js", function (require, module, exports) { ... }, {"./util": "util.js"});
      var __entry__ = __require__("main.js");
      <optional hydration bootstrap>
    })();

Modules are registered in resolution order (dependencies first, entry last)
and identified by their path relative to the project root. Each module gets
its own ``require`` that maps the specifiers it used to module ids; anything
it cannot map falls back to a host ``require`` when one exists.
"""

import json
import logging
import time
from pathlib import Path
from urllib.parse import urlencode

from aerossr.bundling.filesystem import FileSystem, LocalFileSystem
from aerossr.bundling.minify import minify_js
from aerossr.bundling.options import BundleOptions, BundleResult, fingerprint
from aerossr.bundling.resolver import DependencyResolver, Module
from aerossr.bundling.transform import to_commonjs

logger = logging.getLogger("aerossr.bundler")

_RUNTIME = """\
var __modules__ = {};
var __cache__ = {};
var __host_require__ = typeof require === "function" ? require : null;
function __default(m) { return m && m.__esModule ? m["default"] : m; }
function __exportStar(target, source) {
  Object.keys(source).forEach(function (k) {
    if (k !== "default" && !Object.prototype.hasOwnProperty.call(target, k)) target[k] = source[k];
  });
}
function define(id, factory, deps) { __modules__[id] = { factory: factory, deps: deps || {} }; }
function __require__(id) {
  if (__cache__[id]) return __cache__[id].exports;
  var record = __modules__[id];
  if (!record) throw new Error("Module not found: " + id);
  var module = { exports: {} };
  __cache__[id] = module;
  record.factory(function (specifier) {
    var target = record.deps[specifier];
    if (target !== undefined) return __require__(target);
    if (__host_require__) return __host_require__(specifier);
    throw new Error("Cannot find module '" + specifier + "' from " + id);
  }, module, module.exports);
  return module.exports;
}"""

_HYDRATION = """\
(function (entry) {
  if (typeof document === "undefined") return;
  var root = document.getElementById(%(root_id)s);
  if (!root || !entry) return;
  var names = ["hydrate", "mount", "render"];
  var targets = [entry, entry["default"]];
  for (var t = 0; t < targets.length; t++) {
    var target = targets[t];
    if (!target) continue;
    for (var n = 0; n < names.length; n++) {
      if (typeof target[names[n]] === "function") return target[names[n]](root);
    }
  }
})(__entry__);"""

_SERVER_EXPORT = """\
if (typeof module === "object" && module && module.exports) module.exports = __entry__;"""

_BOOTSTRAP = """\
window.__AEROSSR_LOAD__ = function () {
  var script = document.createElement("script");
  script.src = %(src)s;
  script.async = true;
  document.head.appendChild(script);
};
window.addEventListener("load", window.__AEROSSR_LOAD__);"""


class BundleGenerator:
    """Assembles bundles for entry points under a project root.

    Usage::

        generator = BundleGenerator("/srv/site")
        result = await generator.generate("src/main.js", BundleOptions(minify=False))
        result.code, result.hash, result.dependencies
    """

    __slots__ = ("fs", "options", "root")

    def __init__(
        self,
        root: str | Path,
        options: BundleOptions | None = None,
        *,
        fs: FileSystem | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.options = options or BundleOptions()
        self.fs: FileSystem = fs or LocalFileSystem()

    async def generate(
        self,
        entry_point: str,
        options: BundleOptions | None = None,
    ) -> BundleResult:
        """Resolve *entry_point* and assemble its bundle.

        Raises ``ReadError`` for a missing or unreadable entry and lets
        ``ResolutionError`` and ``DepthExceededError`` propagate.
        """
        opts = options or self.options
        started = time.perf_counter()

        resolver = DependencyResolver(self.root, opts, fs=self.fs)
        entry = await resolver.resolve_entry(entry_point)
        modules = await resolver.resolve_graph(entry)

        entry_id = self.module_id(entry)
        parts = ["(function () {", _RUNTIME]
        for module in modules:
            parts.append(self._define(module, opts))
        parts.append(f"var __entry__ = __require__({json.dumps(entry_id)});")

        hydration_code = None
        if opts.hydrates:
            hydration_code = _HYDRATION % {"root_id": json.dumps(opts.root_id)}
            parts.append(hydration_code)
        if opts.target in ("server", "universal"):
            parts.append(_SERVER_EXPORT)
        parts.append("})();")

        code = "\n".join(parts) + "\n"
        if opts.minify:
            code = minify_js(code)

        dependencies = tuple(
            self.module_id(module.path) for module in modules if module.path != entry
        )
        source_map = None
        if opts.source_map:
            source_map = _source_map_placeholder([self.module_id(m.path) for m in modules])

        result = BundleResult(
            code=code,
            hash=fingerprint(code),
            dependencies=dependencies,
            map=source_map,
            hydration_code=hydration_code,
        )
        logger.info(
            "Bundled %s: %d modules, %d bytes in %.1fms",
            entry_id,
            len(modules),
            len(code),
            (time.perf_counter() - started) * 1000,
        )
        return result

    def module_id(self, path: Path) -> str:
        """Stable module id: the path relative to the root, posix style."""
        return path.relative_to(self.root).as_posix()

    def _define(self, module: Module, opts: BundleOptions) -> str:
        module_id = self.module_id(module.path)
        if module.path.suffix == ".json":
            body = f"module.exports = {module.source.strip() or 'null'};"
        else:
            body = to_commonjs(module.source)
        deps = {specifier: self.module_id(path) for specifier, path in module.imports}
        header = f"// File: {module_id}\n" if opts.comments else ""
        return (
            f"{header}define({json.dumps(module_id)}, "
            f"function (require, module, exports) {{\n{body}\n}}, "
            f"{json.dumps(deps)});"
        )


def _source_map_placeholder(sources: list[str]) -> str:
    """Version 3 source map that lists sources without mappings."""
    return json.dumps(
        {"version": 3, "file": "bundle.js", "sources": sources, "names": [], "mappings": ""}
    )


def bootstrap_script(entry_point: str, dist_path: str = "/dist") -> str:
    """Client snippet that loads the bundle for *entry_point* after page load.

    Embed it in an HTML ``<script>`` tag::

        html = f"<script>{bootstrap_script('src/main.js')}</script>"
    """
    src = f"{dist_path}?{urlencode({'entryPoint': entry_point})}"
    # Escape "</" so the snippet cannot close its own <script> tag
    return _BOOTSTRAP % {"src": json.dumps(src).replace("</", "<\\/")}
