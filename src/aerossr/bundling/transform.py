"""ES module syntax to loader calls.

A best-effort, line-level rewrite. Statements that fit on one line (or whose
only line breaks sit inside the ``{ ... }`` clause) are recognized; anything
else passes through untouched. Exports declared in place are assigned at the
end of the module, so ``let`` bindings are copied, not live.
"""

import re

_ESM_MARKER = 'Object.defineProperty(exports, "__esModule", { value: true });'

# import { a,\n b } from "x"  ->  one line
_BRACE_CLAUSE = re.compile(
    r"^([ \t]*(?:import(?:\s+[\w$]+\s*,)?|export)\s*\{)([^}]*)(\}\s*(?:from\b|;|$))",
    re.MULTILINE,
)

_IMPORT_FROM = re.compile(r"^(\s*)import\s+(.+?)\s+from\s*(['\"])([^'\"]+)\3\s*;?\s*$")
_IMPORT_BARE = re.compile(r"^(\s*)import\s*(['\"])([^'\"]+)\2\s*;?\s*$")
_DYNAMIC_IMPORT = re.compile(r"\bimport\s*\(\s*(['\"])([^'\"]+)\1\s*\)")

_EXPORT_STAR = re.compile(
    r"^(\s*)export\s*\*\s*(?:as\s+([\w$]+)\s+)?from\s*(['\"])([^'\"]+)\3\s*;?\s*$"
)
_EXPORT_NAMED_FROM = re.compile(
    r"^(\s*)export\s*\{([^}]*)\}\s*from\s*(['\"])([^'\"]+)\3\s*;?\s*$"
)
_EXPORT_NAMED = re.compile(r"^(\s*)export\s*\{([^}]*)\}\s*;?\s*$")
# "class extends Base" is an anonymous class, not a class named "extends"
_DECL = r"((?:async\s+)?function\s*\*?\s*(?!extends\b)([\w$]+)|class\s+(?!extends\b)([\w$]+))"
_EXPORT_DEFAULT_DECL = re.compile(r"^(\s*)export\s+default\s+" + _DECL)
_EXPORT_DEFAULT = re.compile(r"^(\s*)export\s+default\s+")
_EXPORT_DECL = re.compile(r"^(\s*)export\s+" + _DECL)
_EXPORT_VAR = re.compile(r"^(\s*)export\s+(const|let|var)\s+(.*)$")

_IDENT = re.compile(r"[A-Za-z_$][\w$]*")


def to_commonjs(source: str) -> str:
    """Rewrite ``import``/``export`` statements in *source* to loader calls.

    Usage::

        to_commonjs('import { a } from "./a.js";\\nexport default a;')
        # 'var { a } = require("./a.js");\\nexports.default = a;' plus marker

    Modules without any ``export`` are returned without the ES module
    marker, so a plain CommonJS module keeps ``module.exports`` semantics.
    """
    source = _BRACE_CLAUSE.sub(_join_clause, source)
    rewriter = _Rewriter()
    lines = [rewriter.line(line) for line in source.split("\n")]
    if rewriter.deferred:
        lines.append("".join(rewriter.deferred))
    body = "\n".join(lines)
    if rewriter.esm:
        body = f"{_ESM_MARKER}\n{body}"
    return body


def _join_clause(match: re.Match[str]) -> str:
    inner = " ".join(part.strip() for part in match.group(2).splitlines())
    return f"{match.group(1)}{inner}{match.group(3)}"


def _split_names(clause: str) -> list[tuple[str, str]]:
    """Parse ``a, b as c`` into ``[("a", "a"), ("b", "c")]``."""
    pairs = []
    for item in clause.split(","):
        item = item.strip()
        if not item:
            continue
        if " as " in item:
            local, _, alias = item.partition(" as ")
            pairs.append((local.strip(), alias.strip()))
        else:
            pairs.append((item, item))
    return pairs


def _binding_names(declaration: str) -> list[str]:
    """Names bound by the first declarator of ``const``/``let``/``var``."""
    declaration = declaration.lstrip()
    if declaration[:1] in "{[":
        closing = "}" if declaration[0] == "{" else "]"
        inner = declaration[1 : declaration.find(closing)]
        names = []
        for item in inner.split(","):
            item = item.split("=")[0]
            if ":" in item:
                item = item.split(":")[1]
            item = item.replace("...", "").strip()
            if _IDENT.fullmatch(item):
                names.append(item)
        return names
    match = _IDENT.match(declaration)
    return [match.group(0)] if match else []


class _Rewriter:
    """Per-module rewrite state."""

    __slots__ = ("counter", "deferred", "esm")

    def __init__(self) -> None:
        self.counter = 0
        self.deferred: list[str] = []
        self.esm = False

    def temp(self) -> str:
        name = f"__m{self.counter}"
        self.counter += 1
        return name

    def defer(self, exported: str, local: str) -> None:
        self.deferred.append(f"exports.{exported} = {local};")

    def line(self, line: str) -> str:
        line = _DYNAMIC_IMPORT.sub(_dynamic_import, line)
        stripped = line.lstrip()
        if stripped.startswith("import"):
            return self._import(line)
        if stripped.startswith("export"):
            return self._export(line)
        return line

    def _import(self, line: str) -> str:
        if m := _IMPORT_BARE.match(line):
            return f'{m.group(1)}require("{m.group(3)}");'
        m = _IMPORT_FROM.match(line)
        if m is None:
            return line
        indent, clause, specifier = m.group(1), m.group(2).strip(), m.group(4)
        call = f'require("{specifier}")'

        default = namespace = None
        named: list[tuple[str, str]] = []
        brace = clause.find("{")
        if brace != -1:
            named = _split_names(clause[brace + 1 : clause.rfind("}")])
            clause = clause[:brace]
        for part in (p.strip() for p in clause.split(",")):
            if part.startswith("*"):
                namespace = part.split("as", 1)[1].strip()
            elif part:
                default = part

        bindings = []
        source = call
        if sum(x is not None for x in (default, namespace)) + bool(named) > 1:
            source = self.temp()
            bindings.append(f"var {source} = {call};")
        if namespace:
            bindings.append(f"var {namespace} = {source};")
        if default:
            bindings.append(f"var {default} = __default({source});")
        if named:
            fields = ", ".join(n if n == a else f"{n}: {a}" for n, a in named)
            bindings.append(f"var {{ {fields} }} = {source};")
        return indent + " ".join(bindings)

    def _export(self, line: str) -> str:
        if m := _EXPORT_STAR.match(line):
            self.esm = True
            call = f'require("{m.group(4)}")'
            if m.group(2):
                return f"{m.group(1)}exports.{m.group(2)} = {call};"
            return f"{m.group(1)}__exportStar(exports, {call});"
        if m := _EXPORT_NAMED_FROM.match(line):
            self.esm = True
            temp = self.temp()
            parts = [f'var {temp} = require("{m.group(4)}");']
            parts.extend(
                f"exports.{alias} = {temp}.{local};"
                for local, alias in _split_names(m.group(2))
            )
            return m.group(1) + " ".join(parts)
        if m := _EXPORT_NAMED.match(line):
            self.esm = True
            for local, alias in _split_names(m.group(2)):
                self.defer(alias, local)
            return ""
        if m := _EXPORT_DEFAULT_DECL.match(line):
            self.esm = True
            self.defer("default", m.group(3) or m.group(4))
            return m.group(1) + line[m.start(2) :]
        if m := _EXPORT_DEFAULT.match(line):
            self.esm = True
            return f"{m.group(1)}exports.default = {line[m.end() :]}"
        if m := _EXPORT_DECL.match(line):
            self.esm = True
            name = m.group(3) or m.group(4)
            self.defer(name, name)
            return m.group(1) + line[m.start(2) :]
        if m := _EXPORT_VAR.match(line):
            self.esm = True
            for name in _binding_names(m.group(3)):
                self.defer(name, name)
            return f"{m.group(1)}{m.group(2)} {m.group(3)}"
        return line


def _dynamic_import(match: re.Match[str]) -> str:
    return f'Promise.resolve().then(function () {{ return require("{match.group(2)}"); }})'
