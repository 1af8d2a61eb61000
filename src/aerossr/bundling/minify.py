"""Whitespace and comment stripping for bundles.

Not a real minifier: identifiers are never renamed and no syntax is
rewritten. The scanner tracks string literals (single, double and template
quotes, including literals nested in ``${ ... }`` substitutions) so their
contents survive byte for byte. Regular expression literals
are not recognized; a ``//`` inside one is treated as a comment.
"""

_QUOTES = frozenset("'\"`")
_SPACE = frozenset(" \t\r\n\f\v")


def minify_js(code: str) -> str:
    """Strip comments and collapse whitespace outside string literals.

    A whitespace run (comments count as whitespace) that contains a line
    break becomes a single ``\\n``; any other run becomes a single space.
    Leading and trailing whitespace is dropped.
    """
    out: list[str] = []
    i, n = 0, len(code)
    pending = ""  # "", " " or "\n"

    while i < n:
        ch = code[i]

        if ch in _QUOTES:
            end = _string_end(code, i)
            if pending and out:
                out.append(pending)
            pending = ""
            out.append(code[i:end])
            i = end
            continue

        if ch == "/" and i + 1 < n and code[i + 1] in "/*":
            if code[i + 1] == "/":
                end = code.find("\n", i)
                end = n if end == -1 else end
                pending = pending or " "
            else:
                close = code.find("*/", i + 2)
                end = n if close == -1 else close + 2
                pending = "\n" if "\n" in code[i:end] or pending == "\n" else " "
            i = end
            continue

        if ch in _SPACE:
            j = i
            while j < n and code[j] in _SPACE:
                j += 1
            run_break = "\n" in code[i:j]
            pending = "\n" if run_break or pending == "\n" else " "
            i = j
            continue

        if pending and out:
            out.append(pending)
        pending = ""
        out.append(ch)
        i += 1

    return "".join(out)


def _string_end(code: str, start: int) -> int:
    """Index just past the string literal opening at *start*."""
    quote = code[start]
    if quote == "`":
        return _template_end(code, start)
    i = start + 1
    n = len(code)
    while i < n:
        ch = code[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            # Unterminated single-line string: stop at the line end
            return i
        i += 1
    return n


def _template_end(code: str, start: int) -> int:
    """Index just past the template literal opening at *start*.

    ``${ ... }`` substitutions are skipped as a whole, including any
    literals nested inside them, so an inner backtick does not end the
    outer template.
    """
    i = start + 1
    n = len(code)
    while i < n:
        ch = code[i]
        if ch == "\\":
            i += 2
        elif ch == "`":
            return i + 1
        elif ch == "$" and code.startswith("{", i + 1):
            i = _substitution_end(code, i + 2)
        else:
            i += 1
    return n


def _substitution_end(code: str, start: int) -> int:
    """Index just past the ``}`` closing a substitution whose body starts at *start*."""
    depth = 1
    i = start
    n = len(code)
    while i < n:
        ch = code[i]
        if ch in _QUOTES:
            i = _string_end(code, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return n
