"""Idempotent text and JSON transforms applied to template files.

Every function here is pure: it takes the whole content of a file (or a
parsed JSON object) and returns the new content.  Each transform is written
as "make the file look like X is (or is not) present", so it can safely run
against a fresh template file, an already patched one, or a file that lacks
the anchor entirely.  When an anchor is not found the input is returned
unchanged.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

KeyPath = str | Sequence[str]

# ---------------------------------------------------------------------------
# Barrel exports
# ---------------------------------------------------------------------------


def _export_line_re(module: str) -> re.Pattern[str]:
    return re.compile(
        rf"^export\s[^;\n]*?from\s+['\"]\./{re.escape(module)}['\"];?[ \t]*(?:\n|$)",
        re.MULTILINE,
    )


def remove_export_line(text: str, module: str) -> str:
    """Strip ``export ... from './<module>';`` lines."""
    return _export_line_re(module).sub("", text)


def add_export_line_if_absent(text: str, module: str) -> str:
    """Append ``export * from './<module>';`` unless the module is already referenced."""
    if f"'./{module}'" in text or f'"./{module}"' in text:
        return text
    if text and not text.endswith("\n"):
        text += "\n"
    return f"{text}export * from './{module}';\n"


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------

_IMPORT_RE = re.compile(r"^import\b[^;]*;[ \t]*(?:\n|$)", re.MULTILINE)
_DIRECTIVE_RE = re.compile(r"""^\s*(['"])use (?:client|server)\1;?[ \t]*(?:\n|$)""")


def insert_after_last_import(text: str, line: str) -> str:
    """Insert *line* right after the last import statement.

    Without imports the line goes after a leading ``'use client'`` directive,
    or at the very top of the file.
    """
    line = line.rstrip("\n")
    if line in text:
        return text

    matches = list(_IMPORT_RE.finditer(text))
    if matches:
        end = matches[-1].end()
    else:
        directive = _DIRECTIVE_RE.match(text)
        if directive is None:
            return f"{line}\n{text}"
        end = directive.end()

    head = text[:end]
    if not head.endswith("\n"):
        head += "\n"
    return f"{head}{line}\n{text[end:]}"


def _named_import_re(module: str) -> re.Pattern[str]:
    return re.compile(
        rf"^import\s*\{{(?P<names>[^}}]*)\}}\s*from\s*['\"]{re.escape(module)}['\"];?[ \t]*(?P<nl>\n?)",
        re.MULTILINE,
    )


def _split_names(raw: str) -> list[str]:
    return [name.strip() for name in raw.split(",") if name.strip()]


def _format_named_import(names: list[str], module: str, newline: str) -> str:
    return f"import {{ {', '.join(names)} }} from '{module}';{newline}"


def add_named_import(text: str, name: str, module: str) -> str:
    """Ensure ``name`` is imported from ``module``, merging into an existing import."""
    match = _named_import_re(module).search(text)
    if match is None:
        return insert_after_last_import(text, f"import {{ {name} }} from '{module}';")

    names = _split_names(match.group("names"))
    if name in names:
        return text
    names.append(name)
    replacement = _format_named_import(names, module, match.group("nl"))
    return text[: match.start()] + replacement + text[match.end():]


def remove_named_import(text: str, name: str, module: str) -> str:
    """Drop ``name`` from the import of ``module``; drop the whole line when it empties."""
    match = _named_import_re(module).search(text)
    if match is None:
        return text

    names = _split_names(match.group("names"))
    if name not in names:
        return text
    names.remove(name)
    replacement = _format_named_import(names, module, match.group("nl")) if names else ""
    return text[: match.start()] + replacement + text[match.end():]


def remove_import_of(text: str, module: str) -> str:
    """Remove every import statement whose source is exactly *module*."""
    pattern = re.compile(
        rf"^import\b[^;]*?from\s*['\"]{re.escape(module)}['\"];?[ \t]*(?:\n|$)",
        re.MULTILINE,
    )
    return pattern.sub("", text)


# ---------------------------------------------------------------------------
# JSX composition
# ---------------------------------------------------------------------------

_FRAGMENT_RETURN_RE = re.compile(
    r"(?P<indent>[ \t]*)return\s*(?:\(\s*)?<>\s*\{children\}\s*</>\s*(?:\)\s*)?;"
)
_PAREN_RETURN_RE = re.compile(
    r"(?P<indent>[ \t]*)return\s*\(\s*"
    r"(?P<body><(?P<tag>[\w.]*)(?:\s[^>]*)?>[\s\S]*?</(?P=tag)>)\s*\);"
)
_BARE_RETURN_RE = re.compile(
    r"(?P<indent>[ \t]*)return\s*"
    r"(?P<body><(?P<tag>[\w.]*)(?:\s[^>]*)?>[\s\S]*?</(?P=tag)>)\s*;"
)
_SELF_CLOSING_RETURN_RE = re.compile(
    r"(?P<indent>[ \t]*)return\s*\(?\s*(?P<body><[\w.]+(?:\s[^>]*?)?/>)\s*\)?\s*;"
)
_CHILDREN_ONLY_RETURN_RE = re.compile(
    r"(?P<indent>[ \t]*)return\s*\(\s*\{children\}\s*\);"
)


def _open_tag(component: str, attrs: str) -> str:
    attrs = attrs.strip()
    return f"<{component} {attrs}>" if attrs else f"<{component}>"


def _shift(block: str, indent: str = "  ") -> str:
    """Indent every non-empty continuation line of *block*."""
    return re.sub(r"\n(?=[^\n])", "\n" + indent, block)


def _unshift(block: str, indent: str = "  ") -> str:
    return block.replace("\n" + indent, "\n")


def _wrapped_return(indent: str, open_tag: str, component: str, body: str) -> str:
    return (
        f"{indent}return (\n"
        f"{indent}  {open_tag}\n"
        f"{indent}    {body}\n"
        f"{indent}  </{component}>\n"
        f"{indent});"
    )


def wrap_returned_jsx_with(text: str, component: str, attrs: str = "") -> str:
    """Nest the returned JSX expression inside ``<component>``.

    Handles parenthesised, bare and self-closing returns.  A bare
    ``<>{children}</>`` fragment is replaced by the component rather than
    nested inside it.  No-op when ``<component`` already appears.
    """
    if f"<{component}" in text:
        return text
    open_tag = _open_tag(component, attrs)

    fragment = _FRAGMENT_RETURN_RE.search(text)
    if fragment is not None:
        wrapped = _wrapped_return(fragment.group("indent"), open_tag, component, "{children}")
        return text[: fragment.start()] + wrapped + text[fragment.end():]

    for pattern in (_PAREN_RETURN_RE, _BARE_RETURN_RE, _SELF_CLOSING_RETURN_RE):
        match = pattern.search(text)
        if match is not None:
            body = _shift(match.group("body"))
            wrapped = _wrapped_return(match.group("indent"), open_tag, component, body)
            return text[: match.start()] + wrapped + text[match.end():]
    return text


def wrap_children_with(text: str, component: str, attrs: str = "") -> str:
    """Wrap the ``{children}`` token of the returned JSX with ``<component>``."""
    if f"<{component}" in text:
        return text
    if _FRAGMENT_RETURN_RE.search(text):
        return wrap_returned_jsx_with(text, component, attrs)

    ret = re.search(r"\breturn\b", text)
    if ret is None:
        return text
    pos = text.find("{children}", ret.end())
    if pos == -1:
        return text

    line_start = text.rfind("\n", 0, pos) + 1
    prefix = text[line_start:pos]
    open_tag = _open_tag(component, attrs)
    if prefix.strip():
        replacement = f"{open_tag}{{children}}</{component}>"
    else:
        replacement = f"{open_tag}\n{prefix}  {{children}}\n{prefix}</{component}>"
    return text[:pos] + replacement + text[pos + len("{children}"):]


def wrap_element_with(text: str, target: str, component: str, attrs: str = "") -> str:
    """Wrap the first ``<target>...</target>`` element with ``<component>``."""
    if f"<{component}" in text:
        return text
    name = re.escape(target)
    match = re.search(rf"<{name}(?:\s[^>]*)?>[\s\S]*?</{name}>", text)
    if match is None:
        return text

    element = match.group(0)
    line_start = text.rfind("\n", 0, match.start()) + 1
    prefix = text[line_start: match.start()]
    open_tag = _open_tag(component, attrs)
    if prefix.strip():
        replacement = f"{open_tag}{element}</{component}>"
    else:
        replacement = f"{open_tag}\n{prefix}  {_shift(element)}\n{prefix}</{component}>"
    return text[: match.start()] + replacement + text[match.end():]


def unwrap_jsx(text: str, component: str) -> str:
    """Remove ``<component>`` while keeping its children.

    When only ``{children}`` remains in the return expression it collapses
    back to ``return <>{children}</>;``.
    """
    name = re.escape(component)
    match = re.search(rf"<{name}(?:\s[^>]*)?>(?P<inner>[\s\S]*?)</{name}>", text)
    if match is None:
        return text

    inner = match.group("inner")
    content = _unshift(inner.strip()) if "\n" in inner else inner.strip()
    text = text[: match.start()] + content + text[match.end():]

    collapsed = _CHILDREN_ONLY_RETURN_RE.search(text)
    if collapsed is not None:
        text = (
            text[: collapsed.start()]
            + f"{collapsed.group('indent')}return <>{{children}}</>;"
            + text[collapsed.end():]
        )
    return text


# ---------------------------------------------------------------------------
# className lists
# ---------------------------------------------------------------------------

_BODY_CLASS_RE = re.compile(
    r"(?P<head><body\b[^>]*?className=)(?:\"(?P<plain>[^\"]*)\"|\{`(?P<tpl>[^`]*)`\})"
)


def _rewrite_body_classes(text: str, edit: Callable[[list[str]], list[str]]) -> str:
    match = _BODY_CLASS_RE.search(text)
    if match is None:
        return text
    is_template = match.group("tpl") is not None
    existing = match.group("tpl") if is_template else match.group("plain")
    tokens = existing.split()
    updated = edit(tokens)
    if updated == tokens:
        return text
    joined = " ".join(updated)
    value = f"{{`{joined}`}}" if is_template else f'"{joined}"'
    return text[: match.start()] + match.group("head") + value + text[match.end():]


def add_body_classes(text: str, classes: str) -> str:
    """Append missing utility classes to the ``<body className=...>`` attribute."""
    wanted = classes.split()
    return _rewrite_body_classes(
        text, lambda tokens: tokens + [c for c in wanted if c not in tokens]
    )


def remove_body_classes(text: str, classes: str) -> str:
    unwanted = set(classes.split())
    return _rewrite_body_classes(text, lambda tokens: [c for c in tokens if c not in unwanted])


# ---------------------------------------------------------------------------
# Plain lines and placeholders
# ---------------------------------------------------------------------------


def remove_line(text: str, line: str) -> str:
    """Remove every line whose stripped content equals *line*."""
    pattern = re.compile(rf"^[ \t]*{re.escape(line.strip())}[ \t]*(?:\n|$)", re.MULTILINE)
    return pattern.sub("", text)


def remove_lines_containing(text: str, needle: str) -> str:
    pattern = re.compile(rf"^[^\n]*{re.escape(needle)}[^\n]*(?:\n|$)", re.MULTILINE)
    return pattern.sub("", text)


def replace_placeholders(text: str, mapping: Mapping[str, str]) -> str:
    """Substitute each placeholder token with its value; empty values are skipped."""
    for token, value in mapping.items():
        if value:
            text = text.replace(token, value)
    return text


# ---------------------------------------------------------------------------
# .env files
# ---------------------------------------------------------------------------


def upsert_env_var(text: str, key: str, value: str) -> str:
    """Set ``KEY=value``, replacing an existing assignment or appending one."""
    pattern = re.compile(rf"^{re.escape(key)}=.*$", re.MULTILINE)
    assignment = f"{key}={value}"
    if pattern.search(text):
        return pattern.sub(lambda _: assignment, text, count=1)
    if text and not text.endswith("\n"):
        text += "\n"
    return f"{text}{assignment}\n"


def remove_env_var(text: str, key: str) -> str:
    pattern = re.compile(rf"^{re.escape(key)}=.*(?:\n|$)", re.MULTILINE)
    return pattern.sub("", text)


# ---------------------------------------------------------------------------
# JSON objects
# ---------------------------------------------------------------------------


def _keys(key_path: KeyPath) -> list[str]:
    if isinstance(key_path, str):
        return key_path.split(".")
    return list(key_path)


def set_json_field(data: Mapping[str, Any], key_path: KeyPath, value: Any) -> dict[str, Any]:
    """Return a copy of *data* with *value* stored at *key_path*.

    Dotted strings address nested objects; pass a sequence when a key itself
    contains a dot.  Missing intermediate objects are created.
    """
    result = copy.deepcopy(dict(data))
    keys = _keys(key_path)
    node = result
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[keys[-1]] = value
    return result


def delete_json_field(data: Mapping[str, Any], key_path: KeyPath) -> dict[str, Any]:
    """Return a copy of *data* without *key_path*.

    Parent objects left empty by the deletion are removed as well.
    """
    result = copy.deepcopy(dict(data))
    keys = _keys(key_path)
    chain: list[dict[str, Any]] = [result]
    node = result
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            return result
        chain.append(child)
        node = child
    if keys[-1] not in node:
        return result
    del node[keys[-1]]

    for depth in range(len(keys) - 1, 0, -1):
        if chain[depth]:
            break
        del chain[depth - 1][keys[depth - 1]]
    return result


def has_dependency(data: Mapping[str, Any], name: str) -> bool:
    return any(
        isinstance(data.get(section), Mapping) and name in data[section]
        for section in ("dependencies", "devDependencies")
    )


def add_dependency(
    data: Mapping[str, Any], name: str, version: str, dev: bool = False
) -> dict[str, Any]:
    """Declare *name* unless it is already declared in either section."""
    if has_dependency(data, name):
        return copy.deepcopy(dict(data))
    section = "devDependencies" if dev else "dependencies"
    return set_json_field(data, (section, name), version)


def remove_dependency(data: Mapping[str, Any], name: str) -> dict[str, Any]:
    """Remove *name* from both dependency sections."""
    result = delete_json_field(data, ("dependencies", name))
    return delete_json_field(result, ("devDependencies", name))
