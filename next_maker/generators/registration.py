"""Register generated code in the project's shared wiring files.

Two anchors are edited: ``src/store/rootReducer.ts`` (reducer import plus a
``combineReducers`` entry) and ``src/lib/config/app-apis.ts`` (an endpoint
group in the ``AppApis`` object).  Both edits are idempotent.
"""

from __future__ import annotations

import re
from pathlib import Path

from next_maker.core import patchers
from next_maker.core.files import file_exists, read_file, write_file
from next_maker.errors import AnchorMissingError
from next_maker.utils import kebab_to_camel

_COMBINE_REDUCERS_RE = re.compile(r"combineReducers\(\{(?P<body>[^}]*)\}\)", re.DOTALL)
_APP_APIS_RE = re.compile(r"export const AppApis = \{[\s\S]*?\} as const;")
_APP_APIS_CLOSE = "} as const;"


def register_in_root_reducer(text: str, name: str, persist: bool, import_path: str) -> str:
    """Import ``<name>Reducer`` from *import_path* and add it to ``combineReducers``.

    Persisted reducers are wrapped with ``persistReducer`` and their persist
    config is imported alongside.

    Raises:
        AnchorMissingError: If the file has no ``combineReducers({...})`` call.
    """
    match = _COMBINE_REDUCERS_RE.search(text)
    if match is None:
        raise AnchorMissingError("combineReducers", "rootReducer.ts has no combineReducers({...})")

    camel = kebab_to_camel(name)
    reducer = f"{camel}Reducer"
    if re.search(rf"^\s*{re.escape(camel)}\s*:", match.group("body"), re.MULTILINE):
        return text

    if persist:
        config = f"{camel}PersistConfig"
        entry = f"{camel}: persistReducer({config}, {reducer}),"
        imports = f"import {{ {reducer}, {config} }} from '{import_path}';"
    else:
        entry = f"{camel}: {reducer},"
        imports = f"import {{ {reducer} }} from '{import_path}';"

    body = match.group("body").rstrip()
    updated = f"combineReducers({{{body}\n  {entry}\n}})"
    text = text[: match.start()] + updated + text[match.end():]
    if persist:
        text = patchers.add_named_import(text, "persistReducer", "redux-persist")
    return patchers.insert_after_last_import(text, imports)


def register_api_endpoints(text: str, name: str) -> str:
    """Add a ``base``/``getAll`` endpoint group for *name* to ``AppApis``.

    Raises:
        AnchorMissingError: If the ``AppApis`` object cannot be found.
    """
    app_apis = _APP_APIS_RE.search(text)
    if app_apis is None:
        raise AnchorMissingError("AppApis", "app-apis.ts has no `export const AppApis = {...} as const;`")
    camel = kebab_to_camel(name)
    if re.search(rf"^\s*{re.escape(camel)}\s*:\s*\{{", app_apis.group(0), re.MULTILINE):
        return text

    endpoint = (
        f"  {camel}: {{\n"
        f"    base: `${{API_PREFIX}}/{name}`,\n"
        f"    getAll: `${{API_PREFIX}}/{name}`,\n"
        f"  }},\n"
    )
    at = text.rindex(_APP_APIS_CLOSE)
    head = text[:at].rstrip()
    if not head.endswith((",", "{")):
        head += ","
    return f"{head}\n{endpoint}{text[at:]}"


# ---------------------------------------------------------------------------
# File-level wrappers
# ---------------------------------------------------------------------------


def register_reducer_file(path: Path, name: str, persist: bool, import_path: str) -> None:
    if not file_exists(path):
        raise AnchorMissingError(path)
    write_file(path, register_in_root_reducer(read_file(path), name, persist, import_path))


def register_endpoints_file(path: Path, name: str) -> None:
    if not file_exists(path):
        raise AnchorMissingError(path)
    write_file(path, register_api_endpoints(read_file(path), name))
