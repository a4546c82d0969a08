"""Provider composition for the root provider and root layout.

The root provider nests one wrapper component per selected feature around
``{children}``.  Nesting order is fixed: the state store provider is
outermost, the theme provider sits inside it, and the i18n provider is
innermost.  The file is either rendered from scratch (``init``) or edited in
place one provider at a time (``setup``), and both paths produce the same
nesting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from next_maker.core import patchers
from next_maker.generators.templates import TemplateRenderer

PROVIDERS_MODULE = "@/providers"
I18N_TYPES_MODULE = "@/types/i18n"


@dataclass(frozen=True)
class ProviderSpec:
    component: str
    module: str = PROVIDERS_MODULE
    attrs: str = ""


STORE_PROVIDER = ProviderSpec("StoreProvider")
THEME_PROVIDER = ProviderSpec("CustomThemeProvider")
INTL_PROVIDER = ProviderSpec(
    "NextIntlClientProvider", module="next-intl", attrs="locale={locale} messages={messages}"
)

#: Outermost first.
PROVIDER_ORDER: tuple[ProviderSpec, ...] = (STORE_PROVIDER, THEME_PROVIDER, INTL_PROVIDER)

LIGHT_BODY_CLASSES = "bg-light antialiased"
DARK_BODY_CLASS = "dark:bg-dark"


def provider_chain(redux: bool, dark_mode: bool, i18n: bool) -> list[ProviderSpec]:
    """Selected providers, outermost first."""
    selected = {STORE_PROVIDER: redux, THEME_PROVIDER: dark_mode, INTL_PROVIDER: i18n}
    return [spec for spec in PROVIDER_ORDER if selected[spec]]


def fold_providers(chain: list[ProviderSpec]) -> str:
    """Build the nested JSX for *chain* around ``{children}``.

    Returns an empty string when there is nothing to wrap.
    """
    if not chain:
        return ""
    body = "{children}"
    for spec in reversed(chain):
        open_tag = f"<{spec.component} {spec.attrs}>" if spec.attrs else f"<{spec.component}>"
        nested = body.replace("\n", "\n  ")
        body = f"{open_tag}\n  {nested}\n</{spec.component}>"
    return body


def _imports_for(chain: list[ProviderSpec]) -> list[str]:
    imports: list[str] = []
    local = [spec.component for spec in chain if spec.module == PROVIDERS_MODULE]
    if local:
        imports.append(f"import {{ {', '.join(local)} }} from '{PROVIDERS_MODULE}';")
    if INTL_PROVIDER in chain:
        imports.append("import { NextIntlClientProvider, AbstractIntlMessages } from 'next-intl';")
        imports.append(f"import {{ SupportedLocale }} from '{I18N_TYPES_MODULE}';")
    return imports


def render_root_provider(
    renderer: TemplateRenderer, redux: bool, dark_mode: bool, i18n: bool
) -> str:
    chain = provider_chain(redux, dark_mode, i18n)
    return renderer.render(
        "root_provider.tsx.j2",
        {"imports": _imports_for(chain), "body": fold_providers(chain), "i18n": i18n},
    )


def body_classes(dark_mode: bool) -> str:
    if dark_mode:
        return f"bg-light {DARK_BODY_CLASS} antialiased"
    return LIGHT_BODY_CLASSES


def render_root_layout(
    renderer: TemplateRenderer, title: str, description: str, dark_mode: bool, i18n: bool
) -> str:
    template = "locale_layout.tsx.j2" if i18n else "root_layout.tsx.j2"
    return renderer.render(
        template,
        {"title": title, "description": description, "body_classes": body_classes(dark_mode)},
    )


def render_home_page(renderer: TemplateRenderer, title: str, i18n: bool) -> str:
    template = "locale_page.tsx.j2" if i18n else "home_page.tsx.j2"
    return renderer.render(template, {"title": title})


# ---------------------------------------------------------------------------
# In-place edits of an existing root provider
# ---------------------------------------------------------------------------

_ROOT_PROVIDER_SIGNATURE_RE = re.compile(
    r"export const RootProvider = \(\{(?P<params>[\s\S]*?)\}: \{(?P<types>[\s\S]*?)\}\) => \{"
)


def add_locale_props(text: str) -> str:
    """Give ``RootProvider`` the ``locale`` and ``messages`` props."""
    if "locale: SupportedLocale" in text:
        return text
    return _ROOT_PROVIDER_SIGNATURE_RE.sub(
        "export const RootProvider = ({\n  children,\n  locale,\n  messages,\n}: {\n"
        "  children: React.ReactNode;\n  locale: SupportedLocale;\n"
        "  messages: AbstractIntlMessages;\n}) => {",
        text,
        count=1,
    )


def remove_locale_props(text: str) -> str:
    if "locale: SupportedLocale" not in text:
        return text
    return _ROOT_PROVIDER_SIGNATURE_RE.sub(
        "export const RootProvider = ({\n  children,\n}: {\n  children: React.ReactNode;\n}) => {",
        text,
        count=1,
    )


def add_provider(text: str, spec: ProviderSpec) -> str:
    """Insert *spec* into an existing root provider at its ordered position.

    The provider wraps the outermost present provider that belongs inside
    it; with none present it wraps ``{children}`` (replacing a bare
    fragment).  Already-present providers are left alone.
    """
    if spec == INTL_PROVIDER:
        text = patchers.add_named_import(text, "NextIntlClientProvider", "next-intl")
        text = patchers.add_named_import(text, "AbstractIntlMessages", "next-intl")
        text = patchers.add_named_import(text, "SupportedLocale", I18N_TYPES_MODULE)
        text = add_locale_props(text)
    else:
        text = patchers.add_named_import(text, spec.component, spec.module)

    if f"<{spec.component}" in text:
        return text

    rank = PROVIDER_ORDER.index(spec)
    inner = [s for s in PROVIDER_ORDER[rank + 1:] if f"<{s.component}" in text]
    if inner:
        return patchers.wrap_element_with(text, inner[0].component, spec.component, spec.attrs)
    return patchers.wrap_children_with(text, spec.component, spec.attrs)


def remove_provider(text: str, spec: ProviderSpec) -> str:
    """Reverse ``add_provider``: unwrap the component and drop its imports."""
    text = patchers.unwrap_jsx(text, spec.component)
    if spec == INTL_PROVIDER:
        text = patchers.remove_named_import(text, "NextIntlClientProvider", "next-intl")
        text = patchers.remove_named_import(text, "AbstractIntlMessages", "next-intl")
        text = patchers.remove_named_import(text, "SupportedLocale", I18N_TYPES_MODULE)
        text = remove_locale_props(text)
    else:
        text = patchers.remove_named_import(text, spec.component, spec.module)
    return text
