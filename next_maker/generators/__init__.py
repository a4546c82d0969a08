"""Template rendering and code generators for features, slices and services.

Usage::

    from next_maker.generators import CodeGenerator

    generator = CodeGenerator(workspace)
    await generator.generate_slice("cart", persist=True)
"""

from next_maker.generators.code_gen import CodeGenerator
from next_maker.generators.registration import register_api_endpoints, register_in_root_reducer
from next_maker.generators.templates import TemplateRenderer

__all__ = [
    "CodeGenerator",
    "TemplateRenderer",
    "register_api_endpoints",
    "register_in_root_reducer",
]
