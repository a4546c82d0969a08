"""next-maker: scaffold and evolve Next.js starter projects.

Usage::

    next-maker init my-app --yes
    next-maker setup --feature dark --action install
    next-maker feature user-profile --store persist --service axios
"""

__version__ = "0.1.0"
