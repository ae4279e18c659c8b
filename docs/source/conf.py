import os
import sys

sys.path.insert(0, os.path.abspath("../../src"))

project = "Reqtimeout"
import reqtimeout

release = reqtimeout.__version__

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.intersphinx",
    "myst_parser",
]

templates_path = ["_templates"]
exclude_patterns = []

# MyST-Parser configuration
myst_heading_anchors = 3
myst_enable_extensions = ["colon_fence"]

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
}

suppress_warnings = [
    "ref.python",  # Duplicate cross-reference warnings from re-exports
    "ref.class",  # External class references (asyncio, ssl, etc.)
]

# Autodoc configuration
autodoc_default_options = {
    "imported-members": False,
    "show-inheritance": True,
}
autodoc_class_content = "init"
autodoc_member_order = "bysource"

html_theme = "furo"
html_title = "Reqtimeout"
