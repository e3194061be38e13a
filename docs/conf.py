"""Sphinx configuration for the guardrailsim simulator."""

import os
import sys

# Project root on sys.path so autodoc can import guardrailsim uninstalled
sys.path.insert(0, os.path.abspath(".."))

# -- Project information ---

project = "guardrailsim"
author = "guardrailsim Contributors"
release = "0.1.0"

# -- General configuration ---

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",
]

# Google-style docstrings throughout the package
napoleon_google_docstrings = True
napoleon_numpy_docstrings = False
napoleon_include_init_with_doc = False

autodoc_member_order = "bysource"
autodoc_typehints = "description"
autodoc_default_options = {
    "members": True,
    "undoc-members": False,
}

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable", None),
    "scipy": ("https://docs.scipy.org/doc/scipy", None),
}

# -- Options for HTML output ---

html_theme = "alabaster"

exclude_patterns = ["_build"]
