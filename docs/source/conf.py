# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

import os
import sys

# Project root on sys.path so autodoc can import bus, sim and the root modules
sys.path.insert(0, os.path.abspath("../.."))

project = 'VANET Fault Simulator'
copyright = '2026, VANET Sim Team'
author = 'VANET Sim Team'
release = '0.1'

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",    # generate docs from docstrings
    "sphinx.ext.napoleon",   # bus uses Google style, sim uses NumPy style
    "sphinx.ext.viewcode",
    "sphinx_rtd_dark_mode",
]

templates_path = ['_templates']
exclude_patterns = ["**/test_*"]

# -- Options for HTML output -------------------------------------------------

html_theme = "sphinx_rtd_theme"
default_dark_mode = True
html_static_path = []

# pandas is only needed by the ledger writer
autodoc_mock_imports = ["pandas"]
