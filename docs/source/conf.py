# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html


# -- Path setup --------------------------------------------------------------
import os
import sys
sys.path.insert(0, os.path.abspath('../..'))
import otterusvsim

# -- Project information -----------------------------------------------------

project = 'Otter-USVsim'
release = otterusvsim.__version__


# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',           # Auto-extract docstrings
    'sphinx.ext.napoleon',          # NumPy docstrings
    'sphinx.ext.mathjax',           # Render LaTeX math
    'sphinx.ext.autosummary',       # Generate summary tables
]

templates_path = ['_templates']
exclude_patterns = []


# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']
html_show_copyright = False


# -- Extension configuration -------------------------------------------------

napoleon_google_docstring = False
napoleon_numpy_docstring = True
napoleon_include_init_with_doc = True
napoleon_use_admonition_for_notes = True
napoleon_custom_sections = [
    'Assigned Methods (Function Handles)',
    'Module Constants',
    'Utility Functions',
]

autodoc_default_options = {
    'members': True,
    'undoc-members': True,
    'show-inheritance': True,
    'member-order': 'bysource',
}
autodoc_typehints = 'description'

autosummary_generate = True
