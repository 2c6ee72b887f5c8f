# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
sys.path.insert(0, os.path.abspath('..'))

# -- Project information -----------------------------------------------------

project = 'patchable'
copyright = '2024, patchable contributors'
author = 'patchable contributors'
release = '0.1.0'
version = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']

# -- Extension configuration -------------------------------------------------

# Google-style docstrings only
napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = False
napoleon_use_param = True
napoleon_use_rtype = True
napoleon_attr_annotations = True

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'undoc-members': False,
    'exclude-members': '__weakref__,__dataclass_fields__,__dataclass_params__,__match_args__',
}

# Registration attributes of record patch classes are internal
PATCH_REGISTRATION_ATTRS = {'__patch_target__', '__patch_fields__', '__patch_strict__', '__patch_type__'}


def skip_patch_registration(app, what, name, obj, skip, options):
    """Skip the registration attributes set by derive_patch."""
    if name in PATCH_REGISTRATION_ATTRS:
        return True
    return skip


def setup(app):
    app.connect('autodoc-skip-member', skip_patch_registration)


autodoc_typehints = 'description'
autodoc_typehints_description_target = 'documented'

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
}
