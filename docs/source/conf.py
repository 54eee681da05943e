# Sphinx configuration for the agritwin API reference.
#
# Build from the repository root with ``sphinx-build docs/source docs/build``
# after ``pip install -e ".[docs]"``.

import agritwin

# -- Project -----------------------------------------------------------------

project = "agritwin"
author = "agritwin developers"
copyright = f"2025, {author}"
release = agritwin.__version__
version = ".".join(release.split(".")[:2])

# -- Extensions --------------------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
    "sphinx.ext.viewcode",
    "sphinx_autodoc_typehints",
    "sphinx_copybutton",
    "sphinx_design",
]

autosummary_generate = True

# Frozen dataclasses document their fields in an "Attributes" section;
# undocumented members would repeat them.
autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "undoc-members": False,
    "show-inheritance": True,
}
autodoc_typehints = "description"

napoleon_numpy_docstring = True
napoleon_google_docstring = False
napoleon_attr_annotations = False
napoleon_use_ivar = True

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "pandas": ("https://pandas.pydata.org/docs/", None),
    "h5py": ("https://docs.h5py.org/en/stable/", None),
    "matplotlib": ("https://matplotlib.org/stable/", None),
}

exclude_patterns = []

# -- HTML --------------------------------------------------------------------

html_theme = "pydata_sphinx_theme"
html_theme_options = {
    "show_nav_level": 2,
    "navigation_depth": 3,
    "secondary_sidebar_items": ["page-toc"],
    "show_prev_next": False,
}
pygments_style = "default"
pygments_dark_style = "github-dark"
