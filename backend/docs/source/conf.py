import pathlib
import sys

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parent.parent.parent))

project = 'Map Multi-LineString Field'
release = '0.1.0'

exclude_patterns = [
    '.venv',
    'venv',
    '.pytest_cache',
]

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx_autodoc_typehints',
    'myst_parser',
]

napoleon_google_docstring = True
napoleon_numpy_docstring = False

html_theme = 'sphinx_rtd_theme'

autodoc_default_options = {
    'members': True,
    'show-inheritance': True,
}

source_suffix = {
    '.rst': 'restructuredtext',
    '.md': 'markdown',
}
