from __future__ import absolute_import, division, print_function

"""
WARNING: Do not modify this file.
"""

__all__ = [
    "__title__", "__summary__", "__version__", "__author__", "__email__", "__license__", "__copyright__", "__url__"
]

__title__ = "feldspar"

__url__ = "https://github.com/feldspar-dkg/feldspar"

__summary__ = "Feldman-verifiable distributed key generation for mutually distrusting participants."

__version__ = "0.4.0"

__author__ = "Feldspar Developers"

__email__ = "dev@feldspar-dkg.org"

__license__ = "GNU Affero General Public License, Version 3"

__copyright__ = 'Copyright (C) 2026 Feldspar Developers'
