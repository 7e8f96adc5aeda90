"""
Matrix decompositions.

Every decomposition overwrites the matrix it is given and keeps it as
part of the returned factors. Clone first to keep the original.
"""

from pydense.decomposition.cholesky import cholesky, cholesky_into
from pydense.decomposition.lu import LUFactors, lu
from pydense.decomposition.qr import QRFactor, qr
from pydense.decomposition.lq import LQFactor, lq
from pydense.decomposition.eigen import EigenFactors, eigen
from pydense.decomposition.svd import SVDFactors, svd

__all__ = [
    "cholesky",
    "cholesky_into",
    "LUFactors",
    "lu",
    "QRFactor",
    "qr",
    "LQFactor",
    "lq",
    "EigenFactors",
    "eigen",
    "SVDFactors",
    "svd",
]
