"""
Copyright (c) 2019, the Decred developers
See LICENSE for details
"""

import random

import pytest

from ecgfp5.crypto.scalar import ORDER, Scalar
from ecgfp5.util import helpers


# Seed initialization is delegated to tests.
# random.seed(0)


@pytest.fixture
def randScalars():
    def _randScalars(n, seed=0):
        rng = random.Random(seed)
        return [Scalar.fromInt(rng.randrange(ORDER)) for _ in range(n)]

    return _randScalars


@pytest.fixture
def edgeScalars():
    return [Scalar.fromInt(i) for i in (0, 1, 2, ORDER - 2, ORDER - 1, 1 << 318)]


@pytest.fixture(scope="module")
def prepareLogger(request):
    helpers.prepareLogging()
