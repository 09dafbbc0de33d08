"""
Copyright (c) 2019, Brian Stafford
Copyright (c) 2019-20, The Decred developers
See LICENSE for details
"""

import os

from ecgfp5 import ECGFp5Error


# Length of the random draw behind a sampled scalar, 320 bits.
SCALAR_SIZE = 40

MinSeedBytes = 16  # 128 bits
MaxSeedBytes = 64  # 512 bits


def checkSeedLength(length):
    """
    Check that seed length is correct.

    Args:
        length int: the seed length to be checked.

    Raises:
        ECGFp5Error if length is not between MinSeedBytes and MaxSeedBytes
        included.
    """
    if length < MinSeedBytes or length > MaxSeedBytes:
        raise ECGFp5Error(f"Invalid seed length {length}")


def generateSeed(length=MaxSeedBytes):
    """
    Generate a cryptographically-strong random seed.

    Returns:
        bytes: a random bytes object of the given length.

    Raises:
        ECGFp5Error if length is not between MinSeedBytes and MaxSeedBytes
        included.
    """
    checkSeedLength(length)
    return os.urandom(length)


def newScalarBytes():
    """
    Generate the random material for one scalar.

    Returns:
        bytes: a random object of SCALAR_SIZE length.
    """
    return generateSeed(SCALAR_SIZE)
