"""
Copyright (c) 2020, the Decred developers
See LICENSE for details

Arithmetic modulo the prime order of the ecGFp5 group, the curve defined over
the degree-5 extension of the Goldilocks field GF(2^64 - 2^32 + 1).
"""

from ecgfp5 import ECGFp5Error

from . import rando


# Constants related to the limb representation.

# LIMBS is the number of 32-bit words used to represent a 320-bit value.
LIMBS = 10

# LIMB_BITS is the width of each word.
LIMB_BITS = 32

# LIMB_MASK is the mask for the bits of a single word. It doubles as the
# all-ones selection mask.
LIMB_MASK = (1 << LIMB_BITS) - 1

# SCALAR_BYTES is the length of the little-endian byte encoding of a scalar.
SCALAR_BYTES = LIMBS * LIMB_BITS // 8

# topByteMask clears the 2 most significant bits of the last encoded byte,
# bringing a random 320-bit value below 2^318 < N.
topByteMask = 0x3F

# N is the group order
# 1067993516717146951041484916571792702745057740581727230159139685185762082554198619328292418486241
# in radix-2^32 form, least significant limb first.
N = (
    2492202977,
    3893352854,
    3609501852,
    3901250617,
    3484943929,
    2147483622,
    22,
    2147483633,
    2147483655,
    2147483645,
)

# R2 is (2^320)^2 mod N, used to move values into Montgomery form.
R2 = (
    3812476729,
    2685403612,
    1063431375,
    1815226579,
    2446296357,
    3520566988,
    359973336,
    2866806621,
    2359448053,
    1254757298,
)

# NEG_N0_INV is -1 / N[0] mod 2^32.
NEG_N0_INV = 91978719

# N_MINUS_2 is the Fermat inversion exponent N - 2.
N_MINUS_2 = (
    2492202975,
    3893352854,
    3609501852,
    3901250617,
    3484943929,
    2147483622,
    22,
    2147483633,
    2147483655,
    2147483645,
)

ZERO = (0,) * LIMBS
ONE = (1,) + (0,) * (LIMBS - 1)


def limbsToInt(limbs):
    """
    Combine little-endian 32-bit limbs into an integer.

    Args:
        limbs (iterable(int)): the limbs, least significant first.

    Returns:
        int: the encoded integer.
    """
    i = 0
    for limb in reversed(tuple(limbs)):
        i = (i << LIMB_BITS) | limb
    return i


def intToLimbs(i):
    """
    Split a non-negative integer below 2^320 into 10 little-endian limbs.

    Args:
        i (int): the integer.

    Returns:
        tuple(int): the limbs, least significant first.

    Raises:
        ECGFp5Error: if i is not an integer, is negative or does not fit in
            320 bits.
    """
    if not isinstance(i, int):
        raise ECGFp5Error(f"expected an integer, got {type(i).__name__}")
    if i < 0:
        raise ECGFp5Error(f"cannot encode negative integer {i}")
    if i >> (LIMBS * LIMB_BITS):
        raise ECGFp5Error("integer does not fit in 320 bits")
    return tuple((i >> (LIMB_BITS * k)) & LIMB_MASK for k in range(LIMBS))


# ORDER is N as a Python integer.
ORDER = limbsToInt(N)


def addInner(a, b):
    """
    addInner adds two limb vectors with carry propagation but without
    reduction. The carry out of the top limb is dropped.

    Args:
        a (sequence(int)): the first addend.
        b (sequence(int)): the second addend.

    Returns:
        list(int): the unreduced sum.
    """
    r = [0] * LIMBS
    c = 0
    for i in range(LIMBS):
        t = a[i] + b[i] + c
        r[i] = t & LIMB_MASK
        c = t >> LIMB_BITS
    return r


def subInner(a, b):
    """
    subInner subtracts b from a with borrow propagation but without
    reduction.

    Args:
        a (sequence(int)): the minuend.
        b (sequence(int)): the subtrahend.

    Returns:
        list(int): the difference modulo 2^320.
        int: 0xFFFFFFFF if the subtraction borrowed, 0 otherwise.
    """
    r = [0] * LIMBS
    c = 0
    for i in range(LIMBS):
        t = a[i] - b[i] - c
        r[i] = t & LIMB_MASK
        # A negative t shifts to -1, whose low bit is set.
        c = (t >> LIMB_BITS) & 1
    return r, -c & LIMB_MASK


def select(c, a0, a1):
    """
    select returns a0 when c is 0 and a1 when c is 0xFFFFFFFF, blending the
    words bitwise rather than branching on c.

    Args:
        c (int): the selection mask.
        a0 (sequence(int)): the limbs chosen when c == 0.
        a1 (sequence(int)): the limbs chosen when c == 0xFFFFFFFF.

    Returns:
        list(int): the selected limbs.
    """
    return [x ^ (c & (x ^ y)) for x, y in zip(a0, a1)]


def montMul(a, b):
    """
    montMul computes a * b / 2^320 mod N with the coarsely integrated operand
    scanning method. Both inputs MUST be less than N. The result is less
    than N.

    Args:
        a (sequence(int)): the first factor.
        b (sequence(int)): the second factor.

    Returns:
        list(int): the Montgomery product.
    """
    r = [0] * LIMBS
    a0 = a[0]
    for i in range(LIMBS):
        m = b[i]
        # f is chosen so that the low word of r + a*m + f*N is zero.
        f = ((a0 * m + r[0]) * NEG_N0_INV) & LIMB_MASK
        cc1 = 0
        cc2 = 0
        for j in range(LIMBS):
            # Each accumulation is at most (2^32 - 1)^2 + 2 * (2^32 - 1),
            # which fits in 64 bits.
            t = a[j] * m + r[j] + cc1
            cc1 = t >> LIMB_BITS
            t = f * N[j] + (t & LIMB_MASK) + cc2
            cc2 = t >> LIMB_BITS
            if j > 0:
                r[j - 1] = t & LIMB_MASK
        r[LIMBS - 1] = (cc1 + cc2) & LIMB_MASK

    # r < 2N at this point, so one conditional subtraction reduces it.
    r2, c = subInner(r, N)
    return select(c, r2, r)


class Scalar:
    """
    Scalar is an immutable element of the ecGFp5 scalar field, the integers
    modulo the prime group order N. The value is held as ten 32-bit limbs,
    least significant first.

    WARNING: The arithmetic methods do not validate their operands. Every
    operand MUST be canonical, i.e. hold a value strictly less than N.
    Scalars created by fromInt, fromHex, fromBytes, rand and by the
    arithmetic itself always are. A non-canonical operand gives a wrong
    result rather than an error. Use isCanonical to check a value built
    directly from limbs.

    The same type is used for values in standard form and in Montgomery form
    (v * 2^320 mod N). Nothing tags which form a Scalar is in. Only montMul,
    toMont and fromMont deal in Montgomery form. All other operations take
    and return standard form.
    """

    __slots__ = ("_limbs",)

    def __init__(self, limbs=None):
        """
        Args:
            limbs (iterable(int)): optional. Exactly ten limbs, least
                significant first, each in the range [0, 2^32). The value is
                not reduced. Defaults to zero.

        Raises:
            ECGFp5Error: if the limb count or a limb value is invalid.
        """
        limbs = ZERO if limbs is None else tuple(limbs)
        if len(limbs) != LIMBS:
            raise ECGFp5Error(f"expected {LIMBS} limbs, got {len(limbs)}")
        for limb in limbs:
            if not isinstance(limb, int) or not 0 <= limb <= LIMB_MASK:
                raise ECGFp5Error(f"limb out of range: {limb!r}")
        object.__setattr__(self, "_limbs", limbs)

    @classmethod
    def _fromLimbs(cls, limbs):
        # Skips validation for limbs produced by the arithmetic itself.
        s = object.__new__(cls)
        object.__setattr__(s, "_limbs", tuple(limbs))
        return s

    def __setattr__(self, name, value):
        raise AttributeError("Scalar is immutable")

    def __delattr__(self, name):
        raise AttributeError("Scalar is immutable")

    def __reduce__(self):
        return (Scalar, (self._limbs,))

    @property
    def limbs(self):
        """
        The ten 32-bit limbs, least significant first.
        """
        return self._limbs

    @classmethod
    def zero(cls):
        return cls._fromLimbs(ZERO)

    @classmethod
    def one(cls):
        return cls._fromLimbs(ONE)

    @classmethod
    def fromInt(cls, i):
        """
        fromInt creates the scalar equal to i modulo N.

        Args:
            i (int): any integer. Negative values are reduced as well.

        Returns:
            Scalar: the reduced scalar.

        Raises:
            ECGFp5Error: if i is not an integer.
        """
        if not isinstance(i, int):
            raise ECGFp5Error(f"expected an integer, got {type(i).__name__}")
        return cls._fromLimbs(intToLimbs(i % ORDER))

    @classmethod
    def fromHex(cls, hexString):
        """
        fromHex decodes a big-endian hex string and reduces the value
        modulo N.

        Args:
            hexString (str): the hex string, with or without a 0x prefix.

        Returns:
            Scalar: the reduced scalar.

        Raises:
            ECGFp5Error: if the string is not hexadecimal.
        """
        try:
            i = int(hexString, 16)
        except ValueError as e:
            raise ECGFp5Error(f"invalid hex string {hexString!r}") from e
        return cls.fromInt(i)

    @classmethod
    def fromBytes(cls, b):
        """
        fromBytes decodes a canonical 40-byte little-endian encoding.

        Args:
            b (bytes-like): the encoded scalar.

        Returns:
            Scalar: the decoded scalar.

        Raises:
            ECGFp5Error: if the length is wrong or the value is not less
                than N.
        """
        b = bytes(b)
        if len(b) != SCALAR_BYTES:
            raise ECGFp5Error(f"expected {SCALAR_BYTES} bytes, got {len(b)}")
        s = cls._fromLimbs(_bytesToLimbs(b))
        if not s.isCanonical():
            raise ECGFp5Error("encoded scalar is not less than the group order")
        return s

    @classmethod
    def rand(cls):
        """
        rand samples a random scalar. 320 random bits are drawn and the two
        most significant bits are cleared, so the result is less than 2^318
        and therefore less than N. Values in [2^318, N) are never produced.

        Returns:
            Scalar: the random scalar.
        """
        b = bytearray(rando.newScalarBytes())
        b[SCALAR_BYTES - 1] &= topByteMask
        return cls._fromLimbs(_bytesToLimbs(b))

    def toInt(self):
        return limbsToInt(self._limbs)

    def __int__(self):
        return self.toInt()

    def toBytes(self):
        """
        toBytes encodes the scalar as 40 little-endian bytes.

        Returns:
            bytes: the encoded scalar.
        """
        return b"".join(limb.to_bytes(4, "little") for limb in self._limbs)

    def isCanonical(self):
        """
        isCanonical reports whether the value is strictly less than N. The
        borrow of value - N is set exactly when it is.

        Returns:
            bool: True if the value is less than N.
        """
        _, c = subInner(self._limbs, N)
        return c == LIMB_MASK

    def isZero(self):
        return self.equals(ZERO_SCALAR)

    def montMul(self, other):
        """
        montMul returns self * other / 2^320 mod N.

        Args:
            other (Scalar): the second factor.

        Returns:
            Scalar: the Montgomery product.
        """
        return Scalar._fromLimbs(montMul(self._limbs, other._limbs))

    def toMont(self):
        """
        toMont converts a standard form scalar to Montgomery form.
        """
        return Scalar._fromLimbs(montMul(self._limbs, R2))

    def fromMont(self):
        """
        fromMont converts a Montgomery form scalar to standard form.
        """
        return Scalar._fromLimbs(montMul(self._limbs, ONE))

    def add(self, other):
        """
        add returns self + other mod N.

        Args:
            other (Scalar): the addend.

        Returns:
            Scalar: the sum.
        """
        r0 = addInner(self._limbs, other._limbs)
        r1, c = subInner(r0, N)
        # A borrow means the raw sum was already below N.
        return Scalar._fromLimbs(select(c, r1, r0))

    def sub(self, other):
        """
        sub returns self - other mod N.

        Args:
            other (Scalar): the subtrahend.

        Returns:
            Scalar: the difference.
        """
        r0, c = subInner(self._limbs, other._limbs)
        r1 = addInner(r0, N)
        return Scalar._fromLimbs(select(c, r0, r1))

    def mul(self, other):
        """
        mul returns self * other mod N. The first kernel call moves self into
        Montgomery form and the second cancels the extra factor of 2^320.

        Args:
            other (Scalar): the multiplier.

        Returns:
            Scalar: the product.
        """
        return Scalar._fromLimbs(montMul(montMul(self._limbs, R2), other._limbs))

    def neg(self):
        return ZERO_SCALAR.sub(self)

    def square(self):
        return self.mul(self)

    def pow(self, exp):
        """
        pow raises the scalar to the power exp with left-to-right
        square-and-multiply over all 320 exponent bits. The exponent is
        public; only the exponent bits drive the branch.

        Args:
            exp (Scalar or int): the exponent. A Scalar exponent's limbs are
                used as is. An int exponent must be in [0, 2^320).

        Returns:
            Scalar: self^exp mod N.

        Raises:
            ECGFp5Error: if exp is neither a Scalar nor an int in range.
        """
        e = exp._limbs if isinstance(exp, Scalar) else intToLimbs(exp)
        sMont = montMul(self._limbs, R2)
        rMont = montMul(ONE, R2)
        for limb in reversed(e):
            for j in range(LIMB_BITS - 1, -1, -1):
                rMont = montMul(rMont, rMont)
                if (limb >> j) & 1:
                    rMont = montMul(rMont, sMont)
        return Scalar._fromLimbs(montMul(rMont, ONE))

    def inv(self):
        """
        inv returns the multiplicative inverse self^(N-2) mod N. Zero has no
        inverse, and inv of zero is zero rather than an error.

        Returns:
            Scalar: the inverse.
        """
        return self.pow(N_MINUS_2_SCALAR)

    def equals(self, other):
        """
        equals compares all ten limbs, without exiting at the first
        difference.

        Args:
            other (Scalar): the scalar to compare.

        Returns:
            bool: True if the limbs are identical.
        """
        flg = 0
        for x, y in zip(self._limbs, other._limbs):
            flg |= x ^ y
        return flg == 0

    def __add__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return self.sub(other)

    def __mul__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return self.mul(other)

    def __truediv__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return self.mul(other.inv())

    def __neg__(self):
        return self.neg()

    def __pow__(self, exp):
        return self.pow(exp)

    def __eq__(self, other):
        if not isinstance(other, Scalar):
            return NotImplemented
        return self.equals(other)

    def __hash__(self):
        return hash(self._limbs)

    def __repr__(self):
        return f"Scalar(0x{self.toInt():080x})"


def _bytesToLimbs(b):
    return tuple(
        int.from_bytes(b[i : i + 4], "little") for i in range(0, SCALAR_BYTES, 4)
    )


ZERO_SCALAR = Scalar._fromLimbs(ZERO)
N_MINUS_2_SCALAR = Scalar._fromLimbs(N_MINUS_2)
