"""
Copyright (c) 2020, the Decred developers
See LICENSE for details
"""

import copy
import pickle

import pytest

from ecgfp5 import ECGFp5Error
from ecgfp5.crypto import rando, scalar
from ecgfp5.crypto.scalar import LIMB_MASK, N, ONE, ORDER, ZERO, Scalar


R = 1 << 320
R_INV = pow(R, -1, ORDER)
MAX_LIMBS = (LIMB_MASK,) * 10


def test_constants():
    assert ORDER == (
        1067993516717146951041484916571792702745057740581727230159139685185762082554198619328292418486241
    )
    assert ORDER.bit_length() == 319
    assert scalar.limbsToInt(scalar.R2) == pow(R, 2, ORDER)
    assert scalar.limbsToInt(scalar.N_MINUS_2) == ORDER - 2
    assert (N[0] * scalar.NEG_N0_INV) & LIMB_MASK == LIMB_MASK
    assert scalar.SCALAR_BYTES == 40
    assert Scalar.zero().limbs == ZERO
    assert Scalar.one().limbs == ONE


def test_limb_conversion():
    assert scalar.intToLimbs(0) == ZERO
    assert scalar.intToLimbs(1) == ONE
    assert scalar.intToLimbs(R - 1) == MAX_LIMBS
    assert scalar.intToLimbs(1 << 32) == (0, 1) + (0,) * 8
    assert scalar.limbsToInt(N) == ORDER
    assert scalar.limbsToInt(scalar.intToLimbs(ORDER - 1)) == ORDER - 1
    with pytest.raises(ECGFp5Error):
        scalar.intToLimbs(-1)
    with pytest.raises(ECGFp5Error):
        scalar.intToLimbs(R)


def test_addInner():
    # Carry propagates through every limb and out of the top.
    assert scalar.addInner(MAX_LIMBS, ONE) == list(ZERO)
    assert scalar.addInner((LIMB_MASK,) + (0,) * 9, ONE) == [0, 1] + [0] * 8
    assert scalar.addInner(N, ZERO) == list(N)
    a = scalar.intToLimbs(ORDER - 1)
    assert scalar.limbsToInt(scalar.addInner(a, a)) == 2 * ORDER - 2


def test_subInner():
    r, c = scalar.subInner(ZERO, ONE)
    assert r == list(MAX_LIMBS)
    assert c == LIMB_MASK
    r, c = scalar.subInner(ONE, ONE)
    assert r == list(ZERO)
    assert c == 0
    # Borrow across a limb boundary without an overall borrow.
    r, c = scalar.subInner((0, 1) + (0,) * 8, ONE)
    assert r == [LIMB_MASK] + [0] * 9
    assert c == 0
    r, c = scalar.subInner(N, N)
    assert r == list(ZERO)
    assert c == 0
    r, c = scalar.subInner(scalar.intToLimbs(ORDER - 1), N)
    assert scalar.limbsToInt(r) == R - 1
    assert c == LIMB_MASK


def test_select():
    a0 = scalar.intToLimbs(ORDER - 1)
    a1 = scalar.intToLimbs(12345)
    assert scalar.select(0, a0, a1) == list(a0)
    assert scalar.select(LIMB_MASK, a0, a1) == list(a1)
    assert scalar.select(LIMB_MASK, a0, a0) == list(a0)


def test_montMul_matches_integers(randScalars, edgeScalars):
    values = randScalars(12) + edgeScalars
    for a, b in zip(values, reversed(values)):
        got = scalar.montMul(a.limbs, b.limbs)
        assert scalar.limbsToInt(got) == a.toInt() * b.toInt() * R_INV % ORDER
        assert Scalar(got).isCanonical()


def test_montMul_does_not_mutate():
    a = list(scalar.intToLimbs(ORDER - 1))
    b = list(scalar.R2)
    scalar.montMul(a, b)
    assert a == list(scalar.intToLimbs(ORDER - 1))
    assert b == list(scalar.R2)


def test_to_mont_of_one():
    one = Scalar.one()
    oneMont = one.toMont()
    assert oneMont == Scalar(scalar.intToLimbs(R % ORDER))
    assert oneMont.fromMont() == one


def test_montMul_by_modulus():
    # N is congruent to zero.
    assert Scalar.one().toMont().montMul(Scalar(N)) == Scalar.zero()


def test_mul_decomposition(randScalars):
    a, b = randScalars(2, seed=3)
    assert a.mul(b) == a.montMul(Scalar(scalar.R2)).montMul(b)
    assert a.montMul(b) == (a * b).fromMont()
    assert a.montMul(b).toMont() == a * b


def test_mont_round_trip(randScalars, edgeScalars):
    for a in randScalars(8) + edgeScalars:
        assert a.toMont().fromMont() == a
        assert a.toMont().toInt() == a.toInt() * R % ORDER


def test_field_operations(randScalars, edgeScalars):
    values = randScalars(10, seed=1) + edgeScalars
    for a, b in zip(values, values[3:] + values[:3]):
        x, y = a.toInt(), b.toInt()
        assert (a + b).toInt() == (x + y) % ORDER
        assert (a - b).toInt() == (x - y) % ORDER
        assert (a * b).toInt() == (x * y) % ORDER
        assert (-a).toInt() == (-x) % ORDER
        assert a.square().toInt() == x * x % ORDER
        assert a.add(b) == a + b
        assert a.sub(b) == a - b


def test_add_sub_edges():
    top = Scalar.fromInt(ORDER - 1)
    one = Scalar.one()
    zero = Scalar.zero()
    assert top + one == zero
    assert top + top == Scalar.fromInt(ORDER - 2)
    assert zero - one == top
    assert one - top == Scalar.fromInt(2)
    assert -zero == zero


def test_identities(randScalars):
    zero = Scalar.zero()
    one = Scalar.one()
    for a in randScalars(6, seed=2):
        assert a * one == a
        assert a + zero == a
        assert a - zero == a
        assert a * zero == zero
        assert a - a == zero


def test_add_sub_inverse(randScalars):
    values = randScalars(8, seed=4)
    for a, b in zip(values[::2], values[1::2]):
        assert (a + b) - a == b
        assert (a + b) - a - b == Scalar.zero()


def test_inv(randScalars):
    one = Scalar.one()
    a, b, c = randScalars(3, seed=5)
    assert a * a.inv() == one
    assert (a * b) * a.inv() * b.inv() == one
    assert (a * b) * a.inv() == b
    assert c.inv().toInt() == pow(c.toInt(), ORDER - 2, ORDER)
    assert one.inv() == one
    assert Scalar.fromInt(ORDER - 1).inv() == Scalar.fromInt(ORDER - 1)


def test_inv_zero():
    zero = Scalar.zero()
    assert zero.inv() == zero
    assert Scalar.one() / zero == zero


def test_truediv(randScalars):
    a, b = randScalars(2, seed=6)
    assert (a / b) * b == a
    assert (a / b).toInt() == a.toInt() * pow(b.toInt(), -1, ORDER) % ORDER


def test_pow(randScalars):
    a, e = randScalars(2, seed=7)
    x = a.toInt()
    assert a.pow(0) == Scalar.one()
    assert a.pow(1) == a
    assert a.pow(2) == a * a
    assert (a ** 5).toInt() == pow(x, 5, ORDER)
    assert a.pow(e).toInt() == pow(x, e.toInt(), ORDER)
    # Exponents are taken as given, without reduction.
    assert a.pow(R - 1).toInt() == pow(x, R - 1, ORDER)
    assert Scalar.zero().pow(0) == Scalar.one()
    assert Scalar.zero().pow(7) == Scalar.zero()
    with pytest.raises(ECGFp5Error):
        a.pow(-1)
    with pytest.raises(ECGFp5Error):
        a.pow(R)


def test_equality(randScalars):
    a, b = randScalars(2, seed=8)
    assert a == a
    assert a.equals(Scalar(a.limbs))
    assert (a == b) == (b == a)
    assert a != b
    assert (a == b) == (a.limbs == b.limbs)
    # Differences in the first or the last limb only.
    base = Scalar.fromInt(7 << 96)
    assert base != Scalar.fromInt((7 << 96) + 1)
    assert base != Scalar.fromInt((7 << 96) + (1 << 300))
    assert Scalar.one() != 1
    assert not Scalar.zero() == 0
    assert Scalar.zero().isZero()
    assert not Scalar.one().isZero()


def test_hash(randScalars):
    a, b = randScalars(2, seed=9)
    assert hash(a) == hash(Scalar(a.limbs))
    assert len({a, b, Scalar(a.limbs)}) == 2


def test_constructor():
    assert Scalar() == Scalar.zero()
    assert Scalar([1] + [0] * 9) == Scalar.one()
    with pytest.raises(ECGFp5Error):
        Scalar([0] * 9)
    with pytest.raises(ECGFp5Error):
        Scalar([0] * 11)
    with pytest.raises(ECGFp5Error):
        Scalar([LIMB_MASK + 1] + [0] * 9)
    with pytest.raises(ECGFp5Error):
        Scalar([-1] + [0] * 9)
    with pytest.raises(ECGFp5Error):
        Scalar([1.0] + [0] * 9)


def test_immutable():
    s = Scalar.one()
    with pytest.raises(AttributeError):
        s._limbs = ZERO
    with pytest.raises(AttributeError):
        s.extra = 1
    with pytest.raises(AttributeError):
        del s._limbs
    assert s == Scalar.one()


def test_copy_and_pickle(randScalars):
    (a,) = randScalars(1, seed=10)
    assert copy.copy(a) == a
    assert copy.deepcopy(a) == a
    assert pickle.loads(pickle.dumps(a)) == a


def test_isCanonical():
    assert Scalar.zero().isCanonical()
    assert Scalar.fromInt(ORDER - 1).isCanonical()
    assert not Scalar(N).isCanonical()
    assert not Scalar(MAX_LIMBS).isCanonical()


def test_fromInt_and_toInt():
    assert Scalar.fromInt(ORDER).isZero()
    assert Scalar.fromInt(ORDER + 5) == Scalar.fromInt(5)
    assert Scalar.fromInt(-1) == Scalar.fromInt(ORDER - 1)
    assert int(Scalar.fromInt(12345)) == 12345
    assert Scalar.fromInt(1 << 32).limbs == (0, 1) + (0,) * 8


@pytest.mark.parametrize("value", [1.5, 2.0, "1", None, b"\x01"])
def test_non_integer_inputs(value):
    with pytest.raises(ECGFp5Error):
        scalar.intToLimbs(value)
    with pytest.raises(ECGFp5Error):
        Scalar.fromInt(value)
    with pytest.raises(ECGFp5Error):
        Scalar.one().pow(value)


def test_bytes(randScalars):
    (a,) = randScalars(1, seed=11)
    b = a.toBytes()
    assert len(b) == 40
    assert b == a.toInt().to_bytes(40, "little")
    assert Scalar.fromBytes(b) == a
    assert Scalar.fromBytes(bytearray(b)) == a
    assert Scalar.one().toBytes() == b"\x01" + b"\x00" * 39
    with pytest.raises(ECGFp5Error):
        Scalar.fromBytes(b[:39])
    with pytest.raises(ECGFp5Error):
        Scalar.fromBytes(b + b"\x00")
    with pytest.raises(ECGFp5Error):
        Scalar.fromBytes(ORDER.to_bytes(40, "little"))
    with pytest.raises(ECGFp5Error):
        Scalar.fromBytes(b"\xff" * 40)


def test_fromHex():
    assert Scalar.fromHex("ff") == Scalar.fromInt(255)
    assert Scalar.fromHex("0x0100") == Scalar.fromInt(256)
    assert Scalar.fromHex(f"{ORDER + 1:x}") == Scalar.one()
    with pytest.raises(ECGFp5Error):
        Scalar.fromHex("not hex")


def test_repr():
    assert repr(Scalar.one()) == "Scalar(0x" + "0" * 79 + "1)"


def test_rand():
    seen = set()
    for _ in range(8):
        s = Scalar.rand()
        assert s.isCanonical()
        assert s.toInt() < 1 << 318
        seen.add(s)
    assert len(seen) == 8


def test_rand_clears_top_bits(monkeypatch):
    monkeypatch.setattr(rando, "newScalarBytes", lambda: b"\xff" * 40)
    s = Scalar.rand()
    assert s.toInt() == (1 << 318) - 1
    assert s.isCanonical()

    monkeypatch.setattr(rando, "newScalarBytes", lambda: bytes(range(40)))
    assert Scalar.rand().toBytes() == bytes(range(40))


def test_operators_reject_other_types():
    s = Scalar.one()
    for op in (
        lambda: s + 1,
        lambda: s - 1,
        lambda: s * 2,
        lambda: s / 2,
        lambda: 1 + s,
    ):
        with pytest.raises(TypeError):
            op()
